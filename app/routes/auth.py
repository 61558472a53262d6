# app/routes/auth.py
import logging

from fastapi import APIRouter, Depends, HTTPException, Response
from firebase_admin.exceptions import FirebaseError

from app.core.config import settings
from app.models.schemas import OnboardingIn, SessionIn, UpdateProfileIn
from app.services import storage
from app.services.auth import SESSION_COOKIE, create_session_cookie, get_current_user, session_max_age

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/session")
def create_session(data: SessionIn, response: Response):
    try:
        cookie = create_session_cookie(data.token)
    except (ValueError, FirebaseError) as e:
        logger.info("Session creation rejected: %s", e)
        raise HTTPException(401, "Invalid token")

    response.set_cookie(
        SESSION_COOKIE,
        cookie,
        max_age=int(session_max_age().total_seconds()),
        httponly=True,
        secure=settings.is_production,
        path="/",
        samesite="lax",
    )
    return {"status": "success"}


@router.delete("/session")
def clear_session(response: Response):
    response.delete_cookie(SESSION_COOKIE, path="/")
    return {"status": "success"}


@router.get("/me")
def me(user=Depends(get_current_user)):
    profile = storage.get_user(user["uid"])
    if not profile:
        return {"uid": user["uid"], "email": user.get("email"), "onboardingComplete": False}
    return {
        **profile,
        "activeTeamId": profile.get("activeTeamId") or None,
        "teamIds": profile.get("teamIds") or [],
    }


@router.patch("/me")
def update_me(data: UpdateProfileIn, user=Depends(get_current_user)):
    updated = storage.update_user(user["uid"], data.changes())
    if not updated:
        raise HTTPException(404, "Profile not found; complete onboarding first")
    logger.info("Profile updated for %s: %s", user["uid"], ", ".join(data.changes()))
    return updated


@router.post("/onboarding")
def onboarding(data: OnboardingIn, user=Depends(get_current_user)):
    team_id = storage.complete_onboarding(
        user["uid"], user.get("email"), user.get("name"), data.businessType
    )
    return {"success": True, "teamId": team_id}
