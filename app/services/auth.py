# app/services/auth.py
"""
Identity is delegated to Firebase Authentication.

A request is authenticated by either an `Authorization: Bearer <idToken>`
header or the `session` cookie minted by POST /api/auth/session. Team-scoped
routes additionally require an `X-Team-Id` header naming a team the caller is
a member of.
"""
import datetime as dt
import logging
from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from firebase_admin import auth as fb_auth
from firebase_admin.exceptions import FirebaseError

from app.core.config import settings
from app.services.gcp_clients import get_firebase_app
from app.services import teams

logger = logging.getLogger(__name__)

SESSION_COOKIE = "session"

bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthContext:
    uid: str
    team_id: str


def session_max_age() -> dt.timedelta:
    return dt.timedelta(days=settings.session_cookie_days)


def create_session_cookie(id_token: str) -> str:
    """Verify a fresh ID token and exchange it for a session cookie."""
    app = get_firebase_app()
    fb_auth.verify_id_token(id_token, app=app)
    return fb_auth.create_session_cookie(id_token, expires_in=session_max_age(), app=app)


def verify_request(request: Request, cred: HTTPAuthorizationCredentials | None) -> dict | None:
    """Decoded Firebase claims for the request, or None."""
    if cred and cred.credentials:
        try:
            decoded = fb_auth.verify_id_token(cred.credentials, app=get_firebase_app())
            logger.debug("Token verified (Bearer) for user %s", decoded["uid"])
            return decoded
        except (ValueError, FirebaseError) as e:
            logger.info("Bearer token verification failed: %s", e)
            return None

    cookie = request.cookies.get(SESSION_COOKIE)
    if cookie:
        try:
            decoded = fb_auth.verify_session_cookie(cookie, check_revoked=True, app=get_firebase_app())
            logger.debug("Session cookie verified for user %s", decoded["uid"])
            return decoded
        except (ValueError, FirebaseError) as e:
            logger.info("Session cookie verification failed (expired or invalid): %s", e)
            return None

    logger.info("No auth credentials provided (no Bearer token or session cookie)")
    return None


def get_current_user(request: Request, cred=Depends(bearer)) -> dict:
    decoded = verify_request(request, cred)
    if not decoded:
        raise HTTPException(401, "Unauthorized")
    request.state.user_id = decoded["uid"]
    return decoded


def get_team_context(
    user: dict = Depends(get_current_user),
    x_team_id: str | None = Header(default=None),
) -> AuthContext:
    uid = user["uid"]
    if not x_team_id:
        logger.info("Missing x-team-id header for user %s", uid)
        raise HTTPException(401, "Unauthorized")

    team = teams.get_team(x_team_id)
    if not team:
        logger.info("Team %s not found for user %s", x_team_id, uid)
        raise HTTPException(401, "Unauthorized")
    if not teams.is_member(team, uid):
        logger.warning("User %s is not a member of team %s", uid, x_team_id)
        raise HTTPException(401, "Unauthorized")

    return AuthContext(uid=uid, team_id=x_team_id)
