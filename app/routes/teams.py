# app/routes/teams.py
import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from app.models.schemas import JoinTeamIn, SwitchTeamIn, TeamNameIn, UpdateInviteIn
from app.services import storage
from app.services.auth import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/teams", tags=["teams"])


def _member_team_or_404(team_id: str, uid: str) -> dict:
    team = storage.get_team(team_id)
    if not storage.is_member(team, uid):
        logger.info("Team %s not found or %s is not a member", team_id, uid)
        raise HTTPException(404, "Team not found")
    return team


@router.get("")
def list_teams(user=Depends(get_current_user)):
    teams = storage.get_teams_by_user(user["uid"])
    profile = storage.get_user(user["uid"]) or {}
    logger.info("Listed %d teams for user %s", len(teams), user["uid"])
    return {"teams": teams, "activeTeamId": profile.get("activeTeamId") or None}


@router.post("", status_code=201)
def create_team(data: TeamNameIn, user=Depends(get_current_user)):
    team = storage.new_team(data.name, user["uid"], team_type="organization")
    return storage.create_team(team)


@router.put("/active")
def switch_active_team(data: SwitchTeamIn, user=Depends(get_current_user)):
    _member_team_or_404(data.teamId, user["uid"])
    storage.set_active_team(user["uid"], data.teamId)
    logger.info("Active team switched to %s for user %s", data.teamId, user["uid"])
    return {"success": True}


# Declared before /{team_id} so "join" is not captured as an id.
@router.get("/join")
def preview_invite(code: str | None = Query(None)):
    if not code:
        raise HTTPException(400, "code is required")
    team = storage.get_team_by_invite_code(code)
    if not team:
        logger.info("Invite code %r not found or disabled", code)
        raise HTTPException(404, "Invite not found")
    return {"teamName": team["name"], "memberCount": len(team.get("memberIds") or [])}


@router.post("/join")
def join_team(data: JoinTeamIn, user=Depends(get_current_user)):
    uid = user["uid"]
    team = storage.get_team_by_invite_code(data.inviteCode)
    if not team:
        raise HTTPException(404, "Invalid or expired invite code")
    if storage.is_member(team, uid):
        return JSONResponse(status_code=409, content={"error": "Already a member", "teamId": team["id"]})

    storage.add_member_to_team(team["id"], uid)
    storage.add_user_team(uid, team["id"])
    logger.info("User %s joined team %s", uid, team["id"])
    return {"success": True, "teamId": team["id"], "teamName": team["name"]}


@router.get("/{team_id}")
def get_team(team_id: str, user=Depends(get_current_user)):
    return _member_team_or_404(team_id, user["uid"])


@router.patch("/{team_id}")
def rename_team(team_id: str, data: TeamNameIn, user=Depends(get_current_user)):
    _member_team_or_404(team_id, user["uid"])
    updated = storage.update_team(team_id, {"name": data.name})
    logger.info("Team %s renamed to %r", team_id, data.name)
    return updated


@router.delete("/{team_id}")
def delete_team(team_id: str, user=Depends(get_current_user)):
    team = _member_team_or_404(team_id, user["uid"])
    if team.get("type") == "personal":
        raise HTTPException(400, "Cannot delete personal team")
    if team.get("ownerId") != user["uid"]:
        raise HTTPException(403, "Only the team owner can delete the team")
    if storage.team_owns_any(storage.SPACES, team_id) or storage.team_owns_any(storage.TOURS, team_id):
        raise HTTPException(400, "Cannot delete team with existing spaces or tours")

    storage.delete_team(team_id)
    # the owner is the only member left whose profile we can fix up here
    storage.leave_user_team(user["uid"], team_id)
    logger.info("Team %s deleted by %s", team_id, user["uid"])
    return {"success": True}


@router.post("/{team_id}/invite")
def rotate_invite(team_id: str, user=Depends(get_current_user)):
    _member_team_or_404(team_id, user["uid"])
    return storage.update_team(team_id, {"inviteCode": storage.generate_invite_code()})


@router.patch("/{team_id}/invite")
def toggle_invite(team_id: str, data: UpdateInviteIn, user=Depends(get_current_user)):
    _member_team_or_404(team_id, user["uid"])
    logger.info("Invite %s for team %s", "enabled" if data.enabled else "disabled", team_id)
    return storage.update_team(team_id, {"inviteEnabled": data.enabled})


@router.delete("/{team_id}/members")
def leave_team(team_id: str, user=Depends(get_current_user)):
    uid = user["uid"]
    team = _member_team_or_404(team_id, uid)
    if team.get("type") == "personal":
        raise HTTPException(400, "Cannot leave personal team")
    if team.get("ownerId") == uid:
        raise HTTPException(400, "Owner cannot leave the team")

    storage.remove_member_from_team(team_id, uid)
    active = storage.leave_user_team(uid, team_id)
    logger.info("User %s left team %s (active team now %s)", uid, team_id, active)
    return {"success": True, "activeTeamId": active}
