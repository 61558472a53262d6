# app/routes/spaces.py
import logging

from fastapi import APIRouter, Depends, HTTPException

from app.models.schemas import CreateSpaceIn, UpdateSpaceIn
from app.services import storage
from app.services.auth import AuthContext, get_team_context

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/spaces", tags=["spaces"])


def team_space_or_404(space_id: str, ctx: AuthContext) -> dict:
    space = storage.get_space(space_id)
    if not space or space.get("teamId") != ctx.team_id:
        raise HTTPException(404, "Space not found")
    return space


@router.get("")
def list_spaces(ctx: AuthContext = Depends(get_team_context)):
    return storage.get_all_spaces(ctx.team_id)


@router.post("", status_code=201)
def create_space(data: CreateSpaceIn, ctx: AuthContext = Depends(get_team_context)):
    space = storage.new_space(
        ctx.team_id, ctx.uid, data.name, data.address, data.description, data.imageCount
    )
    return storage.create_space(space)


@router.get("/{space_id}")
def get_space(space_id: str, ctx: AuthContext = Depends(get_team_context)):
    return team_space_or_404(space_id, ctx)


@router.patch("/{space_id}")
def update_space(space_id: str, data: UpdateSpaceIn, ctx: AuthContext = Depends(get_team_context)):
    team_space_or_404(space_id, ctx)
    return storage.update_space(space_id, data.changes())


@router.delete("/{space_id}")
def delete_space(space_id: str, ctx: AuthContext = Depends(get_team_context)):
    """Delete the record, drop it from the team's tours, then remove its files."""
    team_space_or_404(space_id, ctx)
    storage.delete_space(space_id)
    touched = storage.remove_space_from_team_tours(ctx.team_id, space_id)
    files = storage.delete_space_files(space_id)
    logger.info("Space %s deleted: removed from %d tours, %d files", space_id, touched, files)
    return {"success": True}
