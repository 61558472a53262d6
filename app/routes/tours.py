# app/routes/tours.py
import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from app.models.schemas import AddRoomIn, CreateTourIn, ReorderRoomsIn, UpdateTourIn
from app.services import storage
from app.services.auth import AuthContext, get_team_context

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tours", tags=["tours"])


def _team_tour_or_404(tour_id: str, ctx: AuthContext) -> dict:
    tour = storage.get_tour(tour_id)
    if not tour or tour.get("teamId") != ctx.team_id:
        logger.info("Tour %s not found for team %s", tour_id, ctx.team_id)
        raise HTTPException(404, "Tour not found")
    return tour


@router.get("")
def list_tours(ctx: AuthContext = Depends(get_team_context)):
    tours = storage.get_all_tours(ctx.team_id)
    logger.info("Listed %d tours for team %s", len(tours), ctx.team_id)
    return storage.populate_rooms(tours)


@router.post("", status_code=201)
def create_tour(data: CreateTourIn, ctx: AuthContext = Depends(get_team_context)):
    tour = storage.new_tour(ctx.team_id, ctx.uid, data.name, data.address, data.description)
    return storage.create_tour(tour)


@router.get("/{tour_id}")
def get_tour(tour_id: str, ctx: AuthContext = Depends(get_team_context)):
    tour = _team_tour_or_404(tour_id, ctx)
    return storage.populate_rooms([tour])[0]


@router.patch("/{tour_id}")
def update_tour(tour_id: str, data: UpdateTourIn, ctx: AuthContext = Depends(get_team_context)):
    _team_tour_or_404(tour_id, ctx)
    return storage.update_tour(tour_id, data.changes())


@router.delete("/{tour_id}")
def delete_tour(tour_id: str, ctx: AuthContext = Depends(get_team_context)):
    _team_tour_or_404(tour_id, ctx)
    storage.delete_tour(tour_id)
    return {"success": True}


@router.post("/{tour_id}/rooms")
def add_room(tour_id: str, data: AddRoomIn, ctx: AuthContext = Depends(get_team_context)):
    tour = _team_tour_or_404(tour_id, ctx)
    space = storage.get_space(data.spaceId)
    if not space or space.get("teamId") != ctx.team_id:
        raise HTTPException(404, "Space not found")

    room = {"spaceId": data.spaceId, "label": data.label, "order": len(tour.get("rooms") or [])}
    updated = storage.add_room_to_tour(tour_id, room)
    logger.info("Room added to tour %s: %r (space %s)", tour_id, data.label, data.spaceId)
    return updated


@router.delete("/{tour_id}/rooms")
def remove_room(tour_id: str, spaceId: str | None = Query(None), ctx: AuthContext = Depends(get_team_context)):
    _team_tour_or_404(tour_id, ctx)
    if not spaceId:
        raise HTTPException(400, "spaceId is required")
    updated = storage.remove_room_from_tour(tour_id, spaceId)
    logger.info("Room removed from tour %s: space %s", tour_id, spaceId)
    return updated


@router.put("/{tour_id}/rooms/order")
def reorder_rooms(tour_id: str, data: ReorderRoomsIn, ctx: AuthContext = Depends(get_team_context)):
    _team_tour_or_404(tour_id, ctx)
    try:
        return storage.reorder_tour_rooms(tour_id, data.spaceIds)
    except ValueError as e:
        raise HTTPException(400, str(e))
