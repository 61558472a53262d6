# app/routes/public.py
import logging

from fastapi import APIRouter, HTTPException

from app.services import storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/t", tags=["public"])


@router.get("/{token}")
def public_tour(token: str):
    """Unauthenticated tour viewing by share token. Private tours look missing."""
    tour = storage.get_tour_by_token(token)
    if not tour or not tour.get("isPublic"):
        logger.info("Public tour not found: token %s", token)
        raise HTTPException(404, "Not found")
    logger.info("Public tour accessed: token %s", token)
    return storage.populate_rooms([tour])[0]
