# app/services/tours.py
from __future__ import annotations

import logging
import secrets
import uuid
from typing import Any, Dict, List, Optional

from google.cloud import firestore  # type: ignore
from google.cloud.firestore_v1 import FieldFilter

from app.services.storage_gcp import (
    TOURS, _col, _delete_doc, _drop_none, _fs, _list_for_team, _merge_update, _now_iso,
    get_spaces_by_ids,
)

logger = logging.getLogger(__name__)


def new_share_token() -> str:
    return secrets.token_hex(16)


def new_tour(team_id: str, created_by: str, name: str, address: str = "", description: str = "") -> Dict[str, Any]:
    now = _now_iso()
    return {
        "id": str(uuid.uuid4()),
        "teamId": team_id,
        "createdBy": created_by,
        "name": name,
        "address": address,
        "description": description,
        "rooms": [],
        "isPublic": True,
        "shareToken": new_share_token(),
        "createdAt": now,
        "updatedAt": now,
    }


def get_all_tours(team_id: str | None = None) -> List[Dict[str, Any]]:
    return _list_for_team(TOURS, team_id)


def get_tour(tour_id: str) -> Optional[Dict[str, Any]]:
    snap = _col(TOURS).document(tour_id).get()
    return snap.to_dict() if snap.exists else None


def create_tour(tour: Dict[str, Any]) -> Dict[str, Any]:
    _col(TOURS).document(tour["id"]).set(_drop_none(tour))
    logger.info("Tour created: %r in team %s", tour["name"], tour["teamId"])
    return tour


def update_tour(tour_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    return _merge_update(TOURS, tour_id, updates)


def delete_tour(tour_id: str) -> bool:
    return _delete_doc(TOURS, tour_id)


def get_tour_by_token(token: str) -> Optional[Dict[str, Any]]:
    snaps = _col(TOURS).where(filter=FieldFilter("shareToken", "==", token)).limit(1).get()
    return snaps[0].to_dict() if snaps else None


def _sorted_rooms(rooms: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return sorted(rooms, key=lambda r: r.get("order", 0))


def _update_rooms(tour_id: str, mutate) -> Optional[Dict[str, Any]]:
    """Apply `mutate(rooms) -> rooms` to a tour inside a transaction."""
    ref = _col(TOURS).document(tour_id)

    @firestore.transactional
    def _do(txn):
        snap = ref.get(transaction=txn)
        if not snap.exists:
            return None
        tour = snap.to_dict() or {}
        updates = {"rooms": mutate(list(tour.get("rooms") or [])), "updatedAt": _now_iso()}
        txn.update(ref, updates)
        return {**tour, **updates}

    return _do(_fs().transaction())


def add_room_to_tour(tour_id: str, room: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Insert a room; a room for the same space is replaced."""
    return _update_rooms(
        tour_id,
        lambda rooms: _sorted_rooms([r for r in rooms if r["spaceId"] != room["spaceId"]] + [room]),
    )


def remove_room_from_tour(tour_id: str, space_id: str) -> Optional[Dict[str, Any]]:
    return _update_rooms(tour_id, lambda rooms: [r for r in rooms if r["spaceId"] != space_id])


def reorder_tour_rooms(tour_id: str, space_ids: List[str]) -> Optional[Dict[str, Any]]:
    """Renumber rooms to follow `space_ids`.

    Raises ValueError unless `space_ids` is a permutation of the tour's rooms.
    """
    def _mutate(rooms):
        by_space = {r["spaceId"]: r for r in rooms}
        if len(space_ids) != len(by_space) or set(space_ids) != set(by_space):
            raise ValueError("spaceIds must list every room of the tour exactly once")
        return [{**by_space[sid], "order": i} for i, sid in enumerate(space_ids)]

    return _update_rooms(tour_id, _mutate)


def remove_space_from_team_tours(team_id: str, space_id: str) -> int:
    """Cascade for space deletion. Returns the number of tours touched."""
    touched = 0
    for tour in get_all_tours(team_id):
        if any(r.get("spaceId") == space_id for r in tour.get("rooms") or []):
            remove_room_from_tour(tour["id"], space_id)
            touched += 1
    return touched


def populate_rooms(tours: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Attach each room's space record (or None) with one batched read."""
    space_ids = [r["spaceId"] for t in tours for r in t.get("rooms") or []]
    spaces = {s["id"]: s for s in get_spaces_by_ids(space_ids)}
    return [
        {**t, "rooms": [{**r, "space": spaces.get(r["spaceId"])} for r in t.get("rooms") or []]}
        for t in tours
    ]
