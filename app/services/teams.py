# app/services/teams.py
from __future__ import annotations

import base64
import logging
import secrets
import uuid
from typing import Any, Dict, List, Optional

from google.cloud import firestore  # type: ignore
from google.cloud.firestore_v1 import FieldFilter

from app.services.storage_gcp import TEAMS, USERS, _col, _delete_doc, _fs, _merge_update, _now_iso

logger = logging.getLogger(__name__)


def generate_invite_code() -> str:
    """12 URL-safe characters from 8 random bytes."""
    return base64.urlsafe_b64encode(secrets.token_bytes(8)).decode().rstrip("=")[:12]


def new_team(name: str, owner_id: str, team_type: str = "organization") -> Dict[str, Any]:
    now = _now_iso()
    return {
        "id": str(uuid.uuid4()),
        "name": name,
        "type": team_type,
        "ownerId": owner_id,
        "memberIds": [owner_id],
        "inviteCode": generate_invite_code(),
        # personal teams are single-member until the owner opts in
        "inviteEnabled": team_type != "personal",
        "createdAt": now,
        "updatedAt": now,
    }


def is_member(team: Optional[Dict[str, Any]], user_id: str) -> bool:
    return bool(team) and user_id in (team.get("memberIds") or [])


def get_team(team_id: str) -> Optional[Dict[str, Any]]:
    snap = _col(TEAMS).document(team_id).get()
    return snap.to_dict() if snap.exists else None


def get_teams_by_user(user_id: str) -> List[Dict[str, Any]]:
    snaps = _col(TEAMS).where(filter=FieldFilter("memberIds", "array_contains", user_id)).stream()
    return [s.to_dict() for s in snaps]


def create_team(team: Dict[str, Any]) -> Dict[str, Any]:
    """Write the team and add it to the owner's `teamIds` in one batch."""
    batch = _fs().batch()
    batch.set(_col(TEAMS).document(team["id"]), team)
    batch.set(
        _col(USERS).document(team["ownerId"]),
        {"teamIds": firestore.ArrayUnion([team["id"]])},
        merge=True,
    )
    batch.commit()
    logger.info("Team created: %r (%s) by %s", team["name"], team["id"], team["ownerId"])
    return team


def update_team(team_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    return _merge_update(TEAMS, team_id, updates)


def delete_team(team_id: str) -> bool:
    return _delete_doc(TEAMS, team_id)


def get_team_by_invite_code(code: str) -> Optional[Dict[str, Any]]:
    snaps = (
        _col(TEAMS)
        .where(filter=FieldFilter("inviteCode", "==", code))
        .where(filter=FieldFilter("inviteEnabled", "==", True))
        .limit(1)
        .get()
    )
    return snaps[0].to_dict() if snaps else None


def add_member_to_team(team_id: str, user_id: str) -> Optional[Dict[str, Any]]:
    ref = _col(TEAMS).document(team_id)

    @firestore.transactional
    def _do(txn):
        snap = ref.get(transaction=txn)
        if not snap.exists:
            return None
        team = snap.to_dict() or {}
        if user_id in team.get("memberIds", []):
            return team
        updates = {"memberIds": [*team.get("memberIds", []), user_id], "updatedAt": _now_iso()}
        txn.update(ref, updates)
        return {**team, **updates}

    return _do(_fs().transaction())


def remove_member_from_team(team_id: str, user_id: str) -> Optional[Dict[str, Any]]:
    """Remove a non-owner member of an organization team; None when refused."""
    ref = _col(TEAMS).document(team_id)

    @firestore.transactional
    def _do(txn):
        snap = ref.get(transaction=txn)
        if not snap.exists:
            return None
        team = snap.to_dict() or {}
        if team.get("ownerId") == user_id or team.get("type") == "personal":
            return None
        updates = {
            "memberIds": [m for m in team.get("memberIds", []) if m != user_id],
            "updatedAt": _now_iso(),
        }
        txn.update(ref, updates)
        return {**team, **updates}

    return _do(_fs().transaction())
