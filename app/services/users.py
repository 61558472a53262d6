# app/services/users.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from google.cloud import firestore  # type: ignore

from app.services.storage_gcp import TEAMS, USERS, _col, _fs, _merge_update, _now_iso
from app.services.teams import new_team

logger = logging.getLogger(__name__)


def get_user(uid: str) -> Optional[Dict[str, Any]]:
    snap = _col(USERS).document(uid).get()
    return snap.to_dict() if snap.exists else None


def update_user(uid: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    return _merge_update(USERS, uid, updates)


def complete_onboarding(uid: str, email: str | None, name: str | None, business_type: str) -> str:
    """Create the personal team and the profile in one batch. Returns the team id."""
    team = new_team(f"{name or email or 'My'}'s Team", uid, team_type="personal")
    now = _now_iso()

    batch = _fs().batch()
    batch.set(_col(TEAMS).document(team["id"]), team)
    batch.set(
        _col(USERS).document(uid),
        {
            "uid": uid,
            "email": email or "",
            "displayName": name or "",
            "businessType": business_type,
            "onboardingComplete": True,
            "activeTeamId": team["id"],
            "teamIds": [team["id"]],
            "createdAt": now,
            "updatedAt": now,
        },
        merge=True,
    )
    batch.commit()
    logger.info("Onboarding complete for %s (personal team %s)", uid, team["id"])
    return team["id"]


def set_active_team(uid: str, team_id: str) -> None:
    _col(USERS).document(uid).set({"activeTeamId": team_id, "updatedAt": _now_iso()}, merge=True)


def add_user_team(uid: str, team_id: str) -> None:
    _col(USERS).document(uid).set(
        {"teamIds": firestore.ArrayUnion([team_id]), "updatedAt": _now_iso()}, merge=True
    )


def leave_user_team(uid: str, team_id: str) -> Optional[str]:
    """Drop a team from the profile and fall back to another team. Returns the new active id."""
    ref = _col(USERS).document(uid)
    data = ref.get().to_dict() or {}
    fallback = next((t for t in data.get("teamIds") or [] if t != team_id), None)
    active = data.get("activeTeamId")
    ref.set(
        {
            "teamIds": firestore.ArrayRemove([team_id]),
            "activeTeamId": fallback if active in (None, team_id) else active,
            "updatedAt": _now_iso(),
        },
        merge=True,
    )
    return fallback if active in (None, team_id) else active
