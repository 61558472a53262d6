# app/services/storage_gcp.py
"""
GCP storage backend for Roomtour.

Backed by:
  • Firestore (Native mode), collections: spaces, tours, teams, users
  • Cloud Storage: one bucket for generated models, images and panoramas

Notes
-----
• Documents are stored with their own `id` field equal to the document id,
  so `snap.to_dict()` is always a complete record.
• Timestamps are ISO-8601 UTC strings (`createdAt`, `updatedAt`) so they sort
  lexicographically and serialize to the UI unchanged.
• Updates are last-write-wins merges. `None` values are dropped because a
  missing key and a null key mean the same thing to the UI.
• Objects are uploaded public; URLs have the stable form
  https://storage.googleapis.com/<bucket>/<path>.
"""
from __future__ import annotations

import datetime as _dt
import logging
import uuid
from typing import Any, Dict, Iterable, List, Optional

from google.cloud import firestore  # type: ignore
from google.cloud.firestore_v1 import FieldFilter

from app.services.gcp_clients import get_bucket, get_firestore_client

logger = logging.getLogger(__name__)

SPACES = "spaces"
TOURS = "tours"
TEAMS = "teams"
USERS = "users"


# ───────────────────────── Helpers ─────────────────────────
def _fs() -> firestore.Client:
    return get_firestore_client()

def _col(name: str):
    return _fs().collection(name)

def _now_iso() -> str:
    return _dt.datetime.now(_dt.timezone.utc).isoformat().replace("+00:00", "Z")

def _drop_none(values: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in values.items() if v is not None}

def _merge_update(collection: str, doc_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Read-merge-write a document. Returns the merged record, or None if missing."""
    ref = _col(collection).document(doc_id)
    snap = ref.get()
    if not snap.exists:
        return None
    clean = _drop_none(updates)
    logger.info("Firestore: updating %s/%s keys=%s", collection, doc_id, ", ".join(clean))
    merged = {**(snap.to_dict() or {}), **clean, "updatedAt": _now_iso()}
    ref.set(merged, merge=True)
    return merged

def _delete_doc(collection: str, doc_id: str) -> bool:
    ref = _col(collection).document(doc_id)
    if not ref.get().exists:
        return False
    logger.info("Firestore: deleting %s/%s", collection, doc_id)
    ref.delete()
    return True

def _list_for_team(collection: str, team_id: str | None) -> List[Dict[str, Any]]:
    query = _col(collection)
    if team_id:
        query = query.where(filter=FieldFilter("teamId", "==", team_id))
    query = query.order_by("createdAt", direction=firestore.Query.DESCENDING)
    return [s.to_dict() for s in query.stream()]

# ───────────────────────── Cloud Storage ─────────────────────────
def public_url(path: str) -> str:
    return f"https://storage.googleapis.com/{get_bucket().name}/{path}"

def upload_bytes(data: bytes, path: str, content_type: str) -> str:
    """Upload and publish an object; returns its public URL."""
    blob = get_bucket().blob(path)
    blob.upload_from_string(data, content_type=content_type)
    blob.make_public()
    logger.info("Uploaded %d bytes to gs://%s/%s", len(data), get_bucket().name, path)
    return public_url(path)

def space_model_path(space_id: str, name: str) -> str:
    return f"models/{space_id}/{name}"

def space_image_path(space_id: str, name: str) -> str:
    return f"images/{space_id}/{name}"

def delete_space_files(space_id: str) -> int:
    """Delete every object generated or uploaded for a space. Returns count."""
    deleted = 0
    for prefix in (f"models/{space_id}/", f"images/{space_id}/"):
        blobs = list(get_bucket().list_blobs(prefix=prefix))
        logger.info("Deleting %d files with prefix %r", len(blobs), prefix)
        for blob in blobs:
            blob.delete()
        deleted += len(blobs)
    return deleted

# ───────────────────────── Spaces ─────────────────────────
def new_space(team_id: str, created_by: str, name: str, address: str = "",
              description: str = "", image_count: int = 1) -> Dict[str, Any]:
    now = _now_iso()
    return {
        "id": str(uuid.uuid4()),
        "teamId": team_id,
        "createdBy": created_by,
        "name": name,
        "address": address,
        "description": description,
        "status": "uploading",
        "imageCount": image_count,
        "createdAt": now,
        "updatedAt": now,
    }

def get_all_spaces(team_id: str | None = None) -> List[Dict[str, Any]]:
    return _list_for_team(SPACES, team_id)

def get_space(space_id: str) -> Optional[Dict[str, Any]]:
    snap = _col(SPACES).document(space_id).get()
    return snap.to_dict() if snap.exists else None

def create_space(space: Dict[str, Any]) -> Dict[str, Any]:
    logger.info("Firestore: creating space %s (%s)", space["id"], space.get("name"))
    _col(SPACES).document(space["id"]).set(_drop_none(space))
    return space

def update_space(space_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    return _merge_update(SPACES, space_id, updates)

def delete_space(space_id: str) -> bool:
    return _delete_doc(SPACES, space_id)

def get_spaces_by_ids(ids: Iterable[str]) -> List[Dict[str, Any]]:
    refs = [_col(SPACES).document(i) for i in dict.fromkeys(ids)]
    if not refs:
        return []
    return [s.to_dict() for s in _fs().get_all(refs) if s.exists]

def find_space_by_operation(team_id: str, operation_id: str) -> Optional[Dict[str, Any]]:
    snaps = (
        _col(SPACES)
        .where(filter=FieldFilter("teamId", "==", team_id))
        .where(filter=FieldFilter("operationId", "==", operation_id))
        .limit(1)
        .get()
    )
    return snaps[0].to_dict() if snaps else None

def team_owns_any(collection: str, team_id: str) -> bool:
    """True when at least one document of `collection` belongs to the team."""
    return bool(_col(collection).where(filter=FieldFilter("teamId", "==", team_id)).limit(1).get())
