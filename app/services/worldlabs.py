# app/services/worldlabs.py
"""
Thin client for the World Labs Marble API (image/text → navigable 3D world).

Generation is asynchronous: `worlds:generate` returns an operation id which
is polled through `operations/{id}` until `done`; the finished operation's
`response.world_id` is then resolved with `worlds/{id}`.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import requests

from app.core.config import settings

logger = logging.getLogger(__name__)

MODEL_PLUS = "Marble 0.1-plus"
MODEL_MINI = "Marble 0.1-mini"


class WorldLabsError(RuntimeError):
    """Non-2xx answer, or no answer at all (`status` is None)."""

    def __init__(self, path: str, status: Optional[int], body: Any):
        self.path = path
        self.status = status
        self.body = body
        detail = body if isinstance(body, str) else json.dumps(body)
        super().__init__(f"{path}: {detail}" if status is None else f"{path}: {status} {detail}")


def _api(path: str, method: str = "GET", payload: Optional[dict] = None) -> Dict[str, Any]:
    url = f"{settings.worldlabs_base_url.rstrip('/')}/{path}"
    try:
        resp = requests.request(
            method,
            url,
            json=payload,
            headers={"WLT-Api-Key": settings.worldlabs_api_key, "Content-Type": "application/json"},
            timeout=settings.worldlabs_timeout_s,
        )
    except requests.RequestException as exc:
        raise WorldLabsError(path, None, str(exc)) from exc
    try:
        body = resp.json()
    except ValueError:
        body = resp.text
    if not resp.ok:
        raise WorldLabsError(path, resp.status_code, body)
    return body


def _generate(world_prompt: dict, draft: bool) -> str:
    model = MODEL_MINI if draft else MODEL_PLUS
    op = _api("worlds:generate", "POST", {"world_prompt": world_prompt, "model": model})
    logger.info("World generation submitted: operation=%s model=%s", op.get("operation_id"), model)
    return op["operation_id"]


def generate_world_from_image_base64(image_b64: str, text_prompt: str | None = None, draft: bool = False) -> str:
    return _generate(
        {
            "type": "image",
            "text_prompt": text_prompt or None,
            "disable_recaption": False,
            "image_prompt": {"source": "data_base64", "data_base64": image_b64},
        },
        draft,
    )


def generate_world_from_text(text_prompt: str, draft: bool = False) -> str:
    return _generate(
        {"type": "text", "text_prompt": text_prompt, "disable_recaption": False},
        draft,
    )


def get_operation(operation_id: str) -> Dict[str, Any]:
    """{operation_id, done, response?: {world_id}, error?: {message, code?}}"""
    return _api(f"operations/{operation_id}")


def get_world(world_id: str) -> Dict[str, Any]:
    """{world_id, display_name?, world_marble_url?, assets: {...}}"""
    return _api(f"worlds/{world_id}")
