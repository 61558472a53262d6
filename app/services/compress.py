# app/services/compress.py
"""
Post-processing for finished worlds: download the provider's assets, recompress
images to WebP and re-host everything in our bucket under models/<space_id>/.
"""
from __future__ import annotations

import asyncio
import io
import logging
from typing import Any, Dict, Optional

import requests
from PIL import Image

from app.core.config import settings
from app.services import storage_gcp as storage

logger = logging.getLogger(__name__)

WEBP_QUALITY = 82
THUMBNAIL_MAX_WIDTH = 800


class AssetDownloadError(RuntimeError):
    pass


def download_bytes(url: str) -> bytes:
    try:
        resp = requests.get(url, timeout=settings.asset_download_timeout_s)
    except requests.RequestException as exc:
        raise AssetDownloadError(f"Download failed: {url} ({exc})") from exc
    if not resp.ok:
        raise AssetDownloadError(f"Download failed: {url} ({resp.status_code})")
    return resp.content


def to_webp(raw: bytes, max_width: int | None = None) -> bytes:
    """Re-encode an image as WebP, shrinking (never enlarging) to `max_width`."""
    img = Image.open(io.BytesIO(raw))
    if img.mode not in ("RGB", "RGBA"):
        # palette/greyscale images may carry alpha as a transparency entry
        has_alpha = "A" in img.getbands() or "transparency" in img.info
        img = img.convert("RGBA" if has_alpha else "RGB")
    if max_width and img.width > max_width:
        height = max(1, round(img.height * max_width / img.width))
        img = img.resize((max_width, height), Image.Resampling.LANCZOS)
    out = io.BytesIO()
    img.save(out, format="WEBP", quality=WEBP_QUALITY)
    return out.getvalue()


def compress_image(url: str, space_id: str, name: str, max_width: int | None = None) -> str:
    webp = to_webp(download_bytes(url), max_width)
    return storage.upload_bytes(webp, storage.space_model_path(space_id, f"{name}.webp"), "image/webp")


def reupload_binary(url: str, space_id: str, name: str, content_type: str) -> str:
    return storage.upload_bytes(download_bytes(url), storage.space_model_path(space_id, name), content_type)


def _jobs(space_id: str, assets: Dict[str, Any]) -> Dict[str, tuple]:
    """Map result key -> (callable, *args) for every asset the world exposes."""
    spz: Dict[str, Optional[str]] = ((assets.get("splats") or {}).get("spz_urls") or {})
    glb = (assets.get("mesh") or {}).get("glb_url")
    best_splat = spz.get("full_res") or spz.get("500k") or spz.get("100k")

    jobs: Dict[str, tuple] = {}
    if assets.get("thumbnail_url"):
        jobs["thumbnailUrl"] = (compress_image, assets["thumbnail_url"], space_id, "thumbnail", THUMBNAIL_MAX_WIDTH)
    if assets.get("panorama_url"):
        jobs["panoramaUrl"] = (compress_image, assets["panorama_url"], space_id, "panorama")
    if best_splat:
        jobs["splatUrl"] = (reupload_binary, best_splat, space_id, "model.spz", "application/octet-stream")
    if spz.get("500k"):
        jobs["splatUrl500k"] = (reupload_binary, spz["500k"], space_id, "model-500k.spz", "application/octet-stream")
    if spz.get("100k"):
        jobs["splatUrl100k"] = (reupload_binary, spz["100k"], space_id, "model-100k.spz", "application/octet-stream")
    if glb:
        jobs["meshUrl"] = (reupload_binary, glb, space_id, "model.glb", "model/gltf-binary")
    return jobs


async def compress_and_upload_assets(space_id: str, assets: Dict[str, Any] | None) -> Dict[str, str]:
    """Process all assets concurrently; any failure fails the whole batch."""
    jobs = _jobs(space_id, assets or {})
    if not jobs:
        return {}
    logger.info("Post-processing %d assets for space %s", len(jobs), space_id)
    urls = await asyncio.gather(*(asyncio.to_thread(fn, *args) for fn, *args in jobs.values()))
    return dict(zip(jobs.keys(), urls))
