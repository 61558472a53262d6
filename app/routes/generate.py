# app/routes/generate.py
import asyncio
import base64
import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.rate_limit import limiter
from app.services import storage, worldlabs
from app.services.auth import AuthContext, get_team_context

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/generate", tags=["generate"])

ALLOWED_TYPES = {"image/jpeg", "image/png", "image/webp", "image/heic"}


def _extension(filename: str | None) -> str:
    if filename and "." in filename:
        return filename.rsplit(".", 1)[-1].lower()
    return "jpg"


@router.post("")
@limiter.limit(settings.generate_rate_limit)
async def generate(
    request: Request,
    spaceId: str | None = Form(None),
    model: str | None = Form(None),
    file: UploadFile | None = File(None),
    ctx: AuthContext = Depends(get_team_context),
):
    """Kick off world generation for a space, from an uploaded photo or its name."""
    if not spaceId:
        raise HTTPException(400, "spaceId is required")

    space = await asyncio.to_thread(storage.get_space, spaceId)
    if not space or space.get("teamId") != ctx.team_id:
        raise HTTPException(404, "Space not found")

    draft = model == worldlabs.MODEL_MINI
    try:
        if file is not None:
            content_type = file.content_type or "image/jpeg"
            if content_type not in ALLOWED_TYPES:
                raise HTTPException(400, "Invalid file type. Allowed: JPEG, PNG, WebP, HEIC")
            data = await file.read()
            if len(data) > settings.max_upload_mb * 1024 * 1024:
                raise HTTPException(413, f"File too large (max {settings.max_upload_mb}MB)")

            logger.info("Image uploaded for space %s (%d bytes)", spaceId, len(data))
            path = storage.space_image_path(spaceId, f"original.{_extension(file.filename)}")
            image_url = await asyncio.to_thread(storage.upload_bytes, data, path, content_type)
            await asyncio.to_thread(storage.update_space, spaceId, {"originalImageUrl": image_url})

            operation_id = await asyncio.to_thread(
                worldlabs.generate_world_from_image_base64,
                base64.b64encode(data).decode(), space.get("name"), draft,
            )
        else:
            operation_id = await asyncio.to_thread(
                worldlabs.generate_world_from_text, space.get("name") or "", draft
            )
    except worldlabs.WorldLabsError as exc:
        logger.error("Generate error for space %s: %s", spaceId, exc)
        return JSONResponse(status_code=500, content={"error": str(exc)})

    await asyncio.to_thread(
        storage.update_space, spaceId, {"operationId": operation_id, "status": "generating"}
    )
    logger.info("Generation started: space %s, model %s", spaceId, "mini" if draft else "plus")
    return {"operationId": operation_id, "status": "generating"}
