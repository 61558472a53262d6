# app/routes/status.py
import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from app.services import storage, worldlabs
from app.services.auth import AuthContext, get_team_context
from app.services.compress import AssetDownloadError, compress_and_upload_assets

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/status", tags=["status"])


@router.get("/{operation_id}")
async def generation_status(operation_id: str, ctx: AuthContext = Depends(get_team_context)):
    """
    Poll a generation operation for one of the team's spaces.

    When the provider reports success the world's assets are re-hosted and the
    space becomes `ready`; on failure the space becomes `failed`. Spaces that are
    already `ready` for this operation are not reprocessed.
    """
    space = await asyncio.to_thread(storage.find_space_by_operation, ctx.team_id, operation_id)
    if not space:
        raise HTTPException(404, "Operation not found")
    logger.info("Status check: operation %s (space %s)", operation_id, space["id"])

    try:
        if space.get("status") == "ready" and space.get("worldId"):
            world = await asyncio.to_thread(worldlabs.get_world, space["worldId"])
            return {"done": True, "world": world}

        operation = await asyncio.to_thread(worldlabs.get_operation, operation_id)

        if operation.get("done") and operation.get("response"):
            world_id = operation["response"]["world_id"]
            world = await asyncio.to_thread(worldlabs.get_world, world_id)
            logger.info("Generation complete: space %s, world %s", space["id"], world_id)

            urls = await compress_and_upload_assets(space["id"], world.get("assets"))
            await asyncio.to_thread(storage.update_space, space["id"], {
                "status": "ready",
                "worldId": world.get("world_id", world_id),
                "marbleUrl": world.get("world_marble_url"),
                **urls,
            })
            return {"done": True, "world": world}

        if operation.get("done") and operation.get("error"):
            message = operation["error"].get("message") or "Generation failed"
            logger.warning("Generation failed: space %s: %s", space["id"], message)
            await asyncio.to_thread(
                storage.update_space, space["id"], {"status": "failed", "errorMessage": message}
            )
            return {"done": True, "error": message}

        return {"done": False, "operationId": operation_id}
    except (worldlabs.WorldLabsError, AssetDownloadError) as exc:
        logger.error("Status check error for operation %s: %s", operation_id, exc)
        return JSONResponse(status_code=500, content={"error": str(exc)})
