# app/main.py
# Entrypoint: uvicorn app.main:app --host 0.0.0.0 --port 3001
from __future__ import annotations

import logging
import sys

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.rate_limit import limiter, retry_after_seconds
from app.routes import auth as auth_routes
from app.routes import generate, public, spaces, status, teams, tours

logging.basicConfig(
    stream=sys.stderr,
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Roomtour API")
app.state.limiter = limiter

app.include_router(auth_routes.router, prefix="/api")
app.include_router(teams.router,       prefix="/api")
app.include_router(spaces.router,      prefix="/api")
app.include_router(tours.router,       prefix="/api")
app.include_router(generate.router,    prefix="/api")
app.include_router(status.router,      prefix="/api")
app.include_router(public.router,      prefix="/api")


@app.get("/api/health")
@limiter.exempt
def health():
    return {"status": "ok"}


# ──────────────────────────── Error rendering ───────────────────────────
# Every error body has the shape {"error": ...}.

def _field_errors(exc: RequestValidationError) -> dict:
    """Group pydantic errors by field name: {"name": ["..."], ...}."""
    out: dict[str, list[str]] = {}
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "form")]
        key = loc[0] if loc else "_errors"
        msg = err.get("msg", "Invalid value").removeprefix("Value error, ")
        out.setdefault(key, []).append(msg)
    return out


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    content = exc.detail if isinstance(exc.detail, dict) else {"error": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("%s %s: validation failed", request.method, request.url.path)
    return JSONResponse(status_code=400, content={"error": _field_errors(exc)})


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning("Rate limit exceeded: %s %s (%s)", request.method, request.url.path, exc.detail)
    limit = settings.generate_rate_limit if request.url.path.startswith("/api/generate") else settings.rate_limit
    return JSONResponse(
        status_code=429,
        content={"error": f"Rate limit exceeded: {exc.detail}"},
        headers={"Retry-After": retry_after_seconds(limit)},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("UNHANDLED in %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


app.add_middleware(SlowAPIMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
