"""careops scheduling API entry point.

Start with:
    uvicorn careops.api.main:app --reload --host 0.0.0.0 --port 8000

Appointments are created, moved and cancelled through /api/v1/schedules;
weekly templates are managed and applied through /api/v1/schedule-templates;
leave is recorded through /api/v1/leave-events.
"""
from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from careops.config.scheduling import load_scheduling_config
from careops.core.exceptions import ProjectError, UnauthorizedError
from careops.core.logger import configure
from careops.infra.database.engine import (
    build_engine,
    build_session_factory,
    close_engine,
    ensure_database_exists,
    init_db,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # ── Startup ──────────────────────────────────────────────────
    configure()

    await ensure_database_exists()
    engine = build_engine()
    app.state.session_factory = build_session_factory(engine)
    await init_db()

    app.state.scheduling_config = load_scheduling_config()
    logger.info("API: scheduling config %s", app.state.scheduling_config)

    yield

    # ── Shutdown ─────────────────────────────────────────────────
    await close_engine()
    logger.info("API: engine disposed")


app = FastAPI(
    title="careops Scheduling API",
    version="1.0.0",
    description="Appointments with per-worker overlap protection, weekly schedule templates and leave events.",
    lifespan=lifespan,
)

# Rate limiter: default limit for every route, set via API_RATE_LIMIT (default 60/minute)
_api_rate_limit = os.environ.get("API_RATE_LIMIT", "60/minute")
_rate_limit_enabled = os.environ.get("API_RATE_LIMIT_ENABLED", "true").strip().lower() in ("1", "true", "yes")
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[_api_rate_limit],
    enabled=_rate_limit_enabled,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

_allowed_origins = os.environ.get(
    "CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000"
).split(",")

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Optional API key authentication ──────────────────────────────
# Set ADMIN_API_KEY to protect all /api/v1/* endpoints; requests must then
# send  X-Api-Key: <value>. Unset means open (dev) mode.
_ADMIN_API_KEY = os.environ.get("ADMIN_API_KEY", "").strip() or None


@app.middleware("http")
async def api_key_middleware(request: Request, call_next):
    if _ADMIN_API_KEY and request.url.path.startswith("/api/v1"):
        provided = request.headers.get("X-Api-Key")
        if provided != _ADMIN_API_KEY:
            return JSONResponse(
                status_code=401,
                content={"error": UnauthorizedError("Unauthorized: set X-Api-Key header").public_dict()},
            )
    return await call_next(request)


@app.exception_handler(ProjectError)
async def project_error_handler(request: Request, exc: ProjectError):
    if exc.http_status >= 500:
        logger.error("API: %s %s failed: %s", request.method, request.url.path, exc.to_dict())
    else:
        logger.info(
            "API: %s %s rejected (%s): %s",
            request.method, request.url.path, exc.code, exc.message,
        )
    return JSONResponse(status_code=exc.http_status, content={"error": exc.public_dict()})


# ── Routers ───────────────────────────────────────────────────────
from careops.api.routers import leave_events, schedules, templates  # noqa: E402

app.include_router(schedules.router, prefix="/api/v1")
app.include_router(templates.router, prefix="/api/v1")
app.include_router(leave_events.router, prefix="/api/v1")


@app.get("/health", tags=["health"])
async def health():
    return {"status": "ok"}
