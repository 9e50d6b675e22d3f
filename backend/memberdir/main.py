"""
FastAPI application entrypoint.

Lifespan:
  • On startup: verify DB connectivity.
  • On shutdown: dispose the engine cleanly.

Routers:
  • /api/profiles — own profile + approved-member directory
  • /api/projects — projects and their needs
  • /api/needs    — needs taxonomy
  • /api/jobs     — job board
  • /api/favorites, /api/follows — private bookmarks
  • /admin        — review queue, moderation, reminder sweep
  • /webhooks     — payment provider callbacks
  • /health       — shallow liveness probe

Errors:
  • DirectoryError subclasses → JSON {"error", "code", "reason"?} with
    their status code. Everything else is left to FastAPI (500).
"""

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from memberdir.core.config import settings
from memberdir.core.database import engine
from memberdir.core.errors import DirectoryError
from memberdir.routers.admin import router as admin_router
from memberdir.routers.favorites import router as favorites_router
from memberdir.routers.follows import router as follows_router
from memberdir.routers.jobs import router as jobs_router
from memberdir.routers.needs import router as needs_router
from memberdir.routers.profiles import router as profiles_router
from memberdir.routers.projects import router as projects_router
from memberdir.routers.webhooks import router as webhooks_router

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle."""

    # Startup — verify DB is reachable
    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("Database connection verified ✓")
    except Exception:
        logger.warning(
            "Could not reach the database on startup. "
            "The app will start, but requests will fail until the DB is available."
        )

    yield  # ← application runs here

    # Shutdown — clean up connection pool
    await engine.dispose()
    logger.info("Database engine disposed ✓")


# ── App ─────────────────────────────────────────────────────
app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    description=(
        "Membership-gated directory: profiles with manual approval, "
        "projects and their needs, and a job board."
    ),
    lifespan=lifespan,
)


@app.exception_handler(DirectoryError)
async def directory_error_handler(_request: Request, exc: DirectoryError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Unhandled directory error: %s", exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Mount routers
app.include_router(profiles_router, prefix="/api/profiles")
app.include_router(projects_router, prefix="/api/projects")
app.include_router(needs_router, prefix="/api/needs")
app.include_router(jobs_router, prefix="/api/jobs")
app.include_router(favorites_router, prefix="/api/favorites")
app.include_router(follows_router, prefix="/api/follows")
app.include_router(admin_router, prefix="/admin")
app.include_router(webhooks_router, prefix="/webhooks")


# ── Health check ────────────────────────────────────────────
@app.get(
    "/health",
    tags=["System"],
    summary="Liveness probe",
)
async def health_check() -> dict[str, str]:
    """Shallow health check — confirms the process is alive."""
    return {"status": "healthy"}
