"""Application entry point for the FastAPI backend-for-frontend."""
from __future__ import annotations

import logging
import os
from typing import Iterable

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import get_settings
from .database import init_db
from .routers import (
    auth_router,
    follows_router,
    posts_router,
    profiles_router,
    stories_router,
    system_router,
    uploads_router,
)
from .routers.deps import get_backend_client

logger = logging.getLogger(__name__)

settings = get_settings()
APP_NAME = settings.app_name
API_VERSION = settings.api_version

app = FastAPI(title=APP_NAME, version=API_VERSION)

cors_origins = os.getenv("CORS_ORIGINS")
if cors_origins:
    origins: Iterable[str] = [origin.strip() for origin in cors_origins.split(",") if origin.strip()]
else:
    origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(profiles_router)
app.include_router(follows_router)
app.include_router(posts_router)
app.include_router(stories_router)
app.include_router(uploads_router)
app.include_router(system_router)


@app.on_event("startup")
async def _startup() -> None:
    """Ensure the auth state table exists before serving."""

    try:
        init_db()
    except Exception:  # pragma: no cover - best effort logging
        logger.exception("Database initialisation failed")
        raise

    logger.info("Using backend at %s (%s)", settings.supabase_url, settings.environment)


@app.on_event("shutdown")
async def _shutdown() -> None:
    """Release the pooled backend connection."""

    get_backend_client().close()
    get_backend_client.cache_clear()


@app.get("/api", tags=["system"])
def api_info() -> dict[str, str]:
    return {"service": APP_NAME, "version": API_VERSION}
