"""
Voice Canvas FastAPI application.

Entry point for the API server.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.config import settings
from backend.middleware.rate_limit import rate_limiter
from backend.models.command import HealthResponse
from backend.routes import commands as command_routes
from backend.services.command_channel import command_channel

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

CLEANUP_INTERVAL_SECONDS = 30


# Background task for cleanup
async def cleanup_task():
    """
    Background task to evict expired commands, stale plugin connections and
    old rate limit entries.

    Runs every 30 seconds.
    """
    while True:
        try:
            evicted = command_channel.evict_expired()
            if evicted > 0:
                logger.info("Cleaned up %d expired commands", evicted)

            # Clean up old rate limit entries (daily window plus slack)
            rate_limiter.cleanup_old_entries(max_age_hours=25)

            active = command_channel.connected_count()
            if active:
                logger.debug("Active plugin connections: %d", active)
        except Exception:
            logger.exception("Error in cleanup task")

        await asyncio.sleep(CLEANUP_INTERVAL_SECONDS)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI application.

    Starts the background cleanup task and stops it on shutdown.
    """
    cleanup_task_handle = asyncio.create_task(cleanup_task())
    logger.info("Background cleanup task started")

    yield

    cleanup_task_handle.cancel()
    try:
        await cleanup_task_handle
    except asyncio.CancelledError:
        logger.info("Background cleanup task stopped")


app = FastAPI(
    title="Voice Canvas",
    docs_url=None,
    redoc_url=None,
    lifespan=lifespan,
)

# Plugins and capture pages run on other origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Plugin-ID"],
)

# Register routes
app.include_router(command_routes.router)


@app.get("/api/health")
async def health() -> HealthResponse:
    """Health check endpoint for uptime monitoring."""
    return HealthResponse(timestamp=datetime.now(UTC), environment=settings.ENVIRONMENT)
