#!/usr/bin/env python3
"""
Field Visit Import API - HTTP layer for bulk submission imports.

Serves preview, background import runs with progress polling, cancellation
and error-log downloads for operational staff.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fieldvisit.config import ConfigLoader
from fieldvisit.importer.data import read_batch_settings
from fieldvisit.logging_config import configure_logging

from .dependencies import authenticate_pb, pb
from .settings import get_settings

configure_logging(source="api")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifecycle - startup and shutdown."""
    settings = get_settings()

    if not settings.skip_pb_auth:
        await authenticate_pb()
    else:
        logger.warning("Skipping PocketBase authentication (SKIP_PB_AUTH=true)")

    yield


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Field Visit Import API",
        description="Bulk import of supervision visit submissions",
        lifespan=lifespan,
    )

    settings = get_settings()

    # CORS configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition"],
    )

    from .routers import imports

    app.include_router(imports.router)

    @app.get("/health")
    async def health_check() -> dict[str, Any]:
        """Health check endpoint, including the config store."""
        config_health = await asyncio.to_thread(ConfigLoader(pb).health_check)
        batch_settings = await asyncio.to_thread(read_batch_settings, pb)
        return {
            "status": "healthy",
            "service": "fieldvisit-import-api",
            "config": config_health,
            "batch_api": batch_settings.to_dict() if batch_settings else None,
        }

    return app


# Create app instance for uvicorn
app = create_app()
