# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI Application Factory.

This module provides the main application factory for the profile
service API.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.errors import register_exception_handlers
from src.api.middleware import RequestContextMiddleware
from src.api.routes import health
from src.api.v1 import router as v1_router
from src.core.config import Settings, get_settings
from src.infrastructure.database import ProfileDatabase
from src.infrastructure.database.migrations.runner import run_profile_migrations
from src.infrastructure.identity import IdentityServiceClient
from src.infrastructure.notifications import create_notification_dispatcher
from src.infrastructure.storage import create_file_storage
from src.utils.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Creates the long-lived components and stores them on app.state:
    - Profile database (with pending migrations applied if enabled)
    - Shared httpx client and identity service client
    - Notification dispatcher
    - File storage backend

    Args:
        app: The FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings: Settings = app.state.settings
    logger.info(
        "Starting profile service API (environment=%s, debug=%s)",
        settings.environment,
        settings.debug,
    )

    # =========================================================================
    # Startup
    # =========================================================================

    database = ProfileDatabase.from_settings(settings)
    if settings.profile_db.run_migrations:
        try:
            applied = await run_profile_migrations(database.engine)
            logger.info("Profile migrations applied: %s", applied or "none")
        except Exception:
            logger.error("Failed to apply profile migrations", exc_info=True)
            await database.close()
            raise

    http_client = httpx.AsyncClient(timeout=settings.identity_service.timeout)
    identity_client = IdentityServiceClient.from_settings(settings.identity_service, http_client)

    app.state.database = database
    app.state.http_client = http_client
    app.state.identity_client = identity_client
    app.state.notification_dispatcher = create_notification_dispatcher(settings, identity_client)
    app.state.file_storage = create_file_storage(settings.file_storage)

    yield

    # =========================================================================
    # Shutdown
    # =========================================================================

    try:
        await http_client.aclose()
        logger.info("HTTP client closed")
    except Exception as e:
        logger.warning("Error closing HTTP client: %s", str(e))

    try:
        await database.close()
        logger.info("Database connections closed")
    except Exception as e:
        logger.warning("Error closing database connections: %s", str(e))

    logger.info("Shutting down profile service API")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings, defaults to get_settings().

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or get_settings()
    setup_logging(settings)

    app = FastAPI(
        title="Profile Service API",
        description="Student profiles and account provisioning",
        version="1.0.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
        redirect_slashes=False,
    )

    # =========================================================================
    # State
    # =========================================================================
    app.state.settings = settings

    # =========================================================================
    # Exception handlers
    # =========================================================================
    register_exception_handlers(app)

    # =========================================================================
    # Middleware (order matters - last added is first executed)
    # =========================================================================
    app.add_middleware(RequestContextMiddleware)

    # CORS middleware (should be last to execute first)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins_list,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=settings.cors.allow_methods,
        allow_headers=settings.cors.allow_headers,
    )

    # =========================================================================
    # Routes
    # =========================================================================
    app.include_router(health.router, tags=["Health"])
    app.include_router(v1_router)

    return app
