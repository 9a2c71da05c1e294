# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Health check endpoints.

This module provides health and readiness endpoints for the API.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from src.infrastructure.database import ProfileDatabase
from src.infrastructure.database.migrations.runner import get_migration_status

logger = logging.getLogger(__name__)

router = APIRouter()

# Track server start time for uptime calculation
_server_start_time = time.time()


class ComponentHealth(BaseModel):
    """Individual component health status."""
    status: str = Field(description="Component status")
    latency_ms: float | None = Field(None, description="Response latency in ms")
    message: str | None = Field(None, description="Additional status message")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(description="Overall health status")
    timestamp: datetime = Field(description="Current server timestamp")
    version: str = Field(description="API version")
    environment: str = Field(description="Deployment environment")
    uptime_seconds: int = Field(description="Server uptime in seconds")


class ReadinessResponse(BaseModel):
    """Readiness check response model."""
    ready: bool = Field(description="Whether the service is ready")
    checks: dict[str, Any] = Field(description="Individual check results")


async def check_database(database: ProfileDatabase | None) -> ComponentHealth:
    """Check the profile database connection."""
    if database is None:
        return ComponentHealth(status="unhealthy", message="Database not initialized")

    start = time.time()
    healthy = await database.check_connection()
    latency = (time.time() - start) * 1000
    if not healthy:
        logger.error("Database health check failed")
        return ComponentHealth(status="unhealthy", message="Database unreachable")
    return ComponentHealth(status="healthy", latency_ms=round(latency, 2))


async def check_migrations(database: ProfileDatabase) -> dict[str, Any]:
    """Report whether the schema is at the latest migration."""
    try:
        status = await get_migration_status(database.engine)
    except Exception as e:
        logger.error("Migration status check failed: %s", str(e))
        return {"status": "unhealthy", "message": "Migration status unavailable"}

    return {
        "status": "healthy" if status["is_up_to_date"] else "pending",
        "current_version": status["current_version"],
        "pending_migrations": status["pending_migrations"],
    }


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Liveness check. Does not touch dependencies."""
    settings = request.app.state.settings
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        version="1.0.0",
        environment=settings.environment,
        uptime_seconds=int(time.time() - _server_start_time),
    )


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness_check(request: Request) -> JSONResponse:
    """Check if the API is ready to accept traffic.

    Returns:
        ReadinessResponse with individual check results, 503 if not ready.
    """
    database = getattr(request.app.state, "database", None)
    db_health = await check_database(database)
    checks: dict[str, Any] = {
        "database": {"status": db_health.status, "latency_ms": db_health.latency_ms}
    }
    ready = db_health.status == "healthy"
    if ready:
        checks["migrations"] = await check_migrations(database)
        ready = checks["migrations"]["status"] == "healthy"

    body = ReadinessResponse(ready=ready, checks=checks)
    return JSONResponse(status_code=200 if ready else 503, content=body.model_dump())
