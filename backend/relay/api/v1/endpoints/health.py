"""
Health check endpoint.

Reports liveness and whether the provider gateway has been initialised
with credentials. The provider itself is not contacted.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from fastapi import APIRouter
from pydantic import BaseModel, Field

from relay.config import get_settings
from relay.gateway.client import get_gateway_sync

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Basic health check response."""

    status: str = Field(..., description="Overall service status: 'ok' or 'degraded'.")
    timestamp: str = Field(..., description="ISO-8601 UTC timestamp of the check.")
    environment: str = Field(..., description="Deployment environment.")
    gateway_connected: bool = Field(..., description="Whether the provider client is initialised.")
    gateway_configured: bool = Field(..., description="Whether an API key is set.")


def _gateway_connected() -> bool:
    try:
        get_gateway_sync()
    except RuntimeError:
        return False
    return True


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Basic health check",
    description="Returns liveness and provider gateway configuration status.",
)
async def health_check() -> HealthResponse:
    settings = get_settings()
    connected = _gateway_connected()
    configured = bool(settings.OPENAI_API_KEY)
    if not (connected and configured):
        logger.warning(
            "Health check degraded",
            extra={"gateway_connected": connected, "gateway_configured": configured},
        )

    return HealthResponse(
        status="ok" if connected and configured else "degraded",
        timestamp=datetime.now(UTC).isoformat(),
        environment=settings.ENVIRONMENT,
        gateway_connected=connected,
        gateway_configured=configured,
    )
