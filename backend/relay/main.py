from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from relay.api.v1.router import api_v1_router
from relay.config import get_settings
from relay.core.exceptions import AppException
from relay.core.logging import setup_logging
from relay.gateway.client import close_gateway, connect_gateway

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Manage startup and shutdown of the provider client."""
    settings = get_settings()
    setup_logging(level=settings.LOG_LEVEL)

    logger.info(
        "Starting Relay backend",
        extra={"environment": settings.ENVIRONMENT},
    )

    # --- Startup ---
    await connect_gateway()
    logger.info("Relay backend ready")

    yield

    # --- Shutdown ---
    logger.info("Shutting down Relay backend")
    await close_gateway()
    logger.info("Relay backend stopped")


def create_application() -> FastAPI:
    """Build and configure the FastAPI application."""
    settings = get_settings()

    application = FastAPI(
        title="Relay API",
        description="Validating facade over a provider's vector store API",
        version="0.1.0",
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        docs_url="/api/docs" if not settings.is_production else None,
        redoc_url="/api/redoc" if not settings.is_production else None,
        openapi_url="/api/openapi.json" if not settings.is_production else None,
    )

    # --- CORS ---
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Exception handlers ---
    @application.exception_handler(AppException)
    async def app_exception_handler(_request: Request, exc: AppException) -> ORJSONResponse:
        logger.warning(
            "Application error: %s",
            exc.message,
            extra={"error_code": exc.error_code, "status_code": exc.status_code},
        )
        return ORJSONResponse(
            status_code=exc.status_code,
            content=exc.to_dict(),
        )

    @application.exception_handler(Exception)
    async def unhandled_exception_handler(
        _request: Request, exc: Exception
    ) -> ORJSONResponse:
        logger.exception("Unhandled exception: %s", str(exc))
        return ORJSONResponse(
            status_code=500,
            content={
                "error": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
            },
        )

    # --- Routers ---
    application.include_router(api_v1_router, prefix="/api/v1")

    return application


app = create_application()
