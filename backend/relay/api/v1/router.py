"""
Main API v1 router.

Aggregates all endpoint sub-routers. Include it from the application entry
point under the /api/v1 prefix:

    from relay.api.v1.router import api_v1_router
    app.include_router(api_v1_router, prefix="/api/v1")
"""

from __future__ import annotations

from fastapi import APIRouter

from relay.api.v1.endpoints.health import router as health_router
from relay.api.v1.endpoints.vector_stores import router as vector_stores_router

api_v1_router = APIRouter()

# Health check -- /api/v1/health
api_v1_router.include_router(health_router)

# Vector stores, files, file batches and polling -- /api/v1/vector-stores/*
api_v1_router.include_router(vector_stores_router)
