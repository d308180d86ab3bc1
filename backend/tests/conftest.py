"""
Shared pytest fixtures for the Relay backend test suite.

Provides a mocked provider gateway, a FastAPI test application wired to it,
an async HTTP client, and sample provider payloads.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Any
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from relay.config import reset_settings
from relay.gateway.client import ProviderGateway
from relay.models.vector_store import VectorStore, VectorStoreFile, VectorStoreFileBatch


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _test_settings(monkeypatch: pytest.MonkeyPatch):
    """Pin the environment so a developer's .env cannot leak into tests."""
    monkeypatch.setenv("ENVIRONMENT", "test")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("POLL_DEFAULT_MAX_WAIT_MS", "30000")
    monkeypatch.setenv("POLL_MAX_WAIT_MS", "600000")
    reset_settings()
    yield
    reset_settings()


# ---------------------------------------------------------------------------
# Sample provider payloads
# ---------------------------------------------------------------------------


def _vector_store(status: str = "completed", **overrides: Any) -> VectorStore:
    payload: dict[str, Any] = {
        "id": "vs_abc123",
        "object": "vector_store",
        "name": "Support FAQ",
        "status": status,
        "file_counts": {"in_progress": 0, "completed": 2, "failed": 0, "cancelled": 0, "total": 2},
        "usage_bytes": 2048,
        "created_at": 1735689600,
    }
    payload.update(overrides)
    return VectorStore.model_validate(payload)


def _vector_store_file(status: str = "completed", **overrides: Any) -> VectorStoreFile:
    payload: dict[str, Any] = {
        "id": "file-xyz789",
        "object": "vector_store.file",
        "vector_store_id": "vs_abc123",
        "status": status,
        "usage_bytes": 1024,
        "created_at": 1735689600,
    }
    payload.update(overrides)
    return VectorStoreFile.model_validate(payload)


def _file_batch(status: str = "completed", **overrides: Any) -> VectorStoreFileBatch:
    payload: dict[str, Any] = {
        "id": "vsfb_123",
        "object": "vector_store.files_batch",
        "vector_store_id": "vs_abc123",
        "status": status,
        "file_counts": {"in_progress": 0, "completed": 3, "failed": 0, "cancelled": 0, "total": 3},
        "created_at": 1735689600,
    }
    payload.update(overrides)
    return VectorStoreFileBatch.model_validate(payload)


@pytest.fixture
def make_vector_store():
    return _vector_store


@pytest.fixture
def make_vector_store_file():
    return _vector_store_file


@pytest.fixture
def make_file_batch():
    return _file_batch


# ---------------------------------------------------------------------------
# Gateway and service fixtures
# ---------------------------------------------------------------------------


class SleepRecorder:
    """Stand-in for ``asyncio.sleep`` that records delays without waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def mock_gateway() -> AsyncMock:
    """Return an AsyncMock standing in for ProviderGateway."""
    return AsyncMock(spec=ProviderGateway)


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


# ---------------------------------------------------------------------------
# FastAPI test app and async client
# ---------------------------------------------------------------------------


@pytest.fixture
async def test_app(mock_gateway: AsyncMock, sleep_recorder: SleepRecorder):
    """Create the real application with the provider gateway mocked out.

    The lifespan is not run by ASGITransport, so no real HTTP client is
    created. The service is built with a recording sleep so poll endpoints
    return immediately.
    """
    from relay.api.v1.endpoints.vector_stores import get_vector_store_service
    from relay.gateway.client import get_gateway
    from relay.main import create_application
    from relay.services.vector_stores import VectorStoreService

    app = create_application()

    async def _override_get_gateway():
        yield mock_gateway

    def _override_service() -> VectorStoreService:
        return VectorStoreService(mock_gateway, sleep=sleep_recorder)

    app.dependency_overrides[get_gateway] = _override_get_gateway
    app.dependency_overrides[get_vector_store_service] = _override_service

    yield app

    app.dependency_overrides.clear()


@pytest.fixture
async def async_client(test_app) -> AsyncGenerator[AsyncClient, None]:
    """Provide an httpx.AsyncClient wired to the test FastAPI app."""
    transport = ASGITransport(app=test_app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
