"""
Integration tests for the vector store API endpoints.

Exercises request validation, the provider pass-through, error rendering
and the poll endpoints through the REST API with the gateway mocked.
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient

from relay.config import reset_settings
from relay.core.exceptions import GatewayError


class TestCreateVectorStore:
    """POST /api/v1/vector-stores"""

    async def test_create_vector_store(
        self, async_client: AsyncClient, mock_gateway: AsyncMock, make_vector_store
    ):
        mock_gateway.create_vector_store.return_value = make_vector_store(status="in_progress")

        response = await async_client.post(
            "/api/v1/vector-stores",
            json={
                "name": "Support FAQ",
                "file_ids": ["file-a1"],
                "chunking_strategy": {
                    "type": "static",
                    "static": {"max_chunk_size_tokens": 800, "chunk_overlap_tokens": 400},
                },
                "metadata": {"team": "support"},
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == "vs_abc123"
        assert data["status"] == "in_progress"
        mock_gateway.create_vector_store.assert_awaited_once()

    async def test_invalid_chunking_rejected_before_provider(
        self, async_client: AsyncClient, mock_gateway: AsyncMock
    ):
        response = await async_client.post(
            "/api/v1/vector-stores",
            json={
                "chunking_strategy": {
                    "type": "static",
                    "static": {"max_chunk_size_tokens": 50, "chunk_overlap_tokens": 0},
                }
            },
        )

        assert response.status_code == 422
        messages = " ".join(err["msg"] for err in response.json()["detail"])
        assert "must be between 100 and 4096. Received: 50" in messages
        mock_gateway.create_vector_store.assert_not_awaited()

    async def test_invalid_metadata_rejected(self, async_client: AsyncClient, mock_gateway: AsyncMock):
        response = await async_client.post(
            "/api/v1/vector-stores",
            json={"metadata": ["not", "an", "object"]},
        )

        assert response.status_code == 422
        messages = " ".join(err["msg"] for err in response.json()["detail"])
        assert "Metadata must be an object, not an array" in messages


class TestRetrieveAndList:
    async def test_retrieve(self, async_client: AsyncClient, mock_gateway: AsyncMock, make_vector_store):
        mock_gateway.retrieve_vector_store.return_value = make_vector_store()

        response = await async_client.get("/api/v1/vector-stores/vs_abc123")

        assert response.status_code == 200
        assert response.json()["file_counts"]["completed"] == 2
        mock_gateway.retrieve_vector_store.assert_awaited_once_with("vs_abc123")

    async def test_list(self, async_client: AsyncClient, mock_gateway: AsyncMock, make_vector_store):
        mock_gateway.list_vector_stores.return_value = [make_vector_store()]

        response = await async_client.get("/api/v1/vector-stores", params={"limit": 5, "order": "desc"})

        assert response.status_code == 200
        assert response.json()["object"] == "list"
        assert len(response.json()["data"]) == 1
        mock_gateway.list_vector_stores.assert_awaited_once_with({"limit": 5, "order": "desc"})

    async def test_list_rejects_bad_limit(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/vector-stores", params={"limit": 0})
        assert response.status_code == 422

    async def test_delete(self, async_client: AsyncClient, mock_gateway: AsyncMock):
        from relay.models.vector_store import DeletionStatus

        mock_gateway.delete_vector_store.return_value = DeletionStatus(
            id="vs_abc123", object="vector_store.deleted", deleted=True
        )

        response = await async_client.delete("/api/v1/vector-stores/vs_abc123")

        assert response.status_code == 200
        assert response.json()["deleted"] is True


class TestSearch:
    async def test_search_with_filter(self, async_client: AsyncClient, mock_gateway: AsyncMock):
        mock_gateway.search_vector_store.return_value = [
            {"file_id": "file-a1", "filename": "faq.md", "score": 0.87, "content": []}
        ]

        response = await async_client.post(
            "/api/v1/vector-stores/vs_abc123/search",
            json={
                "query": "refunds",
                "filters": {
                    "type": "and",
                    "filters": [
                        {"type": "eq", "key": "region", "value": "us"},
                        {"type": "gte", "key": "year", "value": 2023},
                    ],
                },
            },
        )

        assert response.status_code == 200
        assert response.json()["data"][0]["score"] == 0.87

    async def test_search_rejects_empty_compound(
        self, async_client: AsyncClient, mock_gateway: AsyncMock
    ):
        response = await async_client.post(
            "/api/v1/vector-stores/vs_abc123/search",
            json={"query": "refunds", "filters": {"type": "or", "filters": []}},
        )

        assert response.status_code == 422
        messages = " ".join(err["msg"] for err in response.json()["detail"])
        assert "Compound filter 'filters' array must not be empty" in messages
        mock_gateway.search_vector_store.assert_not_awaited()


class TestFilesAndBatches:
    async def test_add_file(
        self, async_client: AsyncClient, mock_gateway: AsyncMock, make_vector_store_file
    ):
        mock_gateway.add_file.return_value = make_vector_store_file(status="in_progress")

        response = await async_client.post(
            "/api/v1/vector-stores/vs_abc123/files",
            json={"file_id": "file-xyz789", "attributes": {"lang": "en", "year": 2024}},
        )

        assert response.status_code == 200
        assert response.json()["status"] == "in_progress"

    async def test_add_file_rejects_bad_id(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/v1/vector-stores/vs_abc123/files", json={"file_id": "xyz789"}
        )
        assert response.status_code == 422

    async def test_file_content(self, async_client: AsyncClient, mock_gateway: AsyncMock):
        mock_gateway.retrieve_file_content.return_value = [{"type": "text", "text": "hello"}]

        response = await async_client.get("/api/v1/vector-stores/vs_abc123/files/file-xyz789/content")

        assert response.status_code == 200
        assert response.json()["data"] == [{"type": "text", "text": "hello"}]

    async def test_create_batch(
        self, async_client: AsyncClient, mock_gateway: AsyncMock, make_file_batch
    ):
        mock_gateway.create_file_batch.return_value = make_file_batch(status="in_progress")

        response = await async_client.post(
            "/api/v1/vector-stores/vs_abc123/file-batches",
            json={"file_ids": ["file-a1", "file-b2"], "chunking_strategy": {"type": "auto"}},
        )

        assert response.status_code == 200
        mock_gateway.create_file_batch.assert_awaited_once_with(
            "vs_abc123",
            {"file_ids": ["file-a1", "file-b2"], "chunking_strategy": {"type": "auto"}},
        )

    async def test_create_batch_requires_files(self, async_client: AsyncClient):
        response = await async_client.post("/api/v1/vector-stores/vs_abc123/file-batches", json={})
        assert response.status_code == 422

    async def test_cancel_batch(
        self, async_client: AsyncClient, mock_gateway: AsyncMock, make_file_batch
    ):
        mock_gateway.cancel_file_batch.return_value = make_file_batch(status="cancelled")

        response = await async_client.post("/api/v1/vector-stores/vs_abc123/file-batches/vsfb_123/cancel")

        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"


class TestPollEndpoints:
    async def test_poll_vector_store(
        self, async_client: AsyncClient, mock_gateway: AsyncMock, make_vector_store, sleep_recorder
    ):
        mock_gateway.retrieve_vector_store.side_effect = [
            make_vector_store(status="in_progress"),
            make_vector_store(status="completed"),
        ]

        response = await async_client.post("/api/v1/vector-stores/vs_abc123/poll")

        assert response.status_code == 200
        assert response.json()["status"] == "completed"
        assert sleep_recorder.delays == [5.0]

    async def test_poll_file_failed_is_returned(
        self, async_client: AsyncClient, mock_gateway: AsyncMock, make_vector_store_file
    ):
        mock_gateway.retrieve_file.return_value = make_vector_store_file(
            status="failed", last_error={"code": "unsupported_file", "message": "Bad format"}
        )

        response = await async_client.post(
            "/api/v1/vector-stores/vs_abc123/files/file-xyz789/poll", params={"max_wait_ms": 5000}
        )

        assert response.status_code == 200
        assert response.json()["status"] == "failed"
        assert response.json()["last_error"]["code"] == "unsupported_file"

    async def test_poll_batch(
        self, async_client: AsyncClient, mock_gateway: AsyncMock, make_file_batch
    ):
        mock_gateway.retrieve_file_batch.return_value = make_file_batch(status="completed")

        response = await async_client.post(
            "/api/v1/vector-stores/vs_abc123/file-batches/vsfb_123/poll"
        )

        assert response.status_code == 200
        mock_gateway.retrieve_file_batch.assert_awaited_once_with("vs_abc123", "vsfb_123")

    async def test_poll_timeout_returns_408(
        self, async_client: AsyncClient, mock_gateway: AsyncMock, make_vector_store
    ):
        mock_gateway.retrieve_vector_store.return_value = make_vector_store(status="in_progress")

        response = await async_client.post(
            "/api/v1/vector-stores/vs_abc123/poll", params={"max_wait_ms": 1}
        )

        assert response.status_code == 408
        data = response.json()
        assert data["error"] == "POLL_TIMEOUT"
        assert data["detail"] == {"resource_id": "vs_abc123", "max_wait_ms": 1}

    async def test_poll_rejects_budget_above_ceiling(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/v1/vector-stores/vs_abc123/poll", params={"max_wait_ms": 600001}
        )
        assert response.status_code == 422

    async def test_poll_rejects_budget_above_configured_ceiling(
        self, async_client: AsyncClient, monkeypatch: pytest.MonkeyPatch
    ):
        monkeypatch.setenv("POLL_MAX_WAIT_MS", "1000")
        reset_settings()

        response = await async_client.post(
            "/api/v1/vector-stores/vs_abc123/poll", params={"max_wait_ms": 5000}
        )

        assert response.status_code == 422
        assert response.json()["error"] == "VALIDATION_ERROR"
        assert response.json()["message"] == "max_wait_ms must not exceed 1000. Received: 5000"

    async def test_poll_rejects_zero_budget(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/v1/vector-stores/vs_abc123/poll", params={"max_wait_ms": 0}
        )
        assert response.status_code == 422


class TestErrorRendering:
    async def test_provider_not_found_passes_through(
        self, async_client: AsyncClient, mock_gateway: AsyncMock
    ):
        mock_gateway.retrieve_vector_store.side_effect = GatewayError(
            "Provider API error (404): No vector store found",
            upstream_status=404,
            detail={"endpoint": "/vector_stores/vs_missing"},
        )

        response = await async_client.get("/api/v1/vector-stores/vs_missing")

        assert response.status_code == 404
        data = response.json()
        assert data["error"] == "GATEWAY_ERROR"
        assert data["detail"]["upstream_status"] == 404

    async def test_poll_surfaces_provider_error_not_timeout(
        self, async_client: AsyncClient, mock_gateway: AsyncMock
    ):
        mock_gateway.retrieve_vector_store.side_effect = GatewayError("Provider connection error: reset")

        response = await async_client.post("/api/v1/vector-stores/vs_abc123/poll")

        assert response.status_code == 502
        assert response.json()["error"] == "GATEWAY_ERROR"

    async def test_unexpected_error_is_500(self, async_client: AsyncClient, mock_gateway: AsyncMock):
        mock_gateway.retrieve_vector_store.side_effect = RuntimeError("boom")

        response = await async_client.get("/api/v1/vector-stores/vs_abc123")

        assert response.status_code == 500
        assert response.json() == {
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred",
        }
