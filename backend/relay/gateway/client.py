"""
Async HTTP client for the provider's vector store REST API.

Every method performs exactly one request. Failures are raised as
``GatewayError`` and never retried here: callers such as the poller must
be able to tell "the provider said no / could not be reached" apart from
"the resource is still being indexed".
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncGenerator
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from relay.config import get_settings
from relay.core.exceptions import GatewayError, ServiceUnavailableException
from relay.models.vector_store import (
    DeletionStatus,
    VectorStore,
    VectorStoreFile,
    VectorStoreFileBatch,
)

logger = logging.getLogger(__name__)

_ModelT = TypeVar("_ModelT", bound=BaseModel)


class ProviderGateway:
    """Thin async wrapper over the provider's ``/vector_stores`` endpoints.

    Usage::

        gateway = ProviderGateway("https://api.openai.com/v1", api_key="sk-...")
        store = await gateway.create_vector_store({"name": "Docs"})
        store = await gateway.retrieve_vector_store(store.id)
        await gateway.close()
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        if not api_key:
            logger.warning("OPENAI_API_KEY is not set; provider calls will fail.")
        self._http = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(timeout),
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
                "OpenAI-Beta": "assistants=v2",
            },
            transport=transport,
        )

    async def close(self) -> None:
        """Shut down the underlying HTTP client."""
        await self._http.aclose()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json_body: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Execute one request and return the decoded JSON body."""
        try:
            response = await self._http.request(method, path, json=json_body, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code
            message = _provider_error_message(exc.response)
            logger.warning(
                "Provider request %s %s returned %d: %s",
                method,
                path,
                status_code,
                message,
            )
            raise GatewayError(
                f"Provider API error ({status_code}): {message}",
                upstream_status=status_code,
                detail={"endpoint": path},
            ) from exc
        except httpx.RequestError as exc:
            logger.error("Provider request %s %s failed: %s", method, path, exc)
            raise GatewayError(
                f"Provider connection error: {exc}",
                detail={"endpoint": path},
            ) from exc
        try:
            body = response.json()
        except ValueError as exc:
            logger.error("Provider request %s %s returned a non-JSON body", method, path)
            raise GatewayError(
                "Provider returned an invalid response body",
                upstream_status=response.status_code,
                detail={"endpoint": path},
            ) from exc
        if not isinstance(body, dict):
            raise GatewayError(
                f"Provider returned an unexpected response body: {type(body).__name__}",
                upstream_status=response.status_code,
                detail={"endpoint": path},
            )
        return body

    def _log_interaction(self, endpoint: str, started: float, **metadata: Any) -> None:
        latency_ms = (time.perf_counter() - started) * 1000
        logger.info(
            "Provider call %s completed in %.0fms",
            endpoint,
            latency_ms,
            extra={"api": "vector_stores", "endpoint": endpoint, "latency_ms": round(latency_ms), **metadata},
        )

    # ------------------------------------------------------------------
    # Vector stores
    # ------------------------------------------------------------------

    async def create_vector_store(self, params: dict[str, Any]) -> VectorStore:
        started = time.perf_counter()
        store = _parse(
            VectorStore,
            await self._request("POST", "/vector_stores", json_body=params)
        )
        self._log_interaction(
            "/vector_stores",
            started,
            vector_store_id=store.id,
            status=store.status.value,
            file_counts=store.file_counts.model_dump(),
        )
        return store

    async def retrieve_vector_store(self, vector_store_id: str) -> VectorStore:
        started = time.perf_counter()
        endpoint = f"/vector_stores/{vector_store_id}"
        store = _parse(VectorStore, await self._request("GET", endpoint))
        self._log_interaction(
            endpoint,
            started,
            vector_store_id=store.id,
            status=store.status.value,
            file_counts=store.file_counts.model_dump(),
        )
        return store

    async def update_vector_store(self, vector_store_id: str, params: dict[str, Any]) -> VectorStore:
        started = time.perf_counter()
        endpoint = f"/vector_stores/{vector_store_id}"
        store = _parse(VectorStore, await self._request("POST", endpoint, json_body=params))
        self._log_interaction(endpoint, started, vector_store_id=store.id, status=store.status.value)
        return store

    async def list_vector_stores(self, params: dict[str, Any] | None = None) -> list[VectorStore]:
        started = time.perf_counter()
        body = await self._request("GET", "/vector_stores", params=params or None)
        stores = [_parse(VectorStore, item) for item in body.get("data", [])]
        self._log_interaction("/vector_stores", started, result_count=len(stores))
        return stores

    async def delete_vector_store(self, vector_store_id: str) -> DeletionStatus:
        started = time.perf_counter()
        endpoint = f"/vector_stores/{vector_store_id}"
        result = _parse(DeletionStatus, await self._request("DELETE", endpoint))
        self._log_interaction(endpoint, started, vector_store_id=vector_store_id, deleted=result.deleted)
        return result

    async def search_vector_store(
        self, vector_store_id: str, params: dict[str, Any]
    ) -> list[dict[str, Any]]:
        started = time.perf_counter()
        endpoint = f"/vector_stores/{vector_store_id}/search"
        body = await self._request("POST", endpoint, json_body=params)
        results: list[dict[str, Any]] = body.get("data", [])
        self._log_interaction(endpoint, started, vector_store_id=vector_store_id, result_count=len(results))
        return results

    # ------------------------------------------------------------------
    # Vector store files
    # ------------------------------------------------------------------

    async def add_file(self, vector_store_id: str, params: dict[str, Any]) -> VectorStoreFile:
        started = time.perf_counter()
        endpoint = f"/vector_stores/{vector_store_id}/files"
        file = _parse(VectorStoreFile, await self._request("POST", endpoint, json_body=params))
        self._log_interaction(
            endpoint, started, vector_store_id=vector_store_id, file_id=file.id, status=file.status.value
        )
        return file

    async def list_files(
        self, vector_store_id: str, params: dict[str, Any] | None = None
    ) -> list[VectorStoreFile]:
        started = time.perf_counter()
        endpoint = f"/vector_stores/{vector_store_id}/files"
        body = await self._request("GET", endpoint, params=params or None)
        files = [_parse(VectorStoreFile, item) for item in body.get("data", [])]
        self._log_interaction(endpoint, started, vector_store_id=vector_store_id, result_count=len(files))
        return files

    async def retrieve_file(self, vector_store_id: str, file_id: str) -> VectorStoreFile:
        started = time.perf_counter()
        endpoint = f"/vector_stores/{vector_store_id}/files/{file_id}"
        file = _parse(VectorStoreFile, await self._request("GET", endpoint))
        self._log_interaction(
            endpoint, started, vector_store_id=vector_store_id, file_id=file.id, status=file.status.value
        )
        return file

    async def update_file(
        self,
        vector_store_id: str,
        file_id: str,
        attributes: dict[str, str | int | float | bool] | None,
    ) -> VectorStoreFile:
        started = time.perf_counter()
        endpoint = f"/vector_stores/{vector_store_id}/files/{file_id}"
        file = _parse(
            VectorStoreFile,
            await self._request("POST", endpoint, json_body={"attributes": attributes})
        )
        self._log_interaction(endpoint, started, vector_store_id=vector_store_id, file_id=file_id)
        return file

    async def remove_file(self, vector_store_id: str, file_id: str) -> DeletionStatus:
        started = time.perf_counter()
        endpoint = f"/vector_stores/{vector_store_id}/files/{file_id}"
        result = _parse(DeletionStatus, await self._request("DELETE", endpoint))
        self._log_interaction(
            endpoint, started, vector_store_id=vector_store_id, file_id=file_id, deleted=result.deleted
        )
        return result

    async def retrieve_file_content(self, vector_store_id: str, file_id: str) -> list[dict[str, Any]]:
        started = time.perf_counter()
        endpoint = f"/vector_stores/{vector_store_id}/files/{file_id}/content"
        body = await self._request("GET", endpoint)
        content: list[dict[str, Any]] = body.get("data", [])
        self._log_interaction(
            endpoint, started, vector_store_id=vector_store_id, file_id=file_id, result_count=len(content)
        )
        return content

    # ------------------------------------------------------------------
    # File batches
    # ------------------------------------------------------------------

    async def create_file_batch(
        self, vector_store_id: str, params: dict[str, Any]
    ) -> VectorStoreFileBatch:
        started = time.perf_counter()
        endpoint = f"/vector_stores/{vector_store_id}/file_batches"
        batch = _parse(
            VectorStoreFileBatch,
            await self._request("POST", endpoint, json_body=params)
        )
        self._log_interaction(
            endpoint,
            started,
            vector_store_id=vector_store_id,
            batch_id=batch.id,
            status=batch.status.value,
            file_counts=batch.file_counts.model_dump(),
        )
        return batch

    async def retrieve_file_batch(self, vector_store_id: str, batch_id: str) -> VectorStoreFileBatch:
        started = time.perf_counter()
        endpoint = f"/vector_stores/{vector_store_id}/file_batches/{batch_id}"
        batch = _parse(VectorStoreFileBatch, await self._request("GET", endpoint))
        self._log_interaction(
            endpoint,
            started,
            vector_store_id=vector_store_id,
            batch_id=batch.id,
            status=batch.status.value,
            file_counts=batch.file_counts.model_dump(),
        )
        return batch

    async def cancel_file_batch(self, vector_store_id: str, batch_id: str) -> VectorStoreFileBatch:
        started = time.perf_counter()
        endpoint = f"/vector_stores/{vector_store_id}/file_batches/{batch_id}/cancel"
        batch = _parse(VectorStoreFileBatch, await self._request("POST", endpoint))
        self._log_interaction(
            endpoint, started, vector_store_id=vector_store_id, batch_id=batch_id, status=batch.status.value
        )
        return batch

    async def list_batch_files(
        self,
        vector_store_id: str,
        batch_id: str,
        params: dict[str, Any] | None = None,
    ) -> list[VectorStoreFile]:
        started = time.perf_counter()
        endpoint = f"/vector_stores/{vector_store_id}/file_batches/{batch_id}/files"
        body = await self._request("GET", endpoint, params=params or None)
        files = [_parse(VectorStoreFile, item) for item in body.get("data", [])]
        self._log_interaction(
            endpoint, started, vector_store_id=vector_store_id, batch_id=batch_id, result_count=len(files)
        )
        return files


def _parse(model: type[_ModelT], payload: Any) -> _ModelT:
    """Validate a provider payload, reporting a malformed one as ``GatewayError``."""
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        logger.error("Provider returned a malformed %s: %s", model.__name__, exc)
        raise GatewayError(
            f"Provider returned a malformed {model.__name__}", detail={"error_count": exc.error_count()}
        ) from exc


def _provider_error_message(response: httpx.Response) -> str:
    """Pull ``error.message`` out of a provider error body, or fall back to text."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:500]
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]
    return response.text[:500]


# ---------------------------------------------------------------------------
# Application-wide instance
# ---------------------------------------------------------------------------

_gateway: ProviderGateway | None = None


async def connect_gateway() -> None:
    """Create the shared gateway client. Called once during startup."""
    global _gateway
    settings = get_settings()
    logger.info("Connecting provider gateway", extra={"base_url": settings.OPENAI_API_BASE_URL})
    _gateway = ProviderGateway(
        settings.OPENAI_API_BASE_URL,
        settings.OPENAI_API_KEY,
        timeout=settings.openai_timeout_seconds,
    )


async def close_gateway() -> None:
    """Close the shared gateway client. Called once during shutdown."""
    global _gateway
    if _gateway is not None:
        await _gateway.close()
        logger.info("Provider gateway closed")
    _gateway = None


def get_gateway_sync() -> ProviderGateway:
    """Return the shared gateway directly (non-generator).

    Raises RuntimeError if the gateway has not been initialised.
    """
    if _gateway is None:
        raise RuntimeError("Provider gateway is not initialised. Call connect_gateway() first.")
    return _gateway


async def get_gateway() -> AsyncGenerator[ProviderGateway, None]:
    """FastAPI dependency that yields the shared gateway.

    Raises ServiceUnavailableException (503) when startup has not run.
    """
    try:
        gateway = get_gateway_sync()
    except RuntimeError as exc:
        raise ServiceUnavailableException("Provider gateway") from exc
    yield gateway
