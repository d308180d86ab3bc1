"""
Vector store operations forwarded to the provider.

Validates the nested request fragments (chunking strategy, metadata, search
filters) before anything leaves the process, builds provider parameters
without unset fields, and waits on asynchronously indexed resources with
the shared poller.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from functools import partial
from typing import Any

from relay.gateway.client import ProviderGateway
from relay.models.requests import (
    AddFileRequest,
    CreateFileBatchRequest,
    CreateVectorStoreRequest,
    ListFilesParams,
    ListParams,
    SearchVectorStoreRequest,
    UpdateVectorStoreRequest,
)
from relay.models.vector_store import (
    DeletionStatus,
    VectorStore,
    VectorStoreFile,
    VectorStoreFileBatch,
    is_file_batch_terminal,
    is_vector_store_file_terminal,
    is_vector_store_terminal,
)
from relay.services.polling import (
    DEFAULT_BACKOFF,
    DEFAULT_MAX_WAIT_MS,
    BackoffSchedule,
    poll_until_terminal,
)
from relay.validators.chunking import ensure_valid_chunking, parse_chunking_strategy
from relay.validators.metadata import ensure_valid_metadata
from relay.validators.search_filter import ensure_valid_search_filter, parse_search_filter

logger = logging.getLogger(__name__)


def _without_none(params: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in params.items() if value is not None}


def _chunking_payload(strategy: dict[str, Any] | None) -> dict[str, Any] | None:
    if strategy is None:
        return None
    ensure_valid_chunking(strategy)
    return parse_chunking_strategy(strategy).to_payload()


class VectorStoreService:
    """Validate, forward and wait on vector store resources."""

    def __init__(
        self,
        gateway: ProviderGateway,
        *,
        backoff: BackoffSchedule = DEFAULT_BACKOFF,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        self._gateway = gateway
        self._backoff = backoff
        self._sleep = sleep

    # ------------------------------------------------------------------
    # Vector stores
    # ------------------------------------------------------------------

    async def create_vector_store(self, request: CreateVectorStoreRequest) -> VectorStore:
        ensure_valid_metadata(request.metadata)
        params = _without_none(
            {
                "name": request.name,
                "file_ids": request.file_ids,
                "chunking_strategy": _chunking_payload(request.chunking_strategy),
                "expires_after": request.expires_after.model_dump() if request.expires_after else None,
                "metadata": request.metadata,
                "description": request.description,
            }
        )
        return await self._gateway.create_vector_store(params)

    async def retrieve_vector_store(self, vector_store_id: str) -> VectorStore:
        return await self._gateway.retrieve_vector_store(vector_store_id)

    async def update_vector_store(
        self, vector_store_id: str, request: UpdateVectorStoreRequest
    ) -> VectorStore:
        ensure_valid_metadata(request.metadata)
        # Explicit nulls clear a field on the provider, so only unset fields are dropped.
        params = request.model_dump(mode="json", exclude_unset=True)
        return await self._gateway.update_vector_store(vector_store_id, params)

    async def list_vector_stores(self, params: ListParams | None = None) -> list[VectorStore]:
        query = params.model_dump(exclude_none=True) if params else {}
        return await self._gateway.list_vector_stores(query)

    async def delete_vector_store(self, vector_store_id: str) -> DeletionStatus:
        return await self._gateway.delete_vector_store(vector_store_id)

    async def search_vector_store(
        self, vector_store_id: str, request: SearchVectorStoreRequest
    ) -> list[dict[str, Any]]:
        filters = None
        if request.filters is not None:
            ensure_valid_search_filter(request.filters)
            filters = parse_search_filter(request.filters).to_payload()
        params = _without_none(
            {
                "query": request.query,
                "max_num_results": request.max_num_results,
                "filters": filters,
                "ranking_options": (
                    request.ranking_options.model_dump(exclude_none=True)
                    if request.ranking_options
                    else None
                ),
                "rewrite_query": request.rewrite_query,
            }
        )
        return await self._gateway.search_vector_store(vector_store_id, params)

    # ------------------------------------------------------------------
    # Vector store files
    # ------------------------------------------------------------------

    async def add_file(self, vector_store_id: str, request: AddFileRequest) -> VectorStoreFile:
        params = _without_none(
            {
                "file_id": request.file_id,
                "attributes": request.attributes,
                "chunking_strategy": _chunking_payload(request.chunking_strategy),
            }
        )
        return await self._gateway.add_file(vector_store_id, params)

    async def list_files(
        self, vector_store_id: str, params: ListFilesParams | None = None
    ) -> list[VectorStoreFile]:
        query = params.model_dump(exclude_none=True) if params else {}
        return await self._gateway.list_files(vector_store_id, query)

    async def get_file(self, vector_store_id: str, file_id: str) -> VectorStoreFile:
        return await self._gateway.retrieve_file(vector_store_id, file_id)

    async def update_file(
        self,
        vector_store_id: str,
        file_id: str,
        attributes: dict[str, str | int | float | bool] | None,
    ) -> VectorStoreFile:
        return await self._gateway.update_file(vector_store_id, file_id, attributes)

    async def remove_file(self, vector_store_id: str, file_id: str) -> DeletionStatus:
        return await self._gateway.remove_file(vector_store_id, file_id)

    async def get_file_content(self, vector_store_id: str, file_id: str) -> list[dict[str, Any]]:
        return await self._gateway.retrieve_file_content(vector_store_id, file_id)

    # ------------------------------------------------------------------
    # File batches
    # ------------------------------------------------------------------

    async def create_file_batch(
        self, vector_store_id: str, request: CreateFileBatchRequest
    ) -> VectorStoreFileBatch:
        files = None
        if request.files is not None:
            files = [
                _without_none(
                    {
                        "file_id": item.file_id,
                        "attributes": item.attributes,
                        "chunking_strategy": _chunking_payload(item.chunking_strategy),
                    }
                )
                for item in request.files
            ]
        params = _without_none(
            {
                "file_ids": request.file_ids,
                "files": files,
                "attributes": request.attributes,
                "chunking_strategy": _chunking_payload(request.chunking_strategy),
            }
        )
        logger.info(
            "Submitting file batch to vector store %s",
            vector_store_id,
            extra={"file_count": len(request.file_ids or request.files or [])},
        )
        return await self._gateway.create_file_batch(vector_store_id, params)

    async def get_file_batch(self, vector_store_id: str, batch_id: str) -> VectorStoreFileBatch:
        return await self._gateway.retrieve_file_batch(vector_store_id, batch_id)

    async def cancel_file_batch(self, vector_store_id: str, batch_id: str) -> VectorStoreFileBatch:
        return await self._gateway.cancel_file_batch(vector_store_id, batch_id)

    async def list_batch_files(
        self,
        vector_store_id: str,
        batch_id: str,
        params: ListFilesParams | None = None,
    ) -> list[VectorStoreFile]:
        query = params.model_dump(exclude_none=True) if params else {}
        return await self._gateway.list_batch_files(vector_store_id, batch_id, query)

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    async def poll_vector_store(
        self, vector_store_id: str, max_wait_ms: int = DEFAULT_MAX_WAIT_MS
    ) -> VectorStore:
        """Wait until the vector store is ``completed`` or ``expired``."""
        return await poll_until_terminal(
            vector_store_id,
            self._gateway.retrieve_vector_store,
            is_vector_store_terminal,
            max_wait_ms,
            backoff=self._backoff,
            sleep=self._sleep,
            resource_kind="Vector store",
        )

    async def poll_file(
        self, vector_store_id: str, file_id: str, max_wait_ms: int = DEFAULT_MAX_WAIT_MS
    ) -> VectorStoreFile:
        """Wait until the file is ``completed``, ``failed`` or ``cancelled``."""
        return await poll_until_terminal(
            file_id,
            partial(self._gateway.retrieve_file, vector_store_id),
            is_vector_store_file_terminal,
            max_wait_ms,
            backoff=self._backoff,
            sleep=self._sleep,
            resource_kind="File",
        )

    async def poll_batch(
        self, vector_store_id: str, batch_id: str, max_wait_ms: int = DEFAULT_MAX_WAIT_MS
    ) -> VectorStoreFileBatch:
        """Wait until the batch is ``completed`` or ``cancelled``."""
        return await poll_until_terminal(
            batch_id,
            partial(self._gateway.retrieve_file_batch, vector_store_id),
            is_file_batch_terminal,
            max_wait_ms,
            backoff=self._backoff,
            sleep=self._sleep,
            resource_kind="File batch",
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def validate_chunking_parameters(self, strategy: dict[str, Any]) -> bool:
        """Validate a chunking strategy, raising ``ValidationException`` if invalid."""
        return ensure_valid_chunking(strategy)
