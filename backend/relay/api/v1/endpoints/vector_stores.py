"""
Vector store endpoints.

Thin HTTP layer over ``VectorStoreService``. Request bodies are validated
by the pydantic models in ``relay.models.requests``; provider failures and
poll timeouts are raised as ``AppException`` subclasses and rendered by the
application's exception handlers.
"""

from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from relay.config import get_settings
from relay.core.exceptions import ValidationException
from relay.gateway.client import ProviderGateway, get_gateway
from relay.models.requests import (
    AddFileRequest,
    CreateFileBatchRequest,
    CreateVectorStoreRequest,
    ListFilesParams,
    ListParams,
    SearchVectorStoreRequest,
    UpdateFileRequest,
    UpdateVectorStoreRequest,
)
from relay.models.vector_store import (
    DeletionStatus,
    VectorStore,
    VectorStoreFile,
    VectorStoreFileBatch,
)
from relay.services.vector_stores import VectorStoreService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/vector-stores", tags=["vector-stores"])


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class VectorStoreListResponse(BaseModel):
    object: str = "list"
    data: list[VectorStore] = Field(default_factory=list)


class VectorStoreFileListResponse(BaseModel):
    object: str = "list"
    data: list[VectorStoreFile] = Field(default_factory=list)


class SearchResultsResponse(BaseModel):
    """Search hits as returned by the provider."""

    object: str = "vector_store.search_results.page"
    data: list[dict[str, Any]] = Field(default_factory=list)


class FileContentResponse(BaseModel):
    object: str = "vector_store.file_content.page"
    data: list[dict[str, Any]] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def get_vector_store_service(
    gateway: ProviderGateway = Depends(get_gateway),
) -> VectorStoreService:
    return VectorStoreService(gateway)


def _resolve_max_wait(max_wait_ms: int | None) -> int:
    """Apply the configured default and ceiling to a poll budget."""
    settings = get_settings()
    if max_wait_ms is None:
        return settings.POLL_DEFAULT_MAX_WAIT_MS
    if max_wait_ms > settings.POLL_MAX_WAIT_MS:
        logger.warning(
            "Rejected poll budget %dms above ceiling %dms", max_wait_ms, settings.POLL_MAX_WAIT_MS
        )
        raise ValidationException(
            message=f"max_wait_ms must not exceed {settings.POLL_MAX_WAIT_MS}. Received: {max_wait_ms}",
            detail={"field": "max_wait_ms"},
        )
    return max_wait_ms


MaxWaitMs = Annotated[
    int | None,
    Query(ge=1, le=600000, description="Wait budget in milliseconds (default 30000)."),
]


# ---------------------------------------------------------------------------
# Vector stores
# ---------------------------------------------------------------------------


@router.post("", response_model=VectorStore, summary="Create a vector store")
async def create_vector_store(
    body: CreateVectorStoreRequest,
    service: VectorStoreService = Depends(get_vector_store_service),
) -> VectorStore:
    return await service.create_vector_store(body)


@router.get("", response_model=VectorStoreListResponse, summary="List vector stores")
async def list_vector_stores(
    limit: int | None = Query(default=None, ge=1, le=100),
    order: str | None = Query(default=None, pattern="^(asc|desc)$"),
    after: str | None = Query(default=None),
    before: str | None = Query(default=None),
    service: VectorStoreService = Depends(get_vector_store_service),
) -> VectorStoreListResponse:
    params = ListParams(limit=limit, order=order, after=after, before=before)
    return VectorStoreListResponse(data=await service.list_vector_stores(params))


@router.get("/{vector_store_id}", response_model=VectorStore, summary="Retrieve a vector store")
async def retrieve_vector_store(
    vector_store_id: str,
    service: VectorStoreService = Depends(get_vector_store_service),
) -> VectorStore:
    return await service.retrieve_vector_store(vector_store_id)


@router.post("/{vector_store_id}", response_model=VectorStore, summary="Update a vector store")
async def update_vector_store(
    vector_store_id: str,
    body: UpdateVectorStoreRequest,
    service: VectorStoreService = Depends(get_vector_store_service),
) -> VectorStore:
    return await service.update_vector_store(vector_store_id, body)


@router.delete("/{vector_store_id}", response_model=DeletionStatus, summary="Delete a vector store")
async def delete_vector_store(
    vector_store_id: str,
    service: VectorStoreService = Depends(get_vector_store_service),
) -> DeletionStatus:
    return await service.delete_vector_store(vector_store_id)


@router.post(
    "/{vector_store_id}/search",
    response_model=SearchResultsResponse,
    summary="Search a vector store",
)
async def search_vector_store(
    vector_store_id: str,
    body: SearchVectorStoreRequest,
    service: VectorStoreService = Depends(get_vector_store_service),
) -> SearchResultsResponse:
    return SearchResultsResponse(data=await service.search_vector_store(vector_store_id, body))


@router.post(
    "/{vector_store_id}/poll",
    response_model=VectorStore,
    summary="Wait for a vector store to finish indexing",
    description="Returns once the store is completed or expired; 408 if the wait budget elapses first.",
)
async def poll_vector_store(
    vector_store_id: str,
    max_wait_ms: MaxWaitMs = None,
    service: VectorStoreService = Depends(get_vector_store_service),
) -> VectorStore:
    return await service.poll_vector_store(vector_store_id, _resolve_max_wait(max_wait_ms))


# ---------------------------------------------------------------------------
# Vector store files
# ---------------------------------------------------------------------------


@router.post("/{vector_store_id}/files", response_model=VectorStoreFile, summary="Attach a file")
async def add_file(
    vector_store_id: str,
    body: AddFileRequest,
    service: VectorStoreService = Depends(get_vector_store_service),
) -> VectorStoreFile:
    return await service.add_file(vector_store_id, body)


@router.get(
    "/{vector_store_id}/files",
    response_model=VectorStoreFileListResponse,
    summary="List files in a vector store",
)
async def list_files(
    vector_store_id: str,
    limit: int | None = Query(default=None, ge=1, le=100),
    order: str | None = Query(default=None, pattern="^(asc|desc)$"),
    after: str | None = Query(default=None),
    before: str | None = Query(default=None),
    filter: str | None = Query(default=None, pattern="^(in_progress|completed|failed|cancelled)$"),
    service: VectorStoreService = Depends(get_vector_store_service),
) -> VectorStoreFileListResponse:
    params = ListFilesParams(limit=limit, order=order, after=after, before=before, filter=filter)
    return VectorStoreFileListResponse(data=await service.list_files(vector_store_id, params))


@router.get(
    "/{vector_store_id}/files/{file_id}",
    response_model=VectorStoreFile,
    summary="Retrieve a vector store file",
)
async def get_file(
    vector_store_id: str,
    file_id: str,
    service: VectorStoreService = Depends(get_vector_store_service),
) -> VectorStoreFile:
    return await service.get_file(vector_store_id, file_id)


@router.post(
    "/{vector_store_id}/files/{file_id}",
    response_model=VectorStoreFile,
    summary="Update file attributes",
)
async def update_file(
    vector_store_id: str,
    file_id: str,
    body: UpdateFileRequest,
    service: VectorStoreService = Depends(get_vector_store_service),
) -> VectorStoreFile:
    return await service.update_file(vector_store_id, file_id, body.attributes)


@router.delete(
    "/{vector_store_id}/files/{file_id}",
    response_model=DeletionStatus,
    summary="Detach a file from a vector store",
)
async def remove_file(
    vector_store_id: str,
    file_id: str,
    service: VectorStoreService = Depends(get_vector_store_service),
) -> DeletionStatus:
    return await service.remove_file(vector_store_id, file_id)


@router.get(
    "/{vector_store_id}/files/{file_id}/content",
    response_model=FileContentResponse,
    summary="Retrieve parsed file content",
)
async def get_file_content(
    vector_store_id: str,
    file_id: str,
    service: VectorStoreService = Depends(get_vector_store_service),
) -> FileContentResponse:
    return FileContentResponse(data=await service.get_file_content(vector_store_id, file_id))


@router.post(
    "/{vector_store_id}/files/{file_id}/poll",
    response_model=VectorStoreFile,
    summary="Wait for a file to finish indexing",
    description="Returns once the file is completed, failed or cancelled; 408 on timeout.",
)
async def poll_file(
    vector_store_id: str,
    file_id: str,
    max_wait_ms: MaxWaitMs = None,
    service: VectorStoreService = Depends(get_vector_store_service),
) -> VectorStoreFile:
    return await service.poll_file(vector_store_id, file_id, _resolve_max_wait(max_wait_ms))


# ---------------------------------------------------------------------------
# File batches
# ---------------------------------------------------------------------------


@router.post(
    "/{vector_store_id}/file-batches",
    response_model=VectorStoreFileBatch,
    summary="Create a file batch",
)
async def create_file_batch(
    vector_store_id: str,
    body: CreateFileBatchRequest,
    service: VectorStoreService = Depends(get_vector_store_service),
) -> VectorStoreFileBatch:
    return await service.create_file_batch(vector_store_id, body)


@router.get(
    "/{vector_store_id}/file-batches/{batch_id}",
    response_model=VectorStoreFileBatch,
    summary="Retrieve a file batch",
)
async def get_file_batch(
    vector_store_id: str,
    batch_id: str,
    service: VectorStoreService = Depends(get_vector_store_service),
) -> VectorStoreFileBatch:
    return await service.get_file_batch(vector_store_id, batch_id)


@router.post(
    "/{vector_store_id}/file-batches/{batch_id}/cancel",
    response_model=VectorStoreFileBatch,
    summary="Cancel a file batch",
)
async def cancel_file_batch(
    vector_store_id: str,
    batch_id: str,
    service: VectorStoreService = Depends(get_vector_store_service),
) -> VectorStoreFileBatch:
    return await service.cancel_file_batch(vector_store_id, batch_id)


@router.get(
    "/{vector_store_id}/file-batches/{batch_id}/files",
    response_model=VectorStoreFileListResponse,
    summary="List files in a batch",
)
async def list_batch_files(
    vector_store_id: str,
    batch_id: str,
    limit: int | None = Query(default=None, ge=1, le=100),
    order: str | None = Query(default=None, pattern="^(asc|desc)$"),
    after: str | None = Query(default=None),
    before: str | None = Query(default=None),
    filter: str | None = Query(default=None, pattern="^(in_progress|completed|failed|cancelled)$"),
    service: VectorStoreService = Depends(get_vector_store_service),
) -> VectorStoreFileListResponse:
    params = ListFilesParams(limit=limit, order=order, after=after, before=before, filter=filter)
    return VectorStoreFileListResponse(
        data=await service.list_batch_files(vector_store_id, batch_id, params)
    )


@router.post(
    "/{vector_store_id}/file-batches/{batch_id}/poll",
    response_model=VectorStoreFileBatch,
    summary="Wait for a file batch to finish",
    description="Returns once the batch is completed or cancelled; 408 on timeout.",
)
async def poll_file_batch(
    vector_store_id: str,
    batch_id: str,
    max_wait_ms: MaxWaitMs = None,
    service: VectorStoreService = Depends(get_vector_store_service),
) -> VectorStoreFileBatch:
    return await service.poll_batch(vector_store_id, batch_id, _resolve_max_wait(max_wait_ms))
