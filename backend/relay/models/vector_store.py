"""
Snapshots of provider-owned vector store resources.

The provider creates, indexes and expires these resources; the relay only
observes them. Unknown fields returned by the provider are preserved so
responses pass through unchanged.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class VectorStoreStatus(str, Enum):
    """Lifecycle of a vector store (the container)."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    EXPIRED = "expired"


class VectorStoreFileStatus(str, Enum):
    """Indexing state of one file inside a vector store."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class FileBatchStatus(str, Enum):
    """Processing state of a batch of files added together."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


# Statuses after which the provider performs no further transition.
VECTOR_STORE_TERMINAL = frozenset({VectorStoreStatus.COMPLETED, VectorStoreStatus.EXPIRED})
VECTOR_STORE_FILE_TERMINAL = frozenset(
    {
        VectorStoreFileStatus.COMPLETED,
        VectorStoreFileStatus.FAILED,
        VectorStoreFileStatus.CANCELLED,
    }
)
FILE_BATCH_TERMINAL = frozenset({FileBatchStatus.COMPLETED, FileBatchStatus.CANCELLED})


class ProviderModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class FileCounts(ProviderModel):
    in_progress: int = 0
    completed: int = 0
    failed: int = 0
    cancelled: int = 0
    total: int = 0


class VectorStore(ProviderModel):
    """A searchable collection of indexed files."""

    id: str
    object: str = "vector_store"
    name: str | None = None
    status: VectorStoreStatus
    file_counts: FileCounts = Field(default_factory=FileCounts)
    usage_bytes: int = 0
    created_at: int | None = None
    last_active_at: int | None = None
    expires_at: int | None = None
    expires_after: dict[str, Any] | None = None
    metadata: dict[str, str] | None = None


class VectorStoreFile(ProviderModel):
    """A file attached to a vector store and its indexing progress."""

    id: str
    object: str = "vector_store.file"
    vector_store_id: str | None = None
    status: VectorStoreFileStatus
    usage_bytes: int = 0
    created_at: int | None = None
    last_error: dict[str, Any] | None = None
    chunking_strategy: dict[str, Any] | None = None
    attributes: dict[str, str | int | float | bool] | None = None


class VectorStoreFileBatch(ProviderModel):
    """A group of files submitted to a vector store in one request."""

    id: str
    object: str = "vector_store.files_batch"
    vector_store_id: str | None = None
    status: FileBatchStatus
    file_counts: FileCounts = Field(default_factory=FileCounts)
    created_at: int | None = None


class DeletionStatus(ProviderModel):
    id: str
    object: str = ""
    deleted: bool


def is_vector_store_terminal(store: VectorStore) -> bool:
    return store.status in VECTOR_STORE_TERMINAL


def is_vector_store_file_terminal(file: VectorStoreFile) -> bool:
    return file.status in VECTOR_STORE_FILE_TERMINAL


def is_file_batch_terminal(batch: VectorStoreFileBatch) -> bool:
    return batch.status in FILE_BATCH_TERMINAL
