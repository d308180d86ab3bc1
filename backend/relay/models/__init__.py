"""
Relay data models package.

Pydantic v2 snapshots of provider resources. Import from this module for
convenient access to every model, status enum and terminal predicate.
"""

from relay.models.vector_store import (
    FILE_BATCH_TERMINAL,
    VECTOR_STORE_FILE_TERMINAL,
    VECTOR_STORE_TERMINAL,
    DeletionStatus,
    FileBatchStatus,
    FileCounts,
    VectorStore,
    VectorStoreFile,
    VectorStoreFileBatch,
    VectorStoreFileStatus,
    VectorStoreStatus,
    is_file_batch_terminal,
    is_vector_store_file_terminal,
    is_vector_store_terminal,
)

__all__ = [
    "FILE_BATCH_TERMINAL",
    "VECTOR_STORE_FILE_TERMINAL",
    "VECTOR_STORE_TERMINAL",
    "DeletionStatus",
    "FileBatchStatus",
    "FileCounts",
    "VectorStore",
    "VectorStoreFile",
    "VectorStoreFileBatch",
    "VectorStoreFileStatus",
    "VectorStoreStatus",
    "is_file_batch_terminal",
    "is_vector_store_file_terminal",
    "is_vector_store_terminal",
]
