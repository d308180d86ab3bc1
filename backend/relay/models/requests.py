"""
Request bodies and query parameters for the vector store endpoints.

Nested provider fragments (chunking strategies, metadata, search filters)
are kept as plain JSON and checked by the validators in
``relay.validators``; a failure surfaces as a 422 carrying the validator's
diagnostic message.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import AfterValidator, BaseModel, BeforeValidator, Field, model_validator

from relay.validators.chunking import explain_chunking_strategy, validate_chunking_strategy
from relay.validators.limits import FILE_ID_PREFIX
from relay.validators.metadata import explain_metadata, validate_metadata
from relay.validators.search_filter import explain_search_filter, validate_search_filter
from relay.validators.shared import validate_id_format

FileAttributes = dict[str, str | int | float | bool]


def _check_chunking(value: Any) -> Any:
    if not validate_chunking_strategy(value):
        raise ValueError(explain_chunking_strategy(value))
    return value


def _check_metadata(value: Any) -> Any:
    if not validate_metadata(value):
        raise ValueError(explain_metadata(value))
    return value


def _check_filters(value: Any) -> Any:
    if not validate_search_filter(value):
        raise ValueError(explain_search_filter(value))
    return value


def _check_file_id(value: str) -> str:
    if not validate_id_format(value, FILE_ID_PREFIX):
        raise ValueError(f"file_id must start with \"{FILE_ID_PREFIX}\". Received: {value!r}")
    return value


FileId = Annotated[str, AfterValidator(_check_file_id)]
ChunkingStrategyField = Annotated[dict[str, Any] | None, BeforeValidator(_check_chunking)]
MetadataField = Annotated[dict[str, Any] | None, BeforeValidator(_check_metadata)]
SearchFilterField = Annotated[dict[str, Any] | None, BeforeValidator(_check_filters)]


class ExpiresAfter(BaseModel):
    """Expiration policy for a vector store."""

    anchor: Literal["last_active_at"] = Field(..., description="Timestamp the expiry counts from.")
    days: int = Field(..., ge=1, le=365, description="Days after the anchor before expiry.")


class CreateVectorStoreRequest(BaseModel):
    """Request body for creating a vector store."""

    name: str | None = Field(default=None, description="Vector store name.")
    file_ids: list[FileId] | None = Field(default=None, description="Files to index on creation.")
    chunking_strategy: ChunkingStrategyField = Field(
        default=None, description="'auto' or 'static' chunking; provider default is auto."
    )
    expires_after: ExpiresAfter | None = Field(default=None, description="Expiration policy.")
    metadata: MetadataField = Field(default=None, description="Up to 16 string pairs.")
    description: str | None = Field(default=None, description="Free-text description.")


class UpdateVectorStoreRequest(BaseModel):
    """Request body for updating a vector store. ``None`` clears a field."""

    name: str | None = None
    expires_after: ExpiresAfter | None = None
    metadata: MetadataField = None


class RankingOptions(BaseModel):
    ranker: Literal["none", "auto", "default-2024-11-15"] | None = None
    score_threshold: float | None = Field(default=None, ge=0.0, le=1.0)


class SearchVectorStoreRequest(BaseModel):
    """Request body for a semantic search over one vector store."""

    query: str | list[str] = Field(..., description="Search text, or several queries.")
    max_num_results: int | None = Field(default=None, ge=1, le=50)
    filters: SearchFilterField = Field(
        default=None, description="Comparison or compound filter over file attributes."
    )
    ranking_options: RankingOptions | None = None
    rewrite_query: bool | None = None


class AddFileRequest(BaseModel):
    """Request body for attaching an uploaded file to a vector store."""

    file_id: FileId = Field(..., description="Uploaded file id (file-...).")
    attributes: FileAttributes | None = None
    chunking_strategy: ChunkingStrategyField = None


class BatchFileConfig(BaseModel):
    """Per-file settings inside a file batch."""

    file_id: FileId
    attributes: FileAttributes | None = None
    chunking_strategy: ChunkingStrategyField = None


class CreateFileBatchRequest(BaseModel):
    """Request body for adding several files at once.

    Exactly one of ``file_ids`` (shared settings) or ``files`` (per-file
    settings) must be given.
    """

    file_ids: list[FileId] | None = None
    files: list[BatchFileConfig] | None = None
    attributes: FileAttributes | None = None
    chunking_strategy: ChunkingStrategyField = None

    @model_validator(mode="after")
    def check_one_source_of_files(self) -> CreateFileBatchRequest:
        if not self.file_ids and not self.files:
            raise ValueError("Either 'file_ids' or 'files' must be provided")
        if self.file_ids and self.files:
            raise ValueError("'file_ids' and 'files' are mutually exclusive")
        return self


class UpdateFileRequest(BaseModel):
    attributes: FileAttributes | None = None


class ListParams(BaseModel):
    """Cursor pagination shared by the list endpoints."""

    limit: int | None = Field(default=None, ge=1, le=100)
    order: Literal["asc", "desc"] | None = None
    after: str | None = None
    before: str | None = None


class ListFilesParams(ListParams):
    filter: Literal["in_progress", "completed", "failed", "cancelled"] | None = None
