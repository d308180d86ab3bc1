"""
Fixed limits enforced on inbound request fragments.

These match the bounds the provider itself enforces.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class MetadataLimits:
    max_pairs: int = 16
    max_key_length: int = 64
    max_value_length: int = 512


@dataclass(frozen=True)
class ChunkingLimits:
    min_chunk_size_tokens: int = 100
    max_chunk_size_tokens: int = 4096
    # overlap may be at most this fraction of max_chunk_size_tokens (inclusive)
    max_overlap_ratio: float = 0.5


@dataclass(frozen=True)
class FilterLimits:
    compound_types: frozenset[str] = frozenset({"and", "or"})
    comparison_operators: tuple[str, ...] = ("eq", "ne", "gt", "gte", "lt", "lte")


METADATA_LIMITS = MetadataLimits()
CHUNKING_LIMITS = ChunkingLimits()
FILTER_LIMITS = FilterLimits()

VECTOR_STORE_ID_PREFIX = "vs_"
FILE_ID_PREFIX = "file-"
