"""
Validation of chunking strategies attached to vector store and file requests.

Accepted shapes::

    {"type": "auto"}
    {"type": "static", "static": {"max_chunk_size_tokens": 800, "chunk_overlap_tokens": 400}}
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from relay.core.exceptions import ValidationException
from relay.validators.limits import CHUNKING_LIMITS
from relay.validators.shared import is_integer, json_type_name

GENERIC_CHUNKING_MESSAGE = (
    "Invalid chunking strategy configuration. Requirements:\n"
    "  - type: must be 'auto' or 'static'\n"
    "  - For 'auto': only { type: 'auto' } is valid\n"
    "  - For 'static':\n"
    f"    - max_chunk_size_tokens: integer between "
    f"{CHUNKING_LIMITS.min_chunk_size_tokens}-{CHUNKING_LIMITS.max_chunk_size_tokens}\n"
    "    - chunk_overlap_tokens: non-negative integer, at most max_chunk_size_tokens / 2"
)


@dataclass(frozen=True)
class AutoChunking:
    def to_payload(self) -> dict[str, Any]:
        return {"type": "auto"}


@dataclass(frozen=True)
class StaticChunking:
    max_chunk_size_tokens: int
    chunk_overlap_tokens: int

    def to_payload(self) -> dict[str, Any]:
        return {
            "type": "static",
            "static": {
                "max_chunk_size_tokens": self.max_chunk_size_tokens,
                "chunk_overlap_tokens": self.chunk_overlap_tokens,
            },
        }


ChunkingStrategy = Union[AutoChunking, StaticChunking]


def _static_violation(config: Any) -> str | None:
    if not isinstance(config, dict):
        return f"Static chunking 'static' must be an object. Received: {json_type_name(config)}"

    for field in ("max_chunk_size_tokens", "chunk_overlap_tokens"):
        if field not in config:
            return f"Static chunking missing required field: '{field}'"

    max_size = config["max_chunk_size_tokens"]
    if not is_integer(max_size):
        return (
            "Static chunking 'max_chunk_size_tokens' must be an integer. "
            f"Received: {json_type_name(max_size)}"
        )
    low, high = CHUNKING_LIMITS.min_chunk_size_tokens, CHUNKING_LIMITS.max_chunk_size_tokens
    if not low <= max_size <= high:
        return (
            f"Static chunking 'max_chunk_size_tokens' must be between {low} and {high}. "
            f"Received: {int(max_size)}"
        )

    overlap = config["chunk_overlap_tokens"]
    if not is_integer(overlap):
        return (
            "Static chunking 'chunk_overlap_tokens' must be an integer. "
            f"Received: {json_type_name(overlap)}"
        )
    if overlap < 0:
        return f"Static chunking 'chunk_overlap_tokens' must not be negative. Received: {int(overlap)}"
    ceiling = max_size * CHUNKING_LIMITS.max_overlap_ratio
    if overlap > ceiling:
        return (
            "Static chunking 'chunk_overlap_tokens' must not exceed half of "
            f"'max_chunk_size_tokens' ({int(ceiling)}). Received: {int(overlap)}"
        )
    return None


def _chunking_violation(policy: Any) -> str | None:
    if not isinstance(policy, dict):
        return f"Chunking strategy must be an object. Received: {json_type_name(policy)}"
    if "type" not in policy:
        return "Chunking strategy must have a 'type' field"
    kind = policy["type"]
    if not isinstance(kind, str):
        return f"Chunking strategy 'type' must be a string. Received: {json_type_name(kind)}"

    if kind == "auto":
        extra = sorted(str(k) for k in policy if k != "type")
        if extra:
            return f"Auto chunking strategy must only contain 'type'. Unexpected fields: {', '.join(extra)}"
        return None
    if kind == "static":
        if "static" not in policy:
            return "Static chunking strategy must have a 'static' object"
        return _static_violation(policy["static"])
    return f"Invalid chunking strategy type '{kind}'. Valid types: auto, static"


def validate_chunking_strategy(policy: Any) -> bool:
    """Return ``True`` when ``policy`` is an acceptable chunking strategy.

    ``None`` means the optional field was omitted and is accepted.
    """
    if policy is None:
        return True
    return _chunking_violation(policy) is None


def explain_chunking_strategy(policy: Any) -> str:
    if policy is None:
        return "Chunking strategy is optional and may be omitted"
    return _chunking_violation(policy) or GENERIC_CHUNKING_MESSAGE


def ensure_valid_chunking(policy: Any) -> bool:
    """Validate-or-raise wrapper for service code.

    Returns:
        ``True`` when ``policy`` is valid.

    Raises:
        ValidationException: With the diagnostic message otherwise.
    """
    if not validate_chunking_strategy(policy):
        raise ValidationException(
            message=explain_chunking_strategy(policy),
            detail={"field": "chunking_strategy"},
        )
    return True


def parse_chunking_strategy(policy: Any) -> ChunkingStrategy:
    """Build the typed form of an already-valid chunking strategy.

    Raises:
        ValueError: If ``policy`` is missing or invalid.
    """
    if policy is None or not validate_chunking_strategy(policy):
        raise ValueError(explain_chunking_strategy(policy))
    if policy["type"] == "auto":
        return AutoChunking()
    config = policy["static"]
    return StaticChunking(
        max_chunk_size_tokens=int(config["max_chunk_size_tokens"]),
        chunk_overlap_tokens=int(config["chunk_overlap_tokens"]),
    )
