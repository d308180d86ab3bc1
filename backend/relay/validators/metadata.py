"""Validation of provider metadata maps (string keys to string values)."""

from __future__ import annotations

from typing import Any

from relay.core.exceptions import ValidationException
from relay.validators.limits import METADATA_LIMITS
from relay.validators.shared import json_type_name

GENERIC_METADATA_MESSAGE = (
    "Invalid metadata configuration. Requirements:\n"
    f"  - Maximum {METADATA_LIMITS.max_pairs} key-value pairs\n"
    f"  - Keys: max {METADATA_LIMITS.max_key_length} characters\n"
    f"  - Values: must be strings, max {METADATA_LIMITS.max_value_length} characters"
)


def _metadata_violation(metadata: Any) -> str | None:
    if isinstance(metadata, list):
        return "Metadata must be an object, not an array"
    if not isinstance(metadata, dict):
        return f"Metadata must be an object. Received: {json_type_name(metadata)}"

    if len(metadata) > METADATA_LIMITS.max_pairs:
        return (
            f"Metadata cannot have more than {METADATA_LIMITS.max_pairs} key-value pairs. "
            f"Received: {len(metadata)}"
        )

    for key, value in metadata.items():
        if not isinstance(key, str):
            return f"Metadata keys must be strings. Received: {json_type_name(key)}"
        if len(key) > METADATA_LIMITS.max_key_length:
            return (
                f"Metadata key '{key}' exceeds maximum length of "
                f"{METADATA_LIMITS.max_key_length} characters. Length: {len(key)}"
            )
        if not isinstance(value, str):
            return f"Metadata value for key '{key}' must be a string. Received: {json_type_name(value)}"
        if len(value) > METADATA_LIMITS.max_value_length:
            return (
                f"Metadata value for key '{key}' exceeds maximum length of "
                f"{METADATA_LIMITS.max_value_length} characters. Length: {len(value)}"
            )
    return None


def validate_metadata(metadata: Any) -> bool:
    """Return ``True`` for ``None`` or a map within the provider's limits."""
    if metadata is None:
        return True
    return _metadata_violation(metadata) is None


def explain_metadata(metadata: Any) -> str:
    if metadata is None:
        return "Metadata is optional and may be omitted or null"
    return _metadata_violation(metadata) or GENERIC_METADATA_MESSAGE


def ensure_valid_metadata(metadata: Any) -> bool:
    if not validate_metadata(metadata):
        raise ValidationException(
            message=explain_metadata(metadata),
            detail={"field": "metadata"},
        )
    return True
