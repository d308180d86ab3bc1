"""
Small type guards shared by the request-fragment validators.

Inputs are parsed JSON, so "object" means ``dict`` and "array" means
``list``. ``bool`` is a subclass of ``int`` in Python but a distinct JSON
type, so the numeric guards exclude it explicitly.
"""

from __future__ import annotations

import math
from typing import Any


def is_non_empty_string(value: Any) -> bool:
    return isinstance(value, str) and len(value) > 0


def is_number(value: Any) -> bool:
    """True for JSON numbers (``int`` or ``float``), never for ``bool``."""
    return isinstance(value, int | float) and not isinstance(value, bool)


def is_integer(value: Any) -> bool:
    """True for integral JSON numbers; ``800`` and ``800.0`` both qualify."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and math.isfinite(value) and value.is_integer()


def is_primitive(value: Any) -> bool:
    """True for the scalar values a filter may compare against."""
    return isinstance(value, str | bool) or is_number(value)


def is_non_null_object(value: Any) -> bool:
    return isinstance(value, dict)


def is_non_empty_list(value: Any) -> bool:
    return isinstance(value, list) and len(value) > 0


def validate_id_format(value: Any, prefix: str, min_content_length: int = 1) -> bool:
    """Check that ``value`` is a string starting with ``prefix``.

    At least ``min_content_length`` characters must follow the prefix, so
    ``"vs_"`` alone is not a valid vector store id.

    >>> validate_id_format("file-abc123", "file-", 5)
    True
    >>> validate_id_format("file-", "file-")
    False
    """
    if not isinstance(value, str) or not value.startswith(prefix):
        return False
    return len(value) - len(prefix) >= min_content_length


def json_type_name(value: Any) -> str:
    """Name the JSON type of ``value`` for diagnostic messages."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if is_number(value):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list | tuple):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__
