"""
Validation of vector-store search filters.

A filter is either a comparison leaf::

    {"type": "eq", "key": "region", "value": "us"}

or a compound node combining a non-empty list of nested filters::

    {"type": "and", "filters": [{...}, {"type": "or", "filters": [...]}]}

``validate_search_filter`` and ``explain_search_filter`` share one walker,
so a payload is valid exactly when no violation message is produced. The
walk uses an explicit stack: nesting depth is not capped and deep payloads
cannot exhaust the interpreter's recursion limit.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Union

from relay.core.exceptions import ValidationException
from relay.validators.limits import FILTER_LIMITS
from relay.validators.shared import is_non_empty_string, is_primitive, json_type_name

Operator = Literal["eq", "ne", "gt", "gte", "lt", "lte"]
CompoundOperator = Literal["and", "or"]
Primitive = Union[str, int, float, bool]

GENERIC_FILTER_MESSAGE = (
    "Invalid search filter configuration. Requirements:\n"
    "  - ComparisonFilter: { key: string, type: operator, value: primitive | primitive[] }\n"
    "    - Operators: 'eq' | 'ne' | 'gt' | 'gte' | 'lt' | 'lte'\n"
    "    - Value: string, number, boolean, or a non-empty array of those\n"
    "  - CompoundFilter: { type: 'and' | 'or', filters: Filter[] }\n"
    "    - Filters array must not be empty\n"
    "    - Supports nested compound filters"
)


@dataclass(frozen=True)
class ComparisonFilter:
    key: str
    op: Operator
    value: Primitive | tuple[Primitive, ...]

    def to_payload(self) -> dict[str, Any]:
        value = list(self.value) if isinstance(self.value, tuple) else self.value
        return {"type": self.op, "key": self.key, "value": value}


@dataclass(frozen=True)
class CompoundFilter:
    op: CompoundOperator
    filters: tuple[FilterExpression, ...]

    def to_payload(self) -> dict[str, Any]:
        return _render(self)


FilterExpression = Union[ComparisonFilter, CompoundFilter]


def _comparison_violation(node: dict[str, Any]) -> str | None:
    operator = node["type"]
    operators = FILTER_LIMITS.comparison_operators
    if operator not in operators:
        return (
            f"Invalid comparison operator '{operator}'. "
            f"Valid operators: {', '.join(operators)}"
        )

    if "key" not in node:
        return "Comparison filter missing required field: 'key'"
    key = node["key"]
    if not is_non_empty_string(key):
        received = "empty string" if key == "" else json_type_name(key)
        return f"Comparison filter 'key' must be a non-empty string. Received: {received}"

    if "value" not in node:
        return "Comparison filter missing required field: 'value'"
    value = node["value"]
    if isinstance(value, list):
        if not value:
            return "Comparison filter 'value' array must not be empty"
        for index, item in enumerate(value):
            if not is_primitive(item):
                return (
                    f"Comparison filter 'value' array contains non-primitive at index {index}. "
                    "Expected string, number, or boolean."
                )
    elif not is_primitive(value):
        return (
            "Comparison filter 'value' must be a primitive type (string, number, boolean). "
            f"Received: {json_type_name(value)}"
        )
    return None


def _first_violation(expr: Any) -> tuple[str, str] | None:
    """Return ``(path, message)`` for the first rule broken, depth-first."""
    stack: list[tuple[Any, str]] = [(expr, "")]
    while stack:
        node, path = stack.pop()

        if not isinstance(node, dict):
            return path, f"Search filter must be an object. Received: {json_type_name(node)}"
        if "type" not in node:
            keys = ", ".join(str(k) for k in node) or "(none)"
            return path, f"Search filter must have a 'type' field. Received keys: {keys}"
        kind = node["type"]
        if not isinstance(kind, str):
            return path, f"Search filter 'type' must be a string. Received: {json_type_name(kind)}"

        if kind not in FILTER_LIMITS.compound_types:
            message = _comparison_violation(node)
            if message is not None:
                return path, message
            continue

        if "filters" not in node:
            return path, f"Compound filter (type: '{kind}') must have a 'filters' array"
        children = node["filters"]
        if not isinstance(children, list):
            return path, (
                f"Compound filter 'filters' must be an array. Received: {json_type_name(children)}"
            )
        if not children:
            return path, "Compound filter 'filters' array must not be empty"
        # reversed so children are visited in document order
        for index in range(len(children) - 1, -1, -1):
            stack.append((children[index], f"{path}.filters[{index}]" if path else f"filters[{index}]"))
    return None


def validate_search_filter(expr: Any) -> bool:
    """Return ``True`` when ``expr`` is an acceptable search filter.

    ``None`` means the optional field was omitted and is accepted.
    """
    if expr is None:
        return True
    return _first_violation(expr) is None


def explain_search_filter(expr: Any) -> str:
    """Describe the first rule ``expr`` breaks.

    Nested violations carry their location, e.g.
    ``"Comparison filter 'value' array must not be empty (at filters[1])"``.
    Falls back to the general requirements text when nothing specific is
    wrong.
    """
    if expr is None:
        return "Search filter is optional and may be omitted"
    violation = _first_violation(expr)
    if violation is None:
        return GENERIC_FILTER_MESSAGE
    path, message = violation
    return f"{message} (at {path})" if path else message


def ensure_valid_search_filter(expr: Any) -> bool:
    """Return ``True`` for a valid filter, else raise ``ValidationException``."""
    if not validate_search_filter(expr):
        raise ValidationException(
            message=explain_search_filter(expr),
            detail={"field": "filters"},
        )
    return True


def parse_search_filter(expr: Any) -> FilterExpression:
    """Build the typed form of an already-valid filter.

    Raises:
        ValueError: If ``expr`` is missing or invalid.
    """
    if expr is None or not validate_search_filter(expr):
        raise ValueError(explain_search_filter(expr))
    return _build(expr)


def _build(root: dict[str, Any]) -> FilterExpression:
    """Convert validated JSON to the typed tree, children before parents."""
    built: dict[int, FilterExpression] = {}
    stack: list[tuple[dict[str, Any], bool]] = [(root, False)]
    while stack:
        node, children_built = stack.pop()
        if node["type"] not in FILTER_LIMITS.compound_types:
            value = node["value"]
            built[id(node)] = ComparisonFilter(
                key=node["key"],
                op=node["type"],
                value=tuple(value) if isinstance(value, list) else value,
            )
        elif children_built:
            built[id(node)] = CompoundFilter(
                op=node["type"],
                filters=tuple(built[id(child)] for child in node["filters"]),
            )
        else:
            stack.append((node, True))
            stack.extend((child, False) for child in node["filters"])
    return built[id(root)]


def _render(root: FilterExpression) -> dict[str, Any]:
    """Inverse of ``_build``: typed tree back to the wire shape."""
    rendered: dict[int, dict[str, Any]] = {}
    stack: list[tuple[FilterExpression, bool]] = [(root, False)]
    while stack:
        node, children_rendered = stack.pop()
        if isinstance(node, ComparisonFilter):
            rendered[id(node)] = node.to_payload()
        elif children_rendered:
            rendered[id(node)] = {
                "type": node.op,
                "filters": [rendered[id(child)] for child in node.filters],
            }
        else:
            stack.append((node, True))
            stack.extend((child, False) for child in node.filters)
    return rendered[id(root)]
