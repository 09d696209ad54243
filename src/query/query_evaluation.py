"""In-process query evaluation.

This module applies a composed ``QuerySpec`` to document payloads for
the bundled backends. Documents that lack a filtered or ordered field
never match, and unordered results come back in key order.
"""

from __future__ import annotations

import json
from typing import Any, Iterable, Mapping

from core.errors import StrataQueryError
from core.types import DocumentSnapshot, FilterClause, QuerySpec

_MISSING = object()


def evaluate_query(
    rows: Iterable[tuple[str, Mapping[str, Any]]],
    spec: QuerySpec,
) -> list[DocumentSnapshot]:
    """Filter, order and paginate document payloads.

    Args:
        rows: ``(key, payload)`` pairs of one collection.
        spec: Composed query.

    Returns:
        Matching snapshots in query order.

    Raises:
        StrataQueryError: If ``limit_to_last`` is used without an order.
    """
    if spec.limit_to_last is not None and spec.order is None:
        raise StrataQueryError("limit_to_last requires an order_by clause on the selection.")
    matched = [
        (key, data)
        for key, data in rows
        if all(_matches(key, data, clause) for clause in spec.filters)
    ]
    if spec.order is None:
        matched.sort(key=lambda row: row[0])
    else:
        field_name = spec.order.field_name
        matched = [row for row in matched if _resolve(row[1], field_name) is not _MISSING]
        matched.sort(key=lambda row: row[0])
        matched.sort(
            key=lambda row: _sort_key(_resolve(row[1], field_name)),
            reverse=spec.order.descending,
        )
    if spec.offset:
        matched = matched[spec.offset :]
    if spec.limit is not None:
        matched = matched[: spec.limit]
    elif spec.limit_to_last is not None:
        matched = matched[-spec.limit_to_last :]
    return [DocumentSnapshot(key=key, data=dict(data)) for key, data in matched]


def _matches(key: str, data: Mapping[str, Any], clause: FilterClause) -> bool:
    operator = clause.operator
    if operator == "key_in":
        return key in clause.value
    if operator == "key_not_in":
        return key not in clause.value
    value = _resolve(data, clause.field_name)
    if value is _MISSING:
        return False
    if operator == "==":
        return bool(value == clause.value)
    if operator == "!=":
        return bool(value != clause.value)
    if operator == "in":
        return value in clause.value
    if operator == "not_in":
        return value not in clause.value
    if operator == "array_contains":
        return isinstance(value, list) and clause.value in value
    if operator == "array_contains_any":
        return isinstance(value, list) and any(candidate in value for candidate in clause.value)
    return _compare(value, operator, clause.value)


def _compare(value: Any, operator: str, operand: Any) -> bool:
    if _type_rank(value) != _type_rank(operand):
        return False
    try:
        if operator == "<":
            return bool(value < operand)
        if operator == "<=":
            return bool(value <= operand)
        if operator == ">":
            return bool(value > operand)
        if operator == ">=":
            return bool(value >= operand)
    except TypeError:
        return False
    raise StrataQueryError(f"Unsupported filter operator '{operator}'.")


def _resolve(data: Mapping[str, Any], field_name: str) -> Any:
    """Resolve a dotted field path inside a payload."""
    current: Any = data
    for segment in field_name.split("."):
        if not isinstance(current, Mapping) or segment not in current:
            return _MISSING
        current = current[segment]
    return current


def _type_rank(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, bool):
        return 1
    if isinstance(value, (int, float)):
        return 2
    if isinstance(value, str):
        return 3
    if isinstance(value, bytes):
        return 4
    if isinstance(value, (list, tuple)):
        return 5
    return 6


def _sort_key(value: Any) -> tuple[int, Any]:
    rank = _type_rank(value)
    if rank == 0:
        return (rank, 0)
    if rank >= 5:
        return (rank, json.dumps(value, sort_keys=True, default=str))
    return (rank, value)
