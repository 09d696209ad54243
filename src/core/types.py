"""Shared typed models.

This module defines immutable data models exchanged between the
query builder, the mapper and the document store backends.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Mapping

FilterOperator = Literal[
    "==",
    "!=",
    "<",
    "<=",
    ">",
    ">=",
    "array_contains",
    "array_contains_any",
    "in",
    "not_in",
    "key_in",
    "key_not_in",
]
LIST_OPERATORS: tuple[FilterOperator, ...] = (
    "array_contains_any",
    "in",
    "not_in",
    "key_in",
    "key_not_in",
)


@dataclass(frozen=True)
class FilterClause:
    """One filter condition of a query.

    Attributes:
        field_name: Document property the condition applies to.
            Empty for key-based operators.
        operator: Comparison operator.
        value: Operand; a tuple for list-valued operators.
    """

    field_name: str
    operator: FilterOperator
    value: Any


@dataclass(frozen=True)
class OrderClause:
    """Single ordering clause of a query.

    Attributes:
        field_name: Document property to order by.
        descending: Whether the order is reversed.
    """

    field_name: str
    descending: bool = False


@dataclass(frozen=True)
class QuerySpec:
    """Composed query handed to a document store.

    Attributes:
        filters: Filter clauses, all of which must hold.
        order: Optional ordering clause.
        offset: Number of leading matches to skip.
        limit: Maximum number of matches from the head.
        limit_to_last: Maximum number of matches from the ordered tail.
    """

    filters: tuple[FilterClause, ...] = ()
    order: OrderClause | None = None
    offset: int = 0
    limit: int | None = None
    limit_to_last: int | None = None


@dataclass(frozen=True)
class DocumentSnapshot:
    """Raw document record read from a document store.

    Attributes:
        key: Document key inside its collection.
        data: Document properties.
    """

    key: str
    data: Mapping[str, Any] = field(default_factory=dict)
