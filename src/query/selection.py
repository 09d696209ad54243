"""Incrementally built document selections.

A ``Selection`` is a mutable, chainable accumulator bound to one
collection handle. Every builder call validates its input, records a
clause in place and returns the same selection. Materialization composes
a fresh ``QuerySpec`` each time, so a selection can be executed again.
A selection is not safe for concurrent mutation.
"""

from __future__ import annotations

from typing import Any, Sequence

from core.errors import StrataFormatError
from core.identifiers import clean_field_name, clean_keys, clean_values
from core.types import DocumentSnapshot, FilterClause, FilterOperator, OrderClause, QuerySpec
from store.document_store import DocumentCollection


class Selection:
    """Accumulating query specification against one collection."""

    def __init__(self, collection: DocumentCollection) -> None:
        self._collection = collection
        self._filters: list[FilterClause] = []
        self._order: OrderClause | None = None
        self._offset = 0
        self._limit: int | None = None
        self._limit_to_last: int | None = None

    @property
    def collection(self) -> DocumentCollection:
        """Collection handle this selection was built against."""
        return self._collection

    def where_equal_to(self, name: str, value: Any) -> "Selection":
        """Match documents whose field equals ``value``."""
        return self._add(name, "==", value)

    def where_not_equal_to(self, name: str, value: Any) -> "Selection":
        """Match documents whose field differs from ``value``."""
        return self._add(name, "!=", value)

    def where_less_than(self, name: str, value: Any) -> "Selection":
        """Match documents whose field is below ``value``."""
        return self._add(name, "<", value)

    def where_less_than_or_equal_to(self, name: str, value: Any) -> "Selection":
        """Match documents whose field is at most ``value``."""
        return self._add(name, "<=", value)

    def where_greater_than(self, name: str, value: Any) -> "Selection":
        """Match documents whose field is above ``value``."""
        return self._add(name, ">", value)

    def where_greater_than_or_equal_to(self, name: str, value: Any) -> "Selection":
        """Match documents whose field is at least ``value``."""
        return self._add(name, ">=", value)

    def where_contains(self, name: str, value: Any) -> "Selection":
        """Match documents whose array field contains ``value``."""
        return self._add(name, "array_contains", value)

    def where_contains_any(self, name: str, values: Sequence[Any]) -> "Selection":
        """Match documents whose array field contains any of ``values``."""
        return self._add_list(name, "array_contains_any", values)

    def where_in(self, name: str, values: Sequence[Any]) -> "Selection":
        """Match documents whose field equals one of ``values``."""
        return self._add_list(name, "in", values)

    def where_not_in(self, name: str, values: Sequence[Any]) -> "Selection":
        """Match documents whose field equals none of ``values``."""
        return self._add_list(name, "not_in", values)

    def where_key_in(self, keys: Sequence[Any]) -> "Selection":
        """Match documents whose key is one of ``keys``."""
        self._filters.append(FilterClause(field_name="", operator="key_in", value=clean_keys(keys)))
        return self

    def where_key_not_in(self, keys: Sequence[Any]) -> "Selection":
        """Match documents whose key is none of ``keys``."""
        self._filters.append(
            FilterClause(field_name="", operator="key_not_in", value=clean_keys(keys))
        )
        return self

    def order_by(self, name: str, descending: bool = False) -> "Selection":
        """Set the single ordering clause, replacing any previous one."""
        self._order = OrderClause(field_name=clean_field_name(name), descending=descending)
        return self

    def offset(self, count: int) -> "Selection":
        """Skip the first ``count`` matches."""
        self._offset = _positive(count, "Offset")
        return self

    def limit(self, count: int) -> "Selection":
        """Keep at most ``count`` matches from the head."""
        self._limit = _positive(count, "Limit")
        self._limit_to_last = None
        return self

    def limit_to_last(self, count: int) -> "Selection":
        """Keep at most ``count`` matches from the ordered tail."""
        self._limit_to_last = _positive(count, "Limit to last")
        self._limit = None
        return self

    def spec(self) -> QuerySpec:
        """Compose the accumulated clauses into an immutable query."""
        return QuerySpec(
            filters=tuple(self._filters),
            order=self._order,
            offset=self._offset,
            limit=self._limit,
            limit_to_last=self._limit_to_last,
        )

    def documents(self) -> list[DocumentSnapshot]:
        """Run the query and block until the matches are available.

        Returns:
            Matching raw records in query order.

        Raises:
            StrataQueryError: If the clauses cannot be combined.
            StrataExecutionError: If the store call fails.
            StrataInterruptedError: If the wait is interrupted.
        """
        return self._collection.query(self.spec())

    def keys(self) -> list[str]:
        """Run the query and return only the matched keys."""
        return [document.key for document in self.documents()]

    def _add(self, name: str, operator: FilterOperator, value: Any) -> "Selection":
        self._filters.append(
            FilterClause(field_name=clean_field_name(name), operator=operator, value=value)
        )
        return self

    def _add_list(self, name: str, operator: FilterOperator, values: Sequence[Any]) -> "Selection":
        field_name = clean_field_name(name)
        candidates = clean_values(field_name, values)
        self._filters.append(
            FilterClause(field_name=field_name, operator=operator, value=candidates)
        )
        return self

    def __repr__(self) -> str:
        return f"Selection({self._collection.path!r}, {self.spec()!r})"


def _positive(count: int, label: str) -> int:
    if isinstance(count, bool) or not isinstance(count, int):
        raise StrataFormatError(f"{label} must be an integer, got {count!r}.")
    if count < 1:
        raise StrataFormatError(f"{label} must be positive, got {count}.")
    return count
