"""Document store interface and collection handle.

Backends implement ``DocumentStore``; every other module talks to a
``DocumentCollection`` handle that binds a store to one collection path
and turns each backend call into a blocking call with split failures.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Iterable, Mapping

from core.types import DocumentSnapshot, QuerySpec
from store.store_call import await_store


class DocumentStore(ABC):
    """Backend contract for a keyed document database.

    Every method may return its result directly or as a
    ``concurrent.futures.Future``.
    """

    @abstractmethod
    def new_key(self, path: str) -> Any:
        """Generate an unused document key for a collection."""

    @abstractmethod
    def get(self, path: str, key: str) -> Any:
        """Return the document payload, or None when it does not exist."""

    @abstractmethod
    def set(self, path: str, key: str, data: Mapping[str, Any]) -> Any:
        """Create or fully replace a document."""

    @abstractmethod
    def merge(self, path: str, key: str, data: Mapping[str, Any]) -> Any:
        """Merge properties into an existing document."""

    @abstractmethod
    def delete(self, path: str, key: str) -> Any:
        """Delete a document; deleting a missing document is a no-op."""

    @abstractmethod
    def query(self, path: str, spec: QuerySpec) -> Any:
        """Return matching ``DocumentSnapshot`` records in query order."""

    @abstractmethod
    def set_many(self, path: str, items: Mapping[str, Mapping[str, Any]]) -> Any:
        """Create or replace several documents in one atomic commit."""

    @abstractmethod
    def delete_many(self, path: str, keys: Iterable[str]) -> Any:
        """Delete several documents in one atomic commit."""


class DocumentCollection:
    """Blocking handle on one collection of a document store."""

    def __init__(self, store: DocumentStore, path: str) -> None:
        self._store = store
        self._path = path

    @property
    def store(self) -> DocumentStore:
        """Backing document store."""
        return self._store

    @property
    def path(self) -> str:
        """Collection path."""
        return self._path

    def new_key(self) -> str:
        return str(await_store(f"generate a key in {self._path}", self._store.new_key, self._path))

    def get(self, key: str) -> DocumentSnapshot | None:
        """Fetch one document by key.

        Returns:
            The document snapshot, or None when absent.
        """
        data = await_store(f"read document {self._path}/{key}", self._store.get, self._path, key)
        if data is None:
            return None
        return DocumentSnapshot(key=key, data=dict(data))

    def exists(self, key: str) -> bool:
        return self.get(key) is not None

    def set(self, key: str, data: Mapping[str, Any]) -> None:
        await_store(f"write document {self._path}/{key}", self._store.set, self._path, key, data)

    def merge(self, key: str, data: Mapping[str, Any]) -> None:
        await_store(f"merge document {self._path}/{key}", self._store.merge, self._path, key, data)

    def delete(self, key: str) -> None:
        await_store(f"delete document {self._path}/{key}", self._store.delete, self._path, key)

    def query(self, spec: QuerySpec) -> list[DocumentSnapshot]:
        """Run a composed query.

        Returns:
            Matching snapshots in query order.
        """
        rows = await_store(f"query collection {self._path}", self._store.query, self._path, spec)
        return list(rows)

    def set_many(self, items: Mapping[str, Mapping[str, Any]]) -> None:
        await_store(
            f"commit {len(items)} document writes in {self._path}",
            self._store.set_many,
            self._path,
            items,
        )

    def delete_many(self, keys: Iterable[str]) -> None:
        key_list = list(keys)
        await_store(
            f"commit {len(key_list)} document deletions in {self._path}",
            self._store.delete_many,
            self._path,
            key_list,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DocumentCollection):
            return NotImplemented
        return self._store is other._store and self._path == other._path

    def __hash__(self) -> int:
        return hash((id(self._store), self._path))

    def __repr__(self) -> str:
        return f"DocumentCollection(path={self._path!r}, store={type(self._store).__name__})"
