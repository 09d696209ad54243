"""In-process document and blob backends.

These backends keep every collection and blob in memory behind a lock.
They back the default configuration and double as test fakes.
"""

from __future__ import annotations

import copy
import secrets
import string
import threading
from typing import Any, Iterable, Mapping, Sequence

from core.constants import GENERATED_KEY_LENGTH, MEMORY_LOCATOR_SCHEME
from core.errors import StrataExistenceError
from core.types import DocumentSnapshot, QuerySpec
from query.query_evaluation import evaluate_query
from store.blob_store import BlobRef, BlobStore
from store.document_store import DocumentStore

_KEY_ALPHABET = string.ascii_letters + string.digits


def generate_document_key() -> str:
    """Return a random alphanumeric key."""
    return "".join(secrets.choice(_KEY_ALPHABET) for _ in range(GENERATED_KEY_LENGTH))


class MemoryDocumentStore(DocumentStore):
    """Thread-safe in-memory document store.

    Subclasses can persist collections by overriding
    ``_read_collection`` and ``_write_collection``.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}

    def new_key(self, path: str) -> str:
        with self._lock:
            documents = self._read_collection(path)
            key = generate_document_key()
            while key in documents:
                key = generate_document_key()
            return key

    def get(self, path: str, key: str) -> dict[str, Any] | None:
        with self._lock:
            data = self._read_collection(path).get(key)
            return copy.deepcopy(data) if data is not None else None

    def set(self, path: str, key: str, data: Mapping[str, Any]) -> None:
        with self._lock:
            documents = self._read_collection(path)
            documents[key] = copy.deepcopy(dict(data))
            self._write_collection(path, documents)

    def merge(self, path: str, key: str, data: Mapping[str, Any]) -> None:
        with self._lock:
            documents = self._read_collection(path)
            if key not in documents:
                raise StrataExistenceError(f"Key {key} does not exist in collection {path}.")
            documents[key].update(copy.deepcopy(dict(data)))
            self._write_collection(path, documents)

    def delete(self, path: str, key: str) -> None:
        with self._lock:
            documents = self._read_collection(path)
            if documents.pop(key, None) is not None:
                self._write_collection(path, documents)

    def query(self, path: str, spec: QuerySpec) -> list[DocumentSnapshot]:
        with self._lock:
            rows = list(copy.deepcopy(self._read_collection(path)).items())
        return evaluate_query(rows, spec)

    def set_many(self, path: str, items: Mapping[str, Mapping[str, Any]]) -> None:
        staged = {key: copy.deepcopy(dict(data)) for key, data in items.items()}
        with self._lock:
            documents = self._read_collection(path)
            documents.update(staged)
            self._write_collection(path, documents)

    def delete_many(self, path: str, keys: Iterable[str]) -> None:
        with self._lock:
            documents = self._read_collection(path)
            for key in keys:
                documents.pop(key, None)
            self._write_collection(path, documents)

    def collection_paths(self) -> list[str]:
        with self._lock:
            return sorted(self._collections)

    def _read_collection(self, path: str) -> dict[str, dict[str, Any]]:
        return self._collections.setdefault(path, {})

    def _write_collection(self, path: str, documents: dict[str, dict[str, Any]]) -> None:
        self._collections[path] = documents


class MemoryBlobStore(BlobStore):
    """Thread-safe in-memory blob container."""

    def __init__(self, bucket: str = "strata", public_base_url: str | None = None) -> None:
        self._lock = threading.Lock()
        self._bucket = bucket
        self._public_base_url = public_base_url.rstrip("/") if public_base_url else None
        self._blobs: dict[str, bytes] = {}
        self._public: set[str] = set()

    def exists(self, path: str) -> bool:
        with self._lock:
            return path in self._blobs

    def create(self, path: str, data: bytes, public_read: bool = True) -> None:
        with self._lock:
            if path in self._blobs:
                raise StrataExistenceError(f"Blob {path} already exists.")
            self._blobs[path] = bytes(data)
            if public_read:
                self._public.add(path)

    def overwrite(self, path: str, data: bytes) -> None:
        with self._lock:
            if path not in self._blobs:
                raise StrataExistenceError(f"Blob {path} does not exist.")
            self._blobs[path] = bytes(data)

    def read(self, path: str) -> bytes | None:
        with self._lock:
            return self._blobs.get(path)

    def locator(self, path: str) -> str:
        with self._lock:
            if path not in self._blobs:
                raise StrataExistenceError(f"Blob {path} does not exist.")
        return self._locator(path)

    def delete(self, path: str) -> None:
        with self._lock:
            self._blobs.pop(path, None)
            self._public.discard(path)

    def get_many(self, paths: Sequence[str]) -> list[BlobRef | None]:
        with self._lock:
            present = [path in self._blobs for path in paths]
        return [
            BlobRef(path=path, locator=self._locator(path)) if found else None
            for path, found in zip(paths, present)
        ]

    def is_public(self, path: str) -> bool:
        with self._lock:
            return path in self._public

    def paths(self) -> list[str]:
        with self._lock:
            return sorted(self._blobs)

    def _locator(self, path: str) -> str:
        if self._public_base_url:
            return f"{self._public_base_url}/{path}"
        return f"{MEMORY_LOCATOR_SCHEME}://{self._bucket}/{path}"
