"""Filesystem-backed document and blob backends.

Each document collection is one JSON file under ``documents/`` and each
blob is one file under ``blobs/`` in the configured data root. Writes go
through a temporary file and an atomic rename, so a batch commit either
lands completely or not at all.
"""

from __future__ import annotations

import json
import os
import threading
from pathlib import Path
from typing import Any, Sequence

from core.constants import BLOBS_DIR_NAME, COLLECTION_FILE_SUFFIX, DOCUMENTS_DIR_NAME
from core.errors import StrataExistenceError, StrataStorageError
from store.blob_store import BlobRef, BlobStore
from store.memory_store import MemoryDocumentStore

_PUBLIC_FILE_MODE = 0o644
_PRIVATE_FILE_MODE = 0o600


class LocalDocumentStore(MemoryDocumentStore):
    """Document store persisting one JSON file per collection.

    Document values must be JSON-serializable.
    """

    def __init__(self, data_root: Path) -> None:
        super().__init__()
        self._documents_root = data_root / DOCUMENTS_DIR_NAME
        self._documents_root.mkdir(parents=True, exist_ok=True)

    def collection_paths(self) -> list[str]:
        return sorted(
            item.name[: -len(COLLECTION_FILE_SUFFIX)]
            for item in self._documents_root.glob(f"*{COLLECTION_FILE_SUFFIX}")
        )

    def _collection_file(self, path: str) -> Path:
        return self._documents_root / f"{path}{COLLECTION_FILE_SUFFIX}"

    def _read_collection(self, path: str) -> dict[str, dict[str, Any]]:
        collection_file = self._collection_file(path)
        if not collection_file.exists():
            return {}
        try:
            payload = json.loads(collection_file.read_text(encoding="utf-8"))
        except json.JSONDecodeError as error:
            raise StrataStorageError(
                f"Failed to parse collection file at {collection_file}: {error.msg}. "
                "Restore the file from a backup or delete it."
            ) from error
        except OSError as error:
            raise StrataStorageError(
                f"Failed to read collection file at {collection_file}: {error}."
            ) from error
        if not isinstance(payload, dict):
            raise StrataStorageError(
                f"Failed to parse collection file at {collection_file}: "
                "expected JSON object at top level."
            )
        return payload

    def _write_collection(self, path: str, documents: dict[str, dict[str, Any]]) -> None:
        collection_file = self._collection_file(path)
        try:
            text = json.dumps(documents, indent=2, sort_keys=True) + "\n"
        except TypeError as error:
            raise StrataStorageError(
                f"Documents of collection {path} are not JSON-serializable: {error}."
            ) from error
        _atomic_write(collection_file, text.encode("utf-8"))


class LocalBlobStore(BlobStore):
    """Blob container storing files under the data root.

    Public read is realized as a world-readable file mode; locators are
    ``file://`` URIs unless a public base url is configured.
    """

    def __init__(self, data_root: Path, public_base_url: str | None = None) -> None:
        self._lock = threading.Lock()
        self._blobs_root = data_root / BLOBS_DIR_NAME
        self._blobs_root.mkdir(parents=True, exist_ok=True)
        self._public_base_url = public_base_url.rstrip("/") if public_base_url else None

    def exists(self, path: str) -> bool:
        return self._blob_file(path).is_file()

    def create(self, path: str, data: bytes, public_read: bool = True) -> None:
        blob_file = self._blob_file(path)
        with self._lock:
            if blob_file.exists():
                raise StrataExistenceError(f"Blob {path} already exists.")
            _atomic_write(blob_file, data)
            blob_file.chmod(_PUBLIC_FILE_MODE if public_read else _PRIVATE_FILE_MODE)

    def overwrite(self, path: str, data: bytes) -> None:
        blob_file = self._blob_file(path)
        with self._lock:
            if not blob_file.is_file():
                raise StrataExistenceError(f"Blob {path} does not exist.")
            mode = blob_file.stat().st_mode & 0o777
            _atomic_write(blob_file, data)
            blob_file.chmod(mode)

    def read(self, path: str) -> bytes | None:
        blob_file = self._blob_file(path)
        if not blob_file.is_file():
            return None
        return blob_file.read_bytes()

    def locator(self, path: str) -> str:
        blob_file = self._blob_file(path)
        if not blob_file.is_file():
            raise StrataExistenceError(f"Blob {path} does not exist.")
        return self._locator(path, blob_file)

    def delete(self, path: str) -> None:
        blob_file = self._blob_file(path)
        with self._lock:
            blob_file.unlink(missing_ok=True)

    def get_many(self, paths: Sequence[str]) -> list[BlobRef | None]:
        refs: list[BlobRef | None] = []
        for path in paths:
            blob_file = self._blob_file(path)
            if blob_file.is_file():
                refs.append(BlobRef(path=path, locator=self._locator(path, blob_file)))
            else:
                refs.append(None)
        return refs

    def _blob_file(self, path: str) -> Path:
        blob_file = (self._blobs_root / path).resolve()
        if self._blobs_root.resolve() not in blob_file.parents:
            raise StrataStorageError(f"Blob path {path} escapes the blob root {self._blobs_root}.")
        return blob_file

    def _locator(self, path: str, blob_file: Path) -> str:
        if self._public_base_url:
            return f"{self._public_base_url}/{path}"
        return blob_file.as_uri()


def _atomic_write(target: Path, data: bytes) -> None:
    """Write bytes through a temporary sibling and an atomic rename.

    Raises:
        StrataStorageError: If the write fails.
    """
    temp_file = target.with_suffix(target.suffix + ".tmp")
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        temp_file.write_bytes(data)
        os.replace(temp_file, target)
    except OSError as error:
        raise StrataStorageError(
            f"Failed to write {target}: {error}. Check write permissions and available disk space."
        ) from error
