"""Unit tests for the filesystem-backed backends."""

from __future__ import annotations

import json
import stat

import pytest

from core.errors import StrataExistenceError, StrataStorageError
from core.types import QuerySpec
from store.document_store import DocumentCollection
from store.local_store import LocalBlobStore, LocalDocumentStore


def test_documents_persist_across_store_instances(tmp_path) -> None:
    """A new store over the same root should see written documents."""
    DocumentCollection(LocalDocumentStore(tmp_path), "items").set("a", {"name": "lamp"})

    snapshot = DocumentCollection(LocalDocumentStore(tmp_path), "items").get("a")

    assert snapshot is not None and snapshot.data == {"name": "lamp"}


def test_collection_file_is_json(tmp_path) -> None:
    """Each collection should be stored as one JSON object."""
    DocumentCollection(LocalDocumentStore(tmp_path), "items").set("a", {"price": 3})

    payload = json.loads((tmp_path / "documents" / "items.json").read_text(encoding="utf-8"))

    assert payload == {"a": {"price": 3}}


def test_collection_paths_lists_files(tmp_path) -> None:
    """Stored collections should be listed by path."""
    store = LocalDocumentStore(tmp_path)
    DocumentCollection(store, "orders").set("a", {})
    DocumentCollection(store, "items").set("a", {})

    assert store.collection_paths() == ["items", "orders"]


def test_query_reads_persisted_documents(tmp_path) -> None:
    """Queries should evaluate over the persisted collection."""
    collection = DocumentCollection(LocalDocumentStore(tmp_path), "items")
    collection.set_many({"b": {"n": 2}, "a": {"n": 1}})

    assert [snapshot.key for snapshot in collection.query(QuerySpec())] == ["a", "b"]


def test_corrupt_collection_file_raises_storage_error(tmp_path) -> None:
    """Unparseable collection files should raise a storage error."""
    store = LocalDocumentStore(tmp_path)
    (tmp_path / "documents" / "items.json").write_text("{broken", encoding="utf-8")

    with pytest.raises(StrataStorageError, match="parse"):
        DocumentCollection(store, "items").get("a")


def test_unserializable_document_raises_storage_error(tmp_path) -> None:
    """Documents that are not JSON-serializable should be rejected."""
    collection = DocumentCollection(LocalDocumentStore(tmp_path), "items")

    with pytest.raises(StrataStorageError):
        collection.set("a", {"payload": object()})


def test_blob_public_read_sets_world_readable_mode(tmp_path) -> None:
    """Public blobs should be world-readable, private ones owner-only."""
    blobs = LocalBlobStore(tmp_path)
    blobs.create("items/a/photo", b"img", public_read=True)
    blobs.create("items/a/scan", b"doc", public_read=False)

    public_mode = (tmp_path / "blobs" / "items" / "a" / "photo").stat().st_mode
    private_mode = (tmp_path / "blobs" / "items" / "a" / "scan").stat().st_mode

    assert bool(public_mode & stat.S_IROTH) and not private_mode & stat.S_IROTH


def test_blob_overwrite_replaces_content(tmp_path) -> None:
    """Overwrite should replace content in place."""
    blobs = LocalBlobStore(tmp_path)
    blobs.create("items/a/photo", b"old")

    blobs.overwrite("items/a/photo", b"new")

    assert blobs.read("items/a/photo") == b"new"


def test_blob_create_rejects_existing_path(tmp_path) -> None:
    """Creating an existing blob should raise an existence error."""
    blobs = LocalBlobStore(tmp_path)
    blobs.create("items/a/photo", b"img")

    with pytest.raises(StrataExistenceError):
        blobs.create("items/a/photo", b"img")


def test_blob_locator_is_file_uri(tmp_path) -> None:
    """Locators should be file URIs without a public base url."""
    blobs = LocalBlobStore(tmp_path)
    blobs.create("items/a/photo", b"img")

    assert blobs.locator("items/a/photo").startswith("file://")


def test_blob_delete_tolerates_missing(tmp_path) -> None:
    """Deleting a missing blob should be a no-op."""
    blobs = LocalBlobStore(tmp_path)

    blobs.delete("items/a/photo")

    assert blobs.read("items/a/photo") is None


def test_blob_path_cannot_escape_root(tmp_path) -> None:
    """Blob paths resolving outside the blob root should be rejected."""
    with pytest.raises(StrataStorageError, match="escapes"):
        LocalBlobStore(tmp_path).read("../outside")
