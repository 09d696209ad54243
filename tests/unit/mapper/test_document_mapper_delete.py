"""Unit tests for mapper delete and single-blob operations."""

from __future__ import annotations

import io
from dataclasses import dataclass

import pytest

from core.config import StrataConfig
from core.errors import StrataExistenceError, StrataFormatError
from mapper.client import StrataClient
from schema.markers import file_field, key_field
from store.memory_store import MemoryBlobStore, MemoryDocumentStore


@dataclass
class Listing:
    code: str = key_field(default="")
    photo: str | None = file_field()
    manual: str | None = file_field()
    city: str = ""


class _RecordingDocumentStore(MemoryDocumentStore):
    def __init__(self) -> None:
        super().__init__()
        self.batch_deletes: list[list[str]] = []
        self.single_deletes: list[str] = []

    def delete(self, path, key):
        self.single_deletes.append(key)
        super().delete(path, key)

    def delete_many(self, path, keys):
        keys = list(keys)
        self.batch_deletes.append(sorted(keys))
        super().delete_many(path, keys)


def _blobs(client):
    _, blobs = client.connector.resolve("listings")
    return blobs


def test_delete_removes_document_and_blobs(memory_client) -> None:
    """Deleting a key should remove the document and its file blobs."""
    mapper = memory_client.mapper(Listing, "listings")
    mapper.create(Listing(code="l1"), files={"photo": io.BytesIO(b"img")})

    mapper.delete("l1")

    assert not mapper.exists("l1") and _blobs(memory_client).paths() == []


def test_delete_missing_key_is_noop_unless_required(memory_client) -> None:
    """Deleting a missing key should only fail when required."""
    mapper = memory_client.mapper(Listing, "listings")
    mapper.delete("ghost")

    with pytest.raises(StrataExistenceError):
        mapper.delete("ghost", required=True)


def test_delete_selection_removes_matches_and_blobs(memory_client) -> None:
    """Selection deletes should remove every match and every derived blob."""
    mapper = memory_client.mapper(Listing, "listings")
    mapper.create(Listing(code="l1", city="porto"), files={"photo": io.BytesIO(b"a")})
    mapper.create(
        Listing(code="l2", city="porto"),
        files={"photo": io.BytesIO(b"b"), "manual": io.BytesIO(b"c")},
    )
    mapper.create(Listing(code="l3", city="lisbon"), files={"photo": io.BytesIO(b"d")})

    count = mapper.delete_selection(mapper.select().where_equal_to("city", "porto"))

    assert (count, mapper.select().keys(), _blobs(memory_client).paths()) == (
        2,
        ["l3"],
        ["listings/l3/photo"],
    )


def test_delete_selection_with_no_matches(memory_client) -> None:
    """Empty selections should delete nothing."""
    mapper = memory_client.mapper(Listing, "listings")
    mapper.create(Listing(code="l1"))

    assert mapper.delete_selection(mapper.select().where_equal_to("city", "faro")) == 0


def test_file_operations_cycle(memory_client) -> None:
    """Single-blob operations should create, locate, overwrite and delete a blob."""
    mapper = memory_client.mapper(Listing, "listings")
    created = mapper.create_file("l1", "manual", io.BytesIO(b"v1"))
    located = mapper.retrieve_file("l1", "manual")
    mapper.update_file("l1", "manual", b"v2")
    content = _blobs(memory_client).read("listings/l1/manual")

    mapper.delete_file("l1", "manual")

    assert (created == located, content, mapper.retrieve_file("l1", "manual", required=False)) == (
        True,
        b"v2",
        None,
    )


def test_create_file_rejects_existing_blob(memory_client) -> None:
    """Creating an existing blob should raise an existence error."""
    mapper = memory_client.mapper(Listing, "listings")
    mapper.create_file("l1", "photo", b"img")

    with pytest.raises(StrataExistenceError):
        mapper.create_file("l1", "photo", b"img")


def test_update_file_requires_existing_blob(memory_client) -> None:
    """Overwriting a missing blob should raise an existence error."""
    with pytest.raises(StrataExistenceError):
        memory_client.mapper(Listing, "listings").update_file("l1", "photo", b"img")


def test_delete_file_missing_blob_respects_required(memory_client) -> None:
    """Deleting a missing blob should only fail when required."""
    mapper = memory_client.mapper(Listing, "listings")
    mapper.delete_file("l1", "photo", required=False)

    with pytest.raises(StrataExistenceError):
        mapper.delete_file("l1", "photo")


def test_file_operations_validate_field_name(memory_client) -> None:
    """Single-blob operations must target declared file fields."""
    with pytest.raises(StrataFormatError, match="city"):
        memory_client.mapper(Listing, "listings").create_file("l1", "city", b"x")


def test_text_streams_are_rejected(memory_client) -> None:
    """Streams must yield bytes."""
    with pytest.raises(StrataFormatError, match="binary"):
        memory_client.mapper(Listing, "listings").create_file("l1", "photo", io.StringIO("x"))


def test_delete_selection_commits_one_batch(strata_env) -> None:
    """Selection deletes should remove every match in a single batch commit."""
    store = _RecordingDocumentStore()
    client = StrataClient(
        StrataConfig.from_env(), document_store=store, blob_store=MemoryBlobStore()
    )
    mapper = client.mapper(Listing, "listings")
    mapper.create_many(
        [Listing(code="l1", city="porto"), Listing(code="l2", city="porto"), Listing(code="l3")]
    )

    mapper.delete_selection(mapper.select().where_equal_to("city", "porto"))

    assert (store.batch_deletes, store.single_deletes) == ([["l1", "l2"]], [])
