"""Unit tests for the SDK client."""

from __future__ import annotations

from dataclasses import dataclass, replace

import pytest

from core.config import StrataConfig
from core.errors import StrataConnectionError
from mapper.client import StrataClient
from schema.markers import key_field
from store.local_store import LocalDocumentStore


@dataclass
class Note:
    slug: str = key_field(default="")
    body: str = ""


def test_client_connects_default_connector(strata_env) -> None:
    """A new client should hold a connected default connector."""
    client = StrataClient()

    assert client.connector.is_connected and client.connectors.get() is client.connector


def test_mappers_share_schema_registry(memory_client) -> None:
    """Mappers of one client should share the extracted metadata."""
    first = memory_client.mapper(Note, "notes")
    second = memory_client.mapper(Note, "archive")

    assert first.metadata is second.metadata


def test_collection_sees_mapper_writes(memory_client) -> None:
    """Raw collection handles should see documents written by mappers."""
    memory_client.mapper(Note, "notes").create(Note(slug="hello", body="hi"))

    assert memory_client.collection("notes").get("hello").data == {"slug": "hello", "body": "hi"}


def test_client_uses_configured_local_backend(strata_env) -> None:
    """The local backend should persist documents across clients."""
    config = replace(StrataConfig.from_env(), document_backend="local")
    StrataClient(config).mapper(Note, "notes").create(Note(slug="hello"))

    reopened = StrataClient(config)

    assert isinstance(reopened.collection("notes").store, LocalDocumentStore) and (
        reopened.mapper(Note, "notes").exists("hello")
    )


def test_close_disconnects_default_connector(memory_client) -> None:
    """Closed clients should refuse further store access."""
    mapper = memory_client.mapper(Note, "notes")
    memory_client.close()

    with pytest.raises(StrataConnectionError):
        mapper.exists("hello")
