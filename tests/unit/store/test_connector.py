"""Unit tests for store connectors and the connector registry."""

from __future__ import annotations

from dataclasses import replace

import pytest

from core.config import StrataConfig
from core.errors import StrataConnectionError, StrataFormatError
from store.connector import ConnectorRegistry, StoreConnector, build_blob_store
from store.local_store import LocalBlobStore, LocalDocumentStore
from store.memory_store import MemoryBlobStore, MemoryDocumentStore


def test_connect_builds_configured_backends(strata_env) -> None:
    """Connecting should build the backends named by the config."""
    config = replace(StrataConfig.from_env(), document_backend="local", blob_backend="local")
    connector = StoreConnector(config)
    connector.connect()

    collection, blobs = connector.resolve("items")

    assert isinstance(collection.store, LocalDocumentStore) and isinstance(blobs, LocalBlobStore)


def test_resolve_requires_connection(strata_env) -> None:
    """Resolving before connecting should raise a connection error."""
    connector = StoreConnector(StrataConfig.from_env())

    with pytest.raises(StrataConnectionError, match="not connected"):
        connector.resolve("items")


def test_resolve_validates_collection_path(strata_env) -> None:
    """Collection paths should follow the key rules."""
    connector = StoreConnector(StrataConfig.from_env())
    connector.connect()

    with pytest.raises(StrataFormatError, match="Collection path"):
        connector.resolve("items/nested")


def test_connect_twice_is_an_error(strata_env) -> None:
    """Connecting an already connected connector should fail."""
    connector = StoreConnector(StrataConfig.from_env())
    connector.connect()

    with pytest.raises(StrataConnectionError, match="already connected"):
        connector.connect()


def test_disconnect_requires_connection(strata_env) -> None:
    """Disconnecting a disconnected connector should fail."""
    with pytest.raises(StrataConnectionError):
        StoreConnector(StrataConfig.from_env()).disconnect()


def test_injected_stores_survive_reconnect(strata_env) -> None:
    """Injected stores should be reused after a reconnect."""
    store = MemoryDocumentStore()
    connector = StoreConnector(
        StrataConfig.from_env(), document_store=store, blob_store=MemoryBlobStore()
    )
    connector.connect()
    connector.disconnect()
    connector.connect()

    collection, _ = connector.resolve("items")

    assert collection.store is store


def test_build_blob_store_uses_s3_client(strata_env, monkeypatch: pytest.MonkeyPatch) -> None:
    """The s3 backend should be built around a boto3 client."""
    created: list[StrataConfig] = []

    def fake_client(config: StrataConfig) -> object:
        created.append(config)
        return object()

    monkeypatch.setattr("store.connector.create_s3_client", fake_client)
    config = replace(StrataConfig.from_env(), blob_backend="s3", s3_bucket="media")

    blobs = build_blob_store(config)

    assert type(blobs).__name__ == "S3BlobStore" and created == [config]


def test_registry_keeps_default_and_named_connectors(strata_env) -> None:
    """The registry should hold one default and any number of named connectors."""
    registry = ConnectorRegistry()
    default = registry.create(StrataConfig.from_env())
    archive = registry.create(StrataConfig.from_env(), name="archive")

    assert registry.get() is default and registry.get(" archive ") is archive


def test_registry_rejects_duplicates(strata_env) -> None:
    """Registering the same name twice should fail."""
    registry = ConnectorRegistry()
    registry.create(StrataConfig.from_env(), name="archive")

    with pytest.raises(StrataConnectionError, match="already exists"):
        registry.create(StrataConfig.from_env(), name="archive")


def test_registry_rejects_blank_names(strata_env) -> None:
    """Connector names should not be blank."""
    with pytest.raises(StrataFormatError):
        ConnectorRegistry().create(StrataConfig.from_env(), name="  ")


def test_registry_get_unknown_name_fails(strata_env) -> None:
    """Looking up an unknown connector should fail."""
    with pytest.raises(StrataConnectionError, match="archive"):
        ConnectorRegistry().get("archive")


def test_registry_refuses_to_remove_connected(strata_env) -> None:
    """Connected connectors should not be removable."""
    registry = ConnectorRegistry()
    registry.create(StrataConfig.from_env()).connect()

    with pytest.raises(StrataConnectionError, match="still connected"):
        registry.remove()


def test_registry_remove_after_disconnect(strata_env) -> None:
    """Disconnected connectors should be removable."""
    registry = ConnectorRegistry()
    connector = registry.create(StrataConfig.from_env(), name="archive")
    connector.connect()
    connector.disconnect()

    registry.remove("archive")

    assert not registry.contains("archive")
