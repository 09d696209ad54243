"""Python SDK entry point.

This module wires the schema registry and the connector registry into
one client and hands out mappers and raw collection handles.
"""

from __future__ import annotations

from core.config import StrataConfig
from mapper.document_mapper import DocumentMapper
from schema.registry import SchemaRegistry
from store.blob_store import BlobStore
from store.connector import ConnectorRegistry, StoreConnector
from store.document_store import DocumentCollection, DocumentStore


class StrataClient:
    """Primary SDK entry point."""

    def __init__(
        self,
        config: StrataConfig | None = None,
        document_store: DocumentStore | None = None,
        blob_store: BlobStore | None = None,
    ) -> None:
        """Create the registries and connect the default connector.

        Args:
            config: Optional runtime configuration; read from the
                environment when omitted.
            document_store: Optional document store replacing the
                configured backend.
            blob_store: Optional blob store replacing the configured backend.
        """
        self._config = config or StrataConfig.from_env()
        self._schemas = SchemaRegistry()
        self._connectors = ConnectorRegistry()
        self._connector = self._connectors.create(
            self._config,
            document_store=document_store,
            blob_store=blob_store,
        )
        self._connector.connect()

    @property
    def config(self) -> StrataConfig:
        return self._config

    @property
    def schemas(self) -> SchemaRegistry:
        return self._schemas

    @property
    def connectors(self) -> ConnectorRegistry:
        return self._connectors

    @property
    def connector(self) -> StoreConnector:
        """Default connector of this client."""
        return self._connector

    def mapper(self, entity_type: type, path: str) -> DocumentMapper:
        """Get a mapper for an entity type stored under a collection path.

        Args:
            entity_type: Entity dataclass with storage markers.
            path: Collection path.

        Returns:
            Mapper bound lazily to the default connector.
        """
        return DocumentMapper(entity_type, path, self._schemas, connectors=self._connectors)

    def collection(self, path: str) -> DocumentCollection:
        """Get a raw document collection handle.

        Args:
            path: Collection path.

        Returns:
            Collection handle of the default connector.
        """
        collection, _ = self._connector.resolve(path)
        return collection

    def close(self) -> None:
        """Disconnect the default connector when it is still connected."""
        if self._connector.is_connected:
            self._connector.disconnect()
