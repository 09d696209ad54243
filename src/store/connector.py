"""Store connector lifecycle and registry.

A connector owns one document store and one blob store built from a
``StrataConfig``. Mappers resolve collection handles through a connected
connector. The registry keeps one default connector plus named ones and
is constructed once at startup, then shared by reference.
"""

from __future__ import annotations

import threading

from core.config import StrataConfig
from core.errors import StrataConnectionError, StrataFormatError
from core.identifiers import clean_key
from core.logging_config import get_logger
from store.blob_store import BlobStore
from store.document_store import DocumentCollection, DocumentStore
from store.local_store import LocalBlobStore, LocalDocumentStore
from store.memory_store import MemoryBlobStore, MemoryDocumentStore
from store.s3_blob_store import S3BlobStore, create_s3_client

_LOGGER = get_logger(__name__)


def build_document_store(config: StrataConfig) -> DocumentStore:
    """Build the configured document store backend.

    Args:
        config: Runtime config.

    Returns:
        Document store instance.
    """
    if config.document_backend == "local":
        return LocalDocumentStore(config.data_root)
    return MemoryDocumentStore()


def build_blob_store(config: StrataConfig) -> BlobStore:
    """Build the configured blob store backend.

    Args:
        config: Runtime config.

    Returns:
        Blob store instance.

    Raises:
        StrataDependencyError: If the s3 backend is selected without boto3.
    """
    if config.blob_backend == "s3":
        return S3BlobStore(
            create_s3_client(config),
            bucket=str(config.s3_bucket),
            region=config.s3_region,
            public_base_url=config.public_base_url,
        )
    if config.blob_backend == "local":
        return LocalBlobStore(config.data_root, public_base_url=config.public_base_url)
    return MemoryBlobStore(public_base_url=config.public_base_url)


class StoreConnector:
    """Connection to one document store and one blob store.

    Stores can be injected directly; otherwise they are built from the
    config on every ``connect``.
    """

    def __init__(
        self,
        config: StrataConfig,
        name: str | None = None,
        document_store: DocumentStore | None = None,
        blob_store: BlobStore | None = None,
    ) -> None:
        self._config = config
        self._name = name
        self._injected_document_store = document_store
        self._injected_blob_store = blob_store
        self._document_store: DocumentStore | None = None
        self._blob_store: BlobStore | None = None
        self._lock = threading.Lock()

    @property
    def name(self) -> str | None:
        """Registry name, or None for the default connector."""
        return self._name

    @property
    def config(self) -> StrataConfig:
        return self._config

    @property
    def is_connected(self) -> bool:
        return self._document_store is not None

    def connect(self) -> None:
        """Open the backing stores.

        Raises:
            StrataConnectionError: If the connector is already connected.
        """
        with self._lock:
            if self._document_store is not None:
                raise StrataConnectionError(
                    f"Connector {self.label} is already connected. Disconnect it first."
                )
            self._document_store = self._injected_document_store or build_document_store(
                self._config
            )
            self._blob_store = self._injected_blob_store or build_blob_store(self._config)
        _LOGGER.info(
            "connector_connected",
            connector=self.label,
            document_backend=type(self._document_store).__name__,
            blob_backend=type(self._blob_store).__name__,
        )

    def disconnect(self) -> None:
        """Release the backing stores.

        Raises:
            StrataConnectionError: If the connector is not connected.
        """
        with self._lock:
            if self._document_store is None:
                raise StrataConnectionError(
                    f"Connector {self.label} is not connected. Call connect() first."
                )
            self._document_store = None
            self._blob_store = None
        _LOGGER.info("connector_disconnected", connector=self.label)

    def resolve(self, path: str) -> tuple[DocumentCollection, BlobStore]:
        """Resolve a collection path into store handles.

        Args:
            path: Collection path.

        Returns:
            Collection handle and blob store.

        Raises:
            StrataFormatError: If the path is malformed.
            StrataConnectionError: If the connector is not connected.
        """
        collection_path = clean_key(path, label="Collection path")
        with self._lock:
            document_store = self._document_store
            blob_store = self._blob_store
        if document_store is None or blob_store is None:
            raise StrataConnectionError(
                f"Connector {self.label} is not connected. Call connect() before "
                f"resolving {collection_path}."
            )
        return DocumentCollection(document_store, collection_path), blob_store

    @property
    def label(self) -> str:
        """Name used in log events and messages."""
        return self._name if self._name is not None else "<default>"


class ConnectorRegistry:
    """Default and named store connectors of one process."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._default: StoreConnector | None = None
        self._named: dict[str, StoreConnector] = {}

    def create(
        self,
        config: StrataConfig,
        name: str | None = None,
        document_store: DocumentStore | None = None,
        blob_store: BlobStore | None = None,
    ) -> StoreConnector:
        """Register a new connector.

        Args:
            config: Runtime config of the connector.
            name: Connector name, or None for the default connector.
            document_store: Optional injected document store.
            blob_store: Optional injected blob store.

        Returns:
            The registered, not yet connected connector.

        Raises:
            StrataFormatError: If the name is blank.
            StrataConnectionError: If the name is already registered.
        """
        connector_name = _clean_name(name)
        connector = StoreConnector(
            config,
            name=connector_name,
            document_store=document_store,
            blob_store=blob_store,
        )
        with self._lock:
            if connector_name is None:
                if self._default is not None:
                    raise StrataConnectionError(
                        "A default connector already exists. Remove it or pass a name."
                    )
                self._default = connector
            else:
                if connector_name in self._named:
                    raise StrataConnectionError(
                        f"Connector {connector_name} already exists. Choose another name."
                    )
                self._named[connector_name] = connector
        return connector

    def get(self, name: str | None = None) -> StoreConnector:
        """Return a registered connector.

        Raises:
            StrataConnectionError: If no connector is registered under the name.
        """
        connector_name = _clean_name(name)
        with self._lock:
            connector = self._default if connector_name is None else self._named.get(connector_name)
        if connector is None:
            label = "default connector" if connector_name is None else f"connector {connector_name}"
            raise StrataConnectionError(f"No {label} is registered. Call create() first.")
        return connector

    def contains(self, name: str | None = None) -> bool:
        connector_name = _clean_name(name)
        with self._lock:
            if connector_name is None:
                return self._default is not None
            return connector_name in self._named

    def remove(self, name: str | None = None) -> None:
        """Unregister a disconnected connector.

        Raises:
            StrataConnectionError: If the connector is unknown or still connected.
        """
        connector = self.get(name)
        if connector.is_connected:
            raise StrataConnectionError(
                f"Connector {connector.label} is still connected. Disconnect it before removal."
            )
        with self._lock:
            if connector.name is None:
                self._default = None
            else:
                self._named.pop(connector.name, None)


def _clean_name(name: str | None) -> str | None:
    if name is None:
        return None
    cleaned = name.strip()
    if not cleaned:
        raise StrataFormatError("Connector name cannot be blank.")
    return cleaned
