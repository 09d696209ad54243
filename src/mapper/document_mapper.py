"""Object-document mapper for one entity type and collection.

A ``DocumentMapper`` translates entities to documents and back, keeps
file fields in sync with their blobs, and runs selections. It starts
unbound and binds lazily on the first operation through the connector
registry, or explicitly through ``bind``. Every operation re-resolves
its store handles from the bound connector; the entity metadata is
extracted once and kept across re-binding.
"""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from adapters.document_codec import decode_entity, decode_view, encode_entity, encode_view
from adapters.view import View
from core.constants import GETTER_PREFIX
from core.errors import (
    StrataConnectionError,
    StrataExistenceError,
    StrataFormatError,
    StrataQueryError,
)
from core.identifiers import blob_path, clean_key
from core.logging_config import get_logger
from core.types import DocumentSnapshot
from mapper.file_transfer import check_streams, delete_blobs, read_stream, upload_blob
from query.selection import Selection
from schema.entity_metadata import EntityMetadata
from schema.registry import SchemaRegistry
from store.blob_store import BlobStore
from store.connector import ConnectorRegistry, StoreConnector
from store.document_store import DocumentCollection
from store.store_call import await_store

_LOGGER = get_logger(__name__)


class DocumentMapper:
    """Create, retrieve, update and delete entities of one type."""

    def __init__(
        self,
        entity_type: type,
        path: str,
        schemas: SchemaRegistry,
        connectors: ConnectorRegistry | None = None,
        connector_name: str | None = None,
    ) -> None:
        """Create an unbound mapper.

        Args:
            entity_type: Entity dataclass with storage markers.
            path: Collection path; follows the key rules.
            schemas: Shared schema registry.
            connectors: Registry used for lazy binding.
            connector_name: Registry name of the connector, None for default.

        Raises:
            StrataFormatError: If the collection path is malformed.
        """
        self._entity_type = entity_type
        self._path = clean_key(path, label="Collection path")
        self._schemas = schemas
        self._connectors = connectors
        self._connector_name = connector_name
        self._connector: StoreConnector | None = None
        self._metadata: EntityMetadata | None = None

    @property
    def path(self) -> str:
        return self._path

    @property
    def entity_type(self) -> type:
        return self._entity_type

    @property
    def is_bound(self) -> bool:
        return self._connector is not None

    @property
    def metadata(self) -> EntityMetadata:
        """Storage metadata of the entity type, extracted on first use."""
        if self._metadata is None:
            self._metadata = self._schemas.metadata(self._entity_type)
        return self._metadata

    def bind(self, connector: StoreConnector) -> "DocumentMapper":
        """Attach the mapper to a connector, replacing any previous one.

        Args:
            connector: Connected store connector.

        Returns:
            This mapper.

        Raises:
            StrataConnectionError: If the connector is not connected.
            StrataSchemaError: If the entity type is invalid.
        """
        connector.resolve(self._path)
        self._connector = connector
        _ = self.metadata
        return self

    def select(self) -> Selection:
        """Start a selection over the whole collection."""
        collection, _ = self._handles()
        return Selection(collection)

    def select_keys(self, keys: Sequence[Any]) -> Selection:
        """Start a selection restricted to the given keys."""
        return self.select().where_key_in(keys)

    def select_except(self, keys: Sequence[Any]) -> Selection:
        """Start a selection excluding the given keys."""
        return self.select().where_key_not_in(keys)

    def create(
        self,
        entity: Any,
        files: Mapping[str, Any] | None = None,
        view: type[View] | None = None,
    ) -> str:
        """Persist a new entity.

        A store-generated key is written into the key field in place; an
        explicit key keeps its value and type, and its cleaned string form is
        the document key. Every uploaded file field receives the locator url
        of its blob. The existence check and the write are two separate
        store calls, so concurrent creators of the same explicit key can
        both succeed.

        Args:
            entity: Entity instance.
            files: Optional file field name to stream map.
            view: Optional view used to serialize the entity.

        Returns:
            The document key.

        Raises:
            StrataFormatError: If the entity, its key or a stream is invalid.
            StrataExistenceError: If the explicit key already exists.
            StrataExecutionError: If a store call fails.
            StrataInterruptedError: If a store call is interrupted.
        """
        metadata = self._check_entity(entity)
        wrapper = self._adapter(view)
        collection, blobs = self._handles()
        key_field = metadata.key_field
        if metadata.auto_key and key_field.read(entity) is not None:
            raise StrataFormatError(
                f"Key {key_field.name} of class {metadata.type_name} must be null on create; "
                "the store generates it."
            )
        streams = check_streams(metadata, files, entity)
        if metadata.auto_key:
            key = collection.new_key()
        else:
            key = clean_key(key_field.read(entity))
            if collection.exists(key):
                raise StrataExistenceError(
                    f"Key {key} already exists in collection {self._path}. "
                    "Use update() or choose another key."
                )
        if metadata.auto_key:
            key_field.write(entity, key)
        self._upload_streams(blobs, key, streams, entity)
        collection.set(key, self._encode(entity, wrapper))
        _LOGGER.info(
            "document_created",
            path=self._path,
            key=key,
            files=sorted(streams),
        )
        return key

    def create_many(self, entities: Sequence[Any], view: type[View] | None = None) -> list[str]:
        """Persist several new entities in one atomic commit.

        Args:
            entities: Entity instances.
            view: Optional view used to serialize the entities.

        Returns:
            Document keys in input order.

        Raises:
            StrataFormatError: If an entity or key is invalid, or keys repeat.
            StrataExistenceError: If any explicit key already exists.
        """
        if entities is None:
            raise StrataFormatError("List of entities cannot be null.")
        if len(entities) == 0:
            return []
        metadata = self.metadata
        wrapper = self._adapter(view)
        for entity in entities:
            self._check_entity(entity)
        collection, _ = self._handles()
        key_field = metadata.key_field
        if metadata.auto_key:
            if any(key_field.read(entity) is not None for entity in entities):
                raise StrataFormatError(
                    f"All keys {key_field.name} of class {metadata.type_name} must be null "
                    "on create."
                )
            keys = _generate_keys(collection, len(entities))
        else:
            keys = _unique_keys([key_field.read(entity) for entity in entities])
            existing = Selection(collection).where_key_in(keys).keys()
            if existing:
                raise StrataExistenceError(
                    f"Keys {', '.join(sorted(existing))} already exist in collection "
                    f"{self._path}. Remove them from the batch."
                )
        if metadata.auto_key:
            for entity, key in zip(entities, keys):
                key_field.write(entity, key)
        documents = {key: self._encode(entity, wrapper) for entity, key in zip(entities, keys)}
        collection.set_many(documents)
        _LOGGER.info("documents_created", path=self._path, count=len(keys))
        return keys

    def exists(self, key: Any) -> bool:
        """Return whether a document exists under a key."""
        cleaned_key = clean_key(key)
        collection, _ = self._handles()
        return collection.exists(cleaned_key)

    def retrieve(self, key: Any, view: type[View] | None = None, required: bool = False) -> Any:
        """Load one entity by key.

        Args:
            key: Document key; converted with ``str``.
            view: Optional view used to deserialize the document.
            required: Raise instead of returning None when absent.

        Returns:
            The decoded entity, or None when absent and not required.

        Raises:
            StrataFormatError: If the key is malformed.
            StrataExistenceError: If the document is absent and required.
        """
        cleaned_key = clean_key(key)
        collection, _ = self._handles()
        snapshot = collection.get(cleaned_key)
        if snapshot is None:
            if required:
                raise StrataExistenceError(
                    f"Key {cleaned_key} does not exist in collection {self._path}."
                )
            return None
        return self._decode(snapshot, self._adapter(view))

    def retrieve_selection(self, selection: Selection, view: type[View] | None = None) -> list[Any]:
        """Load every entity matched by a selection.

        Raises:
            StrataQueryError: If the selection belongs to another store context.
        """
        self._check_selection(selection)
        wrapper = self._adapter(view)
        return [self._decode(snapshot, wrapper) for snapshot in selection.documents()]

    def update(
        self,
        entity: Any,
        files: Mapping[str, Any] | None = None,
        view: type[View] | None = None,
    ) -> None:
        """Fully replace the document of an existing entity.

        Streams are uploaded into file fields that are null in the entity.
        Afterwards the blob of every file field still null is deleted.

        Args:
            entity: Entity instance carrying its key.
            files: Optional file field name to stream map.
            view: Optional view used to serialize the entity.

        Raises:
            StrataFormatError: If the entity, its key or a stream is invalid.
            StrataExistenceError: If no document exists under the key.
        """
        metadata = self._check_entity(entity)
        wrapper = self._adapter(view)
        key = clean_key(metadata.key_field.read(entity))
        streams = check_streams(metadata, files, entity)
        collection, blobs = self._handles()
        self._require(collection, key)
        self._upload_streams(blobs, key, streams, entity)
        cleared = [
            name
            for name, descriptor in metadata.file_fields.items()
            if descriptor.read(entity) is None
        ]
        delete_blobs(blobs, [blob_path(self._path, key, name) for name in cleared])
        collection.set(key, self._encode(entity, wrapper))
        _LOGGER.info(
            "document_updated",
            path=self._path,
            key=key,
            files=sorted(streams),
            cleared=cleared,
        )

    def update_fields(
        self,
        values: Mapping[str, Any],
        files: Mapping[str, Any] | None = None,
        view: type[View] | None = None,
    ) -> dict[str, Any]:
        """Merge selected fields into an existing document.

        The key field must be named in ``values``. File fields can only be
        mapped to None, which deletes their blob; new content arrives
        through ``files``. With a view, each mapped value is passed
        through the matching ``get_<field>`` accessor of the view.

        Args:
            values: Field name to new value map. Not mutated.
            files: Optional file field name to stream map.
            view: Optional view used to transform the mapped values.

        Returns:
            The payload merged into the document.

        Raises:
            StrataFormatError: If a field is unknown, the key is missing,
                a file field is set directly or a stream is invalid.
            StrataExistenceError: If no document exists under the key.
        """
        if values is None:
            raise StrataFormatError("Field map cannot be null.")
        metadata = self.metadata
        wrapper = self._adapter(view)
        for name in values:
            if not metadata.has_field(name):
                raise StrataFormatError(
                    f"Field {name} does not exist in class {metadata.type_name}."
                )
        key_name = metadata.key_field.name
        if key_name not in values:
            raise StrataFormatError(f"Field {key_name} must be in the field map.")
        key = clean_key(values[key_name])
        for name in metadata.file_fields:
            if values.get(name) is not None:
                raise StrataFormatError(
                    f"File field {name} can only be mapped to None; upload content as a stream."
                )
        streams = check_streams(metadata, files)
        for name in streams:
            if name in values:
                raise StrataFormatError(
                    f"File field {name} cannot be both in the map and a stream."
                )
        collection, blobs = self._handles()
        self._require(collection, key)
        payload = dict(values)
        for name, stream in streams.items():
            target = blob_path(self._path, key, name)
            payload[name] = upload_blob(blobs, target, read_stream(name, stream))
        cleared = [name for name in metadata.file_fields if name in values and values[name] is None]
        delete_blobs(blobs, [blob_path(self._path, key, name) for name in cleared])
        if wrapper is not None:
            payload = self._project_fields(payload, wrapper)
        collection.merge(key, payload)
        _LOGGER.info(
            "document_updated",
            path=self._path,
            key=key,
            fields=sorted(payload),
            cleared=cleared,
        )
        return payload

    def update_many(self, entities: Sequence[Any], view: type[View] | None = None) -> None:
        """Fully replace several existing documents in one atomic commit.

        Raises:
            StrataFormatError: If an entity or key is invalid, or keys repeat.
            StrataExistenceError: If any key has no document.
        """
        if entities is None:
            raise StrataFormatError("List of entities cannot be null.")
        if len(entities) == 0:
            return
        metadata = self.metadata
        wrapper = self._adapter(view)
        for entity in entities:
            self._check_entity(entity)
        collection, _ = self._handles()
        keys = _unique_keys([metadata.key_field.read(entity) for entity in entities])
        existing = set(Selection(collection).where_key_in(keys).keys())
        missing = [key for key in keys if key not in existing]
        if missing:
            raise StrataExistenceError(
                f"Keys {', '.join(missing)} do not exist in collection {self._path}. "
                "Create them before updating."
            )
        documents = {key: self._encode(entity, wrapper) for entity, key in zip(entities, keys)}
        collection.set_many(documents)
        _LOGGER.info("documents_updated", path=self._path, count=len(keys))

    def delete(self, key: Any, required: bool = False) -> None:
        """Delete a document and the blobs of its file fields.

        Missing blobs are skipped.

        Args:
            key: Document key.
            required: Raise when no document exists under the key.

        Raises:
            StrataFormatError: If the key is malformed.
            StrataExistenceError: If the document is absent and required.
        """
        cleaned_key = clean_key(key)
        collection, blobs = self._handles()
        if required:
            self._require(collection, cleaned_key)
        collection.delete(cleaned_key)
        removed = delete_blobs(blobs, self._file_blob_paths([cleaned_key]))
        _LOGGER.info("document_deleted", path=self._path, key=cleaned_key, blobs=removed)

    def delete_selection(self, selection: Selection) -> int:
        """Delete every matched document in one atomic commit.

        Blobs of the matched documents are deleted afterwards, one by one,
        outside that commit.

        Returns:
            Number of deleted documents.

        Raises:
            StrataQueryError: If the selection belongs to another store context.
        """
        self._check_selection(selection)
        _, blobs = self._handles()
        keys = selection.keys()
        if keys:
            selection.collection.delete_many(keys)
        removed = delete_blobs(blobs, self._file_blob_paths(keys))
        _LOGGER.info("selection_deleted", path=self._path, count=len(keys), blobs=removed)
        return len(keys)

    def create_file(self, key: Any, name: str, stream: Any) -> str:
        """Create the blob of one file field without touching the document.

        Returns:
            Locator url of the new blob.

        Raises:
            StrataExistenceError: If the blob already exists.
        """
        path = self._file_path(key, name)
        data = read_stream(name, stream)
        _, blobs = self._handles()
        if await_store(f"check blob {path}", blobs.exists, path):
            raise StrataExistenceError(f"Blob {path} already exists. Use update_file() instead.")
        await_store(f"create blob {path}", blobs.create, path, data, public_read=True)
        _LOGGER.info("blob_uploaded", path=path, size=len(data), created=True)
        return str(await_store(f"locate blob {path}", blobs.locator, path))

    def retrieve_file(self, key: Any, name: str, required: bool = True) -> str | None:
        """Return the locator url of one file field blob.

        Raises:
            StrataExistenceError: If the blob is absent and required.
        """
        path = self._file_path(key, name)
        _, blobs = self._handles()
        if not await_store(f"check blob {path}", blobs.exists, path):
            if required:
                raise StrataExistenceError(f"Blob {path} does not exist.")
            return None
        return str(await_store(f"locate blob {path}", blobs.locator, path))

    def update_file(self, key: Any, name: str, stream: Any) -> str:
        """Overwrite the content of an existing file field blob.

        Returns:
            Locator url of the blob.

        Raises:
            StrataExistenceError: If the blob does not exist.
        """
        path = self._file_path(key, name)
        data = read_stream(name, stream)
        _, blobs = self._handles()
        if not await_store(f"check blob {path}", blobs.exists, path):
            raise StrataExistenceError(f"Blob {path} does not exist. Use create_file() instead.")
        await_store(f"overwrite blob {path}", blobs.overwrite, path, data)
        _LOGGER.info("blob_uploaded", path=path, size=len(data), created=False)
        return str(await_store(f"locate blob {path}", blobs.locator, path))

    def delete_file(self, key: Any, name: str, required: bool = True) -> None:
        """Delete one file field blob.

        Raises:
            StrataExistenceError: If the blob is absent and required.
        """
        path = self._file_path(key, name)
        _, blobs = self._handles()
        if not await_store(f"check blob {path}", blobs.exists, path):
            if required:
                raise StrataExistenceError(f"Blob {path} does not exist.")
            return
        await_store(f"delete blob {path}", blobs.delete, path)
        _LOGGER.info("blob_deleted", path=path)

    def _handles(self) -> tuple[DocumentCollection, BlobStore]:
        """Resolve store handles, binding through the registry on first use."""
        connector = self._connector
        if connector is None:
            if self._connectors is None:
                raise StrataConnectionError(
                    f"Mapper for {self._path} is not bound. "
                    "Call bind() or pass a connector registry."
                )
            connector = self._connectors.get(self._connector_name)
            self.bind(connector)
        return connector.resolve(self._path)

    def _check_entity(self, entity: Any) -> EntityMetadata:
        metadata = self.metadata
        if entity is None:
            raise StrataFormatError("Entity cannot be null.")
        if not isinstance(entity, metadata.entity_type):
            raise StrataFormatError(
                f"Mapper for {self._path} stores {metadata.type_name}, "
                f"got {type(entity).__qualname__}."
            )
        return metadata

    def _check_selection(self, selection: Selection) -> None:
        if selection is None:
            raise StrataFormatError("Selection cannot be null.")
        collection, _ = self._handles()
        if selection.collection != collection:
            raise StrataQueryError(
                f"Selection was built against {selection.collection!r}, not {collection!r}. "
                "Build it from this mapper."
            )

    def _require(self, collection: DocumentCollection, key: str) -> None:
        if not collection.exists(key):
            raise StrataExistenceError(f"Key {key} does not exist in collection {self._path}.")

    def _file_path(self, key: Any, name: str) -> str:
        cleaned_key = clean_key(key)
        if name not in self.metadata.file_fields:
            raise StrataFormatError(
                f"File field {name} does not exist in class {self.metadata.type_name}."
            )
        return blob_path(self._path, cleaned_key, name)

    def _file_blob_paths(self, keys: Sequence[str]) -> list[str]:
        return [
            blob_path(self._path, key, name) for key in keys for name in self.metadata.file_fields
        ]

    def _upload_streams(
        self,
        blobs: BlobStore,
        key: str,
        streams: Mapping[str, Any],
        entity: Any,
    ) -> None:
        for name, stream in streams.items():
            target = blob_path(self._path, key, name)
            locator = upload_blob(blobs, target, read_stream(name, stream))
            self.metadata.file_fields[name].write(entity, locator)

    def _adapter(self, view: type[View] | None) -> type[View] | None:
        if view is None:
            return None
        return self._schemas.adapter(self._entity_type, view)

    def _encode(self, entity: Any, wrapper: type[View] | None) -> dict[str, Any]:
        if wrapper is None:
            return encode_entity(self.metadata, entity)
        return encode_view(wrapper, entity)

    def _decode(self, snapshot: DocumentSnapshot, wrapper: type[View] | None) -> Any:
        if wrapper is None:
            return decode_entity(self.metadata, snapshot.data)
        return decode_view(wrapper, snapshot.data)

    def _project_fields(self, payload: Mapping[str, Any], wrapper: type[View]) -> dict[str, Any]:
        """Pass mapped values through the view getters of a transient entity."""
        adapter = wrapper()
        for descriptor in self.metadata.fields:
            if descriptor.name in payload:
                descriptor.write(adapter.entity, payload[descriptor.name])
        projected: dict[str, Any] = {}
        for name, value in payload.items():
            getter = getattr(adapter, GETTER_PREFIX + name, None)
            projected[name] = getter() if callable(getter) else value
        return projected


def _generate_keys(collection: DocumentCollection, count: int) -> list[str]:
    keys: list[str] = []
    while len(keys) < count:
        key = collection.new_key()
        if key not in keys:
            keys.append(key)
    return keys


def _unique_keys(raw_keys: Sequence[Any]) -> list[str]:
    keys = [clean_key(raw_key) for raw_key in raw_keys]
    seen: set[str] = set()
    for key in keys:
        if key in seen:
            raise StrataFormatError(f"Key {key} appears more than once in the batch.")
        seen.add(key)
    return keys
