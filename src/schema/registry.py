"""Process-wide schema registry.

This module owns the metadata cache and the adapter compiler. One
registry is constructed at startup and shared by reference with every
mapper; cached entries live for the lifetime of the registry.
"""

from __future__ import annotations

import threading

from adapters.adapter_compiler import AdapterCompiler
from adapters.view import View
from core.logging_config import get_logger
from schema.entity_metadata import EntityMetadata, extract_entity_metadata

_LOGGER = get_logger(__name__)


class SchemaRegistry:
    """Cache of entity metadata and compiled view adapters."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._metadata: dict[type, EntityMetadata] = {}
        self._compiler = AdapterCompiler()

    def metadata(self, entity_type: type) -> EntityMetadata:
        """Return cached metadata for an entity type, extracting it once.

        Args:
            entity_type: Entity dataclass.

        Returns:
            Immutable entity metadata.

        Raises:
            StrataSchemaError: If the type breaks the marker rules.
        """
        cached = self._metadata.get(entity_type)
        if cached is not None:
            return cached
        with self._lock:
            cached = self._metadata.get(entity_type)
            if cached is None:
                cached = extract_entity_metadata(entity_type)
                self._metadata[entity_type] = cached
                _LOGGER.info(
                    "entity_metadata_extracted",
                    type_name=cached.type_name,
                    key_field=cached.key_field.name,
                    auto_key=cached.auto_key,
                    file_fields=sorted(cached.file_fields),
                )
        return cached

    def adapter(self, entity_type: type, view_type: type) -> type[View]:
        """Return the compiled wrapper for an (entity type, view type) pair.

        Args:
            entity_type: Entity dataclass.
            view_type: View subclass.

        Returns:
            Generated wrapper class.

        Raises:
            StrataSchemaError: If the entity type is invalid.
            StrataFormatError: If the view declares fields.
            StrataSynthesisError: If the wrapper cannot be generated.
        """
        return self._compiler.compile(self.metadata(entity_type), view_type)

    def __contains__(self, entity_type: object) -> bool:
        return entity_type in self._metadata
