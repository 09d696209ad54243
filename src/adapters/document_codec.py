"""Entity and view document payload conversion.

This module converts entities to plain document dictionaries and back,
either directly through the entity fields or through a compiled view.
"""

from __future__ import annotations

from typing import Any, Mapping

from adapters.view import View
from schema.entity_metadata import EntityMetadata


def encode_entity(metadata: EntityMetadata, entity: Any) -> dict[str, Any]:
    """Serialize every declared field of an entity.

    Args:
        metadata: Entity metadata.
        entity: Entity instance.

    Returns:
        Document payload keyed by field name.
    """
    return {descriptor.name: descriptor.read(entity) for descriptor in metadata.fields}


def decode_entity(metadata: EntityMetadata, data: Mapping[str, Any]) -> Any:
    """Build an entity from a document payload.

    Properties that do not name a declared field are ignored.

    Args:
        metadata: Entity metadata.
        data: Document payload.

    Returns:
        New entity instance.
    """
    entity = metadata.new_entity()
    for name, value in data.items():
        descriptor = metadata.field(name)
        if descriptor is not None:
            descriptor.write(entity, value)
    return entity


def encode_view(wrapper_type: type[View], entity: Any) -> dict[str, Any]:
    """Serialize an entity through a compiled view.

    Args:
        wrapper_type: Compiled wrapper class.
        entity: Entity instance to wrap.

    Returns:
        Document payload produced by the view getters.
    """
    return wrapper_type(entity).to_document()


def decode_view(wrapper_type: type[View], data: Mapping[str, Any]) -> Any:
    """Build an entity from a document payload through a compiled view.

    Args:
        wrapper_type: Compiled wrapper class.
        data: Document payload.

    Returns:
        The entity unwrapped from a freshly built wrapper.
    """
    return wrapper_type().from_document(data).unwrap()
