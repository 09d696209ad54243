"""Storage markers for entity dataclass fields.

Entities declare their key, generated key and file fields by building
dataclass fields through these helpers. Markers travel in the field
metadata so the metadata extractor can read them without instances.
"""

from __future__ import annotations

import dataclasses
from typing import Any

from core.constants import AUTOKEY_MARKER, FILE_MARKER, KEY_MARKER, MARKER_METADATA_KEY


def storage_field(*markers: str, default: Any = None, **kwargs: Any) -> Any:
    """Build a dataclass field tagged with storage markers.

    Args:
        *markers: Marker names (``key``, ``autokey`` or ``file``).
        default: Field default value.
        **kwargs: Extra ``dataclasses.field`` arguments.

    Returns:
        Dataclass field definition.
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[MARKER_METADATA_KEY] = frozenset(markers)
    if "default_factory" in kwargs:
        return dataclasses.field(metadata=metadata, **kwargs)
    return dataclasses.field(default=default, metadata=metadata, **kwargs)


def key_field(default: Any = None, **kwargs: Any) -> Any:
    """Mark a field as the explicit document key."""
    return storage_field(KEY_MARKER, default=default, **kwargs)


def autokey_field(**kwargs: Any) -> Any:
    """Mark a string field as the store-generated document key."""
    return storage_field(AUTOKEY_MARKER, default=None, **kwargs)


def file_field(**kwargs: Any) -> Any:
    """Mark a string field as the locator of externally stored content."""
    return storage_field(FILE_MARKER, default=None, **kwargs)


def field_markers(data_field: dataclasses.Field) -> frozenset[str]:
    """Return the storage markers attached to a dataclass field."""
    markers = data_field.metadata.get(MARKER_METADATA_KEY, ())
    return frozenset(markers)
