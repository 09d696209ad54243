"""Entity metadata extraction.

This module inspects an entity dataclass once and validates its storage
markers: exactly one key or generated key, string-typed generated keys
and file fields, and a zero-argument constructor. The result is an
immutable descriptor consumed by the mapper and the adapter compiler.
"""

from __future__ import annotations

import dataclasses
import inspect
import types
import typing
from dataclasses import dataclass
from typing import Any, Mapping

from core.constants import AUTOKEY_MARKER, FILE_MARKER, KEY_MARKER
from core.errors import StrataAccessError, StrataSchemaError
from schema.markers import field_markers


@dataclass(frozen=True)
class FieldDescriptor:
    """Read/write handle for one entity field.

    Attributes:
        name: Field name.
        value_type: Resolved annotation of the field.
        owner_name: Qualified name of the entity type.
    """

    name: str
    value_type: Any
    owner_name: str

    def read(self, entity: object) -> Any:
        """Read the field value from an entity.

        Raises:
            StrataAccessError: If the attribute cannot be read.
        """
        try:
            return getattr(entity, self.name)
        except AttributeError as error:
            raise StrataAccessError(
                f"Cannot read field {self.name} of class {self.owner_name}: {error}."
            ) from error

    def write(self, entity: object, value: Any) -> None:
        """Write the field value into an entity.

        Raises:
            StrataAccessError: If the attribute cannot be written, for
                example on frozen dataclasses.
        """
        try:
            setattr(entity, self.name, value)
        except AttributeError as error:
            raise StrataAccessError(
                f"Cannot write field {self.name} of class {self.owner_name}: {error}. "
                "Entity types must be mutable dataclasses."
            ) from error


@dataclass(frozen=True)
class EntityMetadata:
    """Immutable storage metadata of an entity type.

    Attributes:
        type_name: Qualified name of the entity type.
        entity_type: The entity class itself.
        key_field: Descriptor of the key or generated key field.
        auto_key: Whether the key is generated by the store.
        file_fields: File field descriptors by field name.
        fields: Descriptors of every field in declaration order.
    """

    type_name: str
    entity_type: type
    key_field: FieldDescriptor
    auto_key: bool
    file_fields: Mapping[str, FieldDescriptor]
    fields: tuple[FieldDescriptor, ...]

    @property
    def field_names(self) -> tuple[str, ...]:
        """Names of every field in declaration order."""
        return tuple(descriptor.name for descriptor in self.fields)

    def has_field(self, name: str) -> bool:
        """Return whether the entity type declares a field."""
        return any(descriptor.name == name for descriptor in self.fields)

    def field(self, name: str) -> FieldDescriptor | None:
        """Return the descriptor of a field, or None when undeclared."""
        for descriptor in self.fields:
            if descriptor.name == name:
                return descriptor
        return None

    def new_entity(self) -> Any:
        """Build a default entity through the zero-argument constructor."""
        return self.entity_type()


def extract_entity_metadata(entity_type: type) -> EntityMetadata:
    """Inspect and validate an entity type.

    Args:
        entity_type: Dataclass whose fields carry storage markers.

    Returns:
        Immutable entity metadata.

    Raises:
        StrataSchemaError: If the type breaks any marker rule.
    """
    type_name = _qualified_name(entity_type)
    if not isinstance(entity_type, type) or not dataclasses.is_dataclass(entity_type):
        raise StrataSchemaError(
            f"Class {type_name} must be a dataclass so its storage markers can be read."
        )
    _check_constructor(entity_type, type_name)
    hints = _resolve_hints(entity_type, type_name)

    auto_key = False
    key_descriptor: FieldDescriptor | None = None
    file_fields: dict[str, FieldDescriptor] = {}
    descriptors: list[FieldDescriptor] = []
    for data_field in dataclasses.fields(entity_type):
        name = data_field.name
        markers = field_markers(data_field)
        descriptor = FieldDescriptor(
            name=name, value_type=hints.get(name, Any), owner_name=type_name
        )
        descriptors.append(descriptor)
        if KEY_MARKER in markers and AUTOKEY_MARKER in markers:
            raise StrataSchemaError(
                f"Field {name} of class {type_name} cannot be both a key and an autokey."
            )
        if KEY_MARKER in markers:
            if key_descriptor is not None:
                if auto_key:
                    raise StrataSchemaError(
                        f"Class {type_name} cannot have both an autokey and a key."
                    )
                raise StrataSchemaError(f"Class {type_name} cannot have more than one key.")
            key_descriptor = descriptor
        elif AUTOKEY_MARKER in markers:
            if key_descriptor is not None:
                if auto_key:
                    raise StrataSchemaError(f"Class {type_name} cannot have more than one autokey.")
                raise StrataSchemaError(f"Class {type_name} cannot have both a key and an autokey.")
            if not _is_text_type(descriptor.value_type):
                raise StrataSchemaError(f"Autokey {name} of class {type_name} must be a string.")
            auto_key = True
            key_descriptor = descriptor
        if FILE_MARKER in markers:
            if not _is_text_type(descriptor.value_type):
                raise StrataSchemaError(f"File {name} of class {type_name} must be a string.")
            file_fields[name] = descriptor

    if key_descriptor is None:
        raise StrataSchemaError(f"Class {type_name} must have either a key or an autokey.")
    return EntityMetadata(
        type_name=type_name,
        entity_type=entity_type,
        key_field=key_descriptor,
        auto_key=auto_key,
        file_fields=types.MappingProxyType(file_fields),
        fields=tuple(descriptors),
    )


def _qualified_name(entity_type: object) -> str:
    module = getattr(entity_type, "__module__", None)
    qualname = getattr(entity_type, "__qualname__", None) or repr(entity_type)
    return f"{module}.{qualname}" if module else qualname


def _check_constructor(entity_type: type, type_name: str) -> None:
    """Require a public constructor callable without arguments.

    Raises:
        StrataSchemaError: If any constructor parameter lacks a default.
    """
    try:
        signature = inspect.signature(entity_type)
    except (TypeError, ValueError) as error:
        raise StrataSchemaError(
            f"Class {type_name} must have a public no-argument constructor: {error}."
        ) from error
    for parameter in signature.parameters.values():
        if parameter.kind in (parameter.VAR_POSITIONAL, parameter.VAR_KEYWORD):
            continue
        if parameter.default is parameter.empty:
            raise StrataSchemaError(
                f"Class {type_name} must have a public no-argument constructor; "
                f"parameter {parameter.name} has no default."
            )


def _resolve_hints(entity_type: type, type_name: str) -> dict[str, Any]:
    try:
        return typing.get_type_hints(entity_type)
    except Exception as error:
        raise StrataSchemaError(
            f"Cannot resolve field annotations of class {type_name}: {error}. "
            "Import every annotated type at module level."
        ) from error


def _is_text_type(hint: Any) -> bool:
    """Return whether an annotation is ``str`` or an optional ``str``."""
    if hint is str:
        return True
    origin = typing.get_origin(hint)
    if origin is typing.Union or origin is types.UnionType:
        members = {member for member in typing.get_args(hint) if member is not type(None)}
        return members == {str}
    return False
