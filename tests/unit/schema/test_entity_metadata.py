"""Unit tests for entity metadata extraction."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import pytest

from core.errors import StrataAccessError, StrataSchemaError
from schema.entity_metadata import extract_entity_metadata
from schema.markers import autokey_field, file_field, key_field, storage_field


@dataclass
class Item:
    id: str | None = autokey_field()
    photo: str | None = file_field()
    name: str = ""


@dataclass
class Product:
    sku: int = key_field(default=0)
    manual: Optional[str] = file_field()
    tags: list[str] = field(default_factory=list)


@dataclass
class TwoKeys:
    a: str = key_field(default="")
    b: str = key_field(default="")


@dataclass
class KeyAndAutokey:
    a: str = key_field(default="")
    b: str | None = autokey_field()


@dataclass
class BothMarkers:
    a: str | None = storage_field("key", "autokey")


@dataclass
class TwoAutokeys:
    a: str | None = autokey_field()
    b: str | None = autokey_field()


@dataclass
class NumericAutokey:
    a: int | None = autokey_field()


@dataclass
class NumericFile:
    a: str = key_field(default="")
    scan: bytes | None = file_field()


@dataclass
class NoKey:
    name: str = ""


@dataclass
class RequiredArgument:
    name: str
    a: str = key_field(default="")


class NotADataclass:
    pass


@dataclass(frozen=True)
class Frozen:
    a: str = key_field(default="")


def test_extract_reads_autokey_and_file_fields() -> None:
    """Extraction should capture the generated key and file fields."""
    metadata = extract_entity_metadata(Item)

    assert (metadata.key_field.name, metadata.auto_key, tuple(metadata.file_fields)) == (
        "id",
        True,
        ("photo",),
    )


def test_extract_accepts_explicit_non_string_key() -> None:
    """Explicit keys may have any string-convertible type."""
    metadata = extract_entity_metadata(Product)

    assert metadata.key_field.name == "sku" and not metadata.auto_key


def test_extract_is_idempotent() -> None:
    """Two extractions of the same type should yield equal descriptors."""
    assert extract_entity_metadata(Product) == extract_entity_metadata(Product)


def test_extract_lists_fields_in_declaration_order() -> None:
    """Field descriptors should keep declaration order."""
    assert extract_entity_metadata(Item).field_names == ("id", "photo", "name")


@pytest.mark.parametrize(
    ("entity_type", "message"),
    [
        (TwoKeys, "more than one key"),
        (KeyAndAutokey, "both a key and an autokey"),
        (BothMarkers, "both a key and an autokey"),
        (TwoAutokeys, "more than one autokey"),
        (NumericAutokey, "Autokey a of class .* must be a string"),
        (NumericFile, "File scan of class .* must be a string"),
        (NoKey, "either a key or an autokey"),
        (RequiredArgument, "no-argument constructor"),
        (NotADataclass, "must be a dataclass"),
    ],
)
def test_extract_rejects_marker_violations(entity_type, message) -> None:
    """Each marker rule violation should raise a schema error naming the rule."""
    with pytest.raises(StrataSchemaError, match=message):
        extract_entity_metadata(entity_type)


def test_descriptor_reads_and_writes_fields() -> None:
    """Field descriptors should access entity attributes."""
    metadata = extract_entity_metadata(Item)
    item = Item(name="chair")

    metadata.key_field.write(item, "abc")

    assert metadata.key_field.read(item) == "abc"


def test_descriptor_write_fails_on_frozen_entity() -> None:
    """Writing into a frozen dataclass should raise an access error."""
    metadata = extract_entity_metadata(Frozen)

    with pytest.raises(StrataAccessError):
        metadata.key_field.write(Frozen(), "abc")


def test_new_entity_uses_default_constructor() -> None:
    """Default entities should come from the zero-argument constructor."""
    assert extract_entity_metadata(Item).new_entity() == Item()
