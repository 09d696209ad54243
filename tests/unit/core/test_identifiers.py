"""Unit tests for key and field-name validation."""

from __future__ import annotations

import pytest

from core.errors import StrataFormatError
from core.identifiers import blob_path, clean_field_name, clean_key, clean_keys, clean_values


def test_clean_key_strips_and_converts() -> None:
    """Keys should be converted with str and stripped."""
    assert clean_key(42) == "42" and clean_key("  chair ") == "chair"


@pytest.mark.parametrize(
    "raw_key",
    [None, "", "   ", "a/b", ".", "..", "__meta__", "x" * 1501],
)
def test_clean_key_rejects_invalid_keys(raw_key) -> None:
    """Keys breaking any key rule should raise a format error."""
    with pytest.raises(StrataFormatError):
        clean_key(raw_key)


def test_clean_key_accepts_max_byte_length() -> None:
    """Keys of exactly 1500 bytes should be accepted."""
    assert len(clean_key("k" * 1500)) == 1500


def test_clean_key_uses_label_in_message() -> None:
    """Error messages should name the validated identifier."""
    with pytest.raises(StrataFormatError, match="Collection path"):
        clean_key("a/b", label="Collection path")


def test_clean_keys_rejects_empty_list() -> None:
    """Key lists should not be empty."""
    with pytest.raises(StrataFormatError, match="empty"):
        clean_keys([])


@pytest.mark.parametrize("name", [None, "", " ", "1abc", "a-b", "a..b", "a.", "x" * 1501])
def test_clean_field_name_rejects_invalid_names(name) -> None:
    """Field names must follow the identifier grammar."""
    with pytest.raises(StrataFormatError):
        clean_field_name(name)


def test_clean_field_name_accepts_dotted_paths() -> None:
    """Dotted nested field paths should be accepted."""
    assert clean_field_name("address.city") == "address.city"


def test_clean_values_rejects_strings() -> None:
    """A bare string should not be taken as a list of candidates."""
    with pytest.raises(StrataFormatError, match="must be a list"):
        clean_values("tags", "red")


def test_clean_values_rejects_empty_list() -> None:
    """List filters should need at least one candidate."""
    with pytest.raises(StrataFormatError, match="empty"):
        clean_values("tags", [])


def test_blob_path_joins_segments() -> None:
    """Blob paths should follow the path/key/field layout."""
    assert blob_path("items", "k1", "photo") == "items/k1/photo"
