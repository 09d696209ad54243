"""Key, path and field-name validation helpers.

This module centralizes identifier rules shared by the query builder,
the mapper and the blob path layout so validation stays consistent.
"""

from __future__ import annotations

import re
from collections.abc import Sized
from typing import Any, Sequence

from core.constants import (
    FIELD_NAME_PATTERN,
    MAX_IDENTIFIER_BYTES,
    PATH_SEPARATOR,
    RESERVED_KEY_PATTERN,
)
from core.errors import StrataFormatError

_FIELD_NAME_REGEX = re.compile(FIELD_NAME_PATTERN)
_RESERVED_KEY_REGEX = re.compile(RESERVED_KEY_PATTERN)


def clean_key(raw_key: Any, label: str = "Key") -> str:
    """Convert and validate a document key or collection path.

    Args:
        raw_key: Raw key value; converted with ``str``.
        label: Identifier label used in error messages.

    Returns:
        Stripped key string.

    Raises:
        StrataFormatError: If the key is null, blank, too long, contains
            a path separator, is a dot segment or is reserved.
    """
    if raw_key is None:
        raise StrataFormatError(f"{label} cannot be null.")
    key = str(raw_key).strip()
    if not key:
        raise StrataFormatError(f"{label} cannot be blank.")
    if len(key.encode("utf-8")) > MAX_IDENTIFIER_BYTES:
        raise StrataFormatError(
            f"{label} '{key[:32]}...' cannot have more than {MAX_IDENTIFIER_BYTES} bytes."
        )
    if PATH_SEPARATOR in key:
        raise StrataFormatError(f"{label} '{key}' cannot contain '{PATH_SEPARATOR}'.")
    if key in (".", ".."):
        raise StrataFormatError(f"{label} '{key}' cannot be a single or double dot.")
    if _RESERVED_KEY_REGEX.fullmatch(key):
        raise StrataFormatError(
            f"{label} '{key}' cannot match the reserved pattern {RESERVED_KEY_PATTERN}."
        )
    return key


def clean_keys(raw_keys: Sequence[Any] | None) -> tuple[str, ...]:
    """Validate a non-empty list of document keys.

    Args:
        raw_keys: Raw key values.

    Returns:
        Cleaned keys in input order.

    Raises:
        StrataFormatError: If the list is null, unsized, empty or holds an
            invalid key.
    """
    if raw_keys is None:
        raise StrataFormatError("List of keys cannot be null.")
    if isinstance(raw_keys, (str, bytes)) or not isinstance(raw_keys, Sized):
        raise StrataFormatError(
            f"Keys must be given as a list, got {type(raw_keys).__name__}. "
            "Materialize iterators with list() first."
        )
    if len(raw_keys) == 0:
        raise StrataFormatError("List of keys cannot be empty.")
    return tuple(clean_key(raw_key) for raw_key in raw_keys)


def clean_field_name(name: str | None) -> str:
    """Validate a document field name used by a query clause.

    Args:
        name: Field name, possibly a dotted path.

    Returns:
        The validated field name.

    Raises:
        StrataFormatError: If the name is null, not a string, blank, malformed
            or too long.
    """
    if name is None:
        raise StrataFormatError("Field name cannot be null.")
    if not isinstance(name, str):
        raise StrataFormatError(
            f"Field name must be a string, got {type(name).__name__}. "
            "Pass the field name as text."
        )
    if not name.strip():
        raise StrataFormatError("Field name cannot be blank.")
    if len(name.encode("utf-8")) > MAX_IDENTIFIER_BYTES:
        raise StrataFormatError(
            f"Field name '{name[:32]}...' cannot have more than {MAX_IDENTIFIER_BYTES} bytes."
        )
    if not _FIELD_NAME_REGEX.fullmatch(name):
        raise StrataFormatError(
            f"Field name '{name}' must match the identifier grammar {FIELD_NAME_PATTERN}."
        )
    return name


def clean_values(name: str, values: Sequence[Any] | None) -> tuple[Any, ...]:
    """Validate the candidate list of a list-valued filter.

    Args:
        name: Field name the filter applies to.
        values: Candidate values.

    Returns:
        Candidate values as a tuple.

    Raises:
        StrataFormatError: If the list is null, unsized or empty.
    """
    if values is None:
        raise StrataFormatError(f"List of values for field '{name}' cannot be null.")
    if isinstance(values, (str, bytes)):
        raise StrataFormatError(f"Values for field '{name}' must be a list, not a string.")
    if not isinstance(values, Sized):
        raise StrataFormatError(
            f"Values for field '{name}' must be a list, got {type(values).__name__}. "
            "Materialize iterators with list() first."
        )
    if len(values) == 0:
        raise StrataFormatError(f"List of values for field '{name}' cannot be empty.")
    return tuple(values)


def blob_path(collection_path: str, key: str, field_name: str) -> str:
    """Build the deterministic blob path of a file field.

    Args:
        collection_path: Document collection path.
        key: Document key.
        field_name: File field name.

    Returns:
        Blob path in ``{path}/{key}/{field}`` form.
    """
    return PATH_SEPARATOR.join((collection_path, key, field_name))
