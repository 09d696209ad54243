"""Core constants used across Strata modules.

This module centralizes limits, names and defaults.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_DATA_ROOT = Path(".strata")
DOCUMENTS_DIR_NAME = "documents"
BLOBS_DIR_NAME = "blobs"
COLLECTION_FILE_SUFFIX = ".json"
MARKER_METADATA_KEY = "strata"
KEY_MARKER = "key"
AUTOKEY_MARKER = "autokey"
FILE_MARKER = "file"
MAX_IDENTIFIER_BYTES = 1500
RESERVED_KEY_PATTERN = r"__.*__"
FIELD_NAME_PATTERN = r"[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*"
PATH_SEPARATOR = "/"
GENERATED_KEY_LENGTH = 20
GETTER_PREFIX = "get_"
SETTER_PREFIX = "set_"
DOCUMENT_BACKENDS = ("memory", "local")
BLOB_BACKENDS = ("memory", "local", "s3")
DEFAULT_DOCUMENT_BACKEND = "memory"
DEFAULT_BLOB_BACKEND = "memory"
MEMORY_LOCATOR_SCHEME = "memory"
S3_PUBLIC_READ_ACL = "public-read"
