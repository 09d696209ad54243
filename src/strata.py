"""Public SDK surface for Strata.

This module provides a stable import path for users.
It re-exports the client, storage markers, views and error types.
"""

from __future__ import annotations

from adapters.view import View
from core.config import StrataConfig
from core.errors import (
    StrataAccessError,
    StrataConfigError,
    StrataConnectionError,
    StrataDependencyError,
    StrataError,
    StrataExecutionError,
    StrataExistenceError,
    StrataFormatError,
    StrataInterruptedError,
    StrataQueryError,
    StrataSchemaError,
    StrataStorageError,
    StrataSynthesisError,
)
from core.logging_config import configure_logging
from mapper.client import StrataClient
from mapper.document_mapper import DocumentMapper
from query.selection import Selection
from schema.markers import autokey_field, file_field, key_field, storage_field
from schema.registry import SchemaRegistry
from store.connector import ConnectorRegistry, StoreConnector

__all__ = [
    "ConnectorRegistry",
    "DocumentMapper",
    "SchemaRegistry",
    "Selection",
    "StoreConnector",
    "StrataAccessError",
    "StrataClient",
    "StrataConfig",
    "StrataConfigError",
    "StrataConnectionError",
    "StrataDependencyError",
    "StrataError",
    "StrataExecutionError",
    "StrataExistenceError",
    "StrataFormatError",
    "StrataInterruptedError",
    "StrataQueryError",
    "StrataSchemaError",
    "StrataStorageError",
    "StrataSynthesisError",
    "View",
    "autokey_field",
    "configure_logging",
    "file_field",
    "key_field",
    "storage_field",
]
