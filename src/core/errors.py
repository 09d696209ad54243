"""Strata exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each failure kind maps to one error type so callers can branch on it.
"""

from __future__ import annotations


class StrataError(Exception):
    """Base exception for all Strata failures."""


class StrataConfigError(StrataError):
    """Raised for invalid runtime configuration."""


class StrataSchemaError(StrataError):
    """Raised when an entity type violates the storage marker rules."""


class StrataFormatError(StrataError):
    """Raised for malformed caller input such as keys, field names or views."""


class StrataQueryError(StrataFormatError):
    """Raised when a selection cannot be used by the requesting mapper."""


class StrataExistenceError(StrataError):
    """Raised for key conflicts on create and missing documents or blobs."""


class StrataExecutionError(StrataError):
    """Raised when a blocking store call fails."""


class StrataInterruptedError(StrataError):
    """Raised when a blocking store call is interrupted or cancelled."""


class StrataAccessError(StrataError):
    """Raised when an entity field cannot be read or written."""


class StrataSynthesisError(StrataError):
    """Raised when an adapter wrapper cannot be generated for a view."""


class StrataConnectionError(StrataError):
    """Raised for connector lifecycle and registry failures."""


class StrataStorageError(StrataError):
    """Raised when file content cannot be read or written."""


class StrataDependencyError(StrataError):
    """Raised when an optional runtime dependency is missing."""
