"""Runtime configuration model for Strata.

This module owns all environment variable and YAML config parsing.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Mapping, cast

import yaml

from core.constants import (
    BLOB_BACKENDS,
    DEFAULT_BLOB_BACKEND,
    DEFAULT_DATA_ROOT,
    DEFAULT_DOCUMENT_BACKEND,
    DOCUMENT_BACKENDS,
)
from core.errors import StrataConfigError

_CONFIG_KEYS = (
    "data_root",
    "document_backend",
    "blob_backend",
    "s3_bucket",
    "s3_region",
    "s3_profile",
    "public_base_url",
)


@dataclass(frozen=True)
class StrataConfig:
    """Validated runtime configuration.

    Attributes:
        data_root: Local root directory for the file-backed stores.
        document_backend: Document store backend name.
        blob_backend: Blob store backend name.
        s3_bucket: Bucket used by the S3 blob backend.
        s3_region: Optional AWS region for boto3 session initialization.
        s3_profile: Optional AWS profile for boto3 session initialization.
        public_base_url: Optional base url used to build blob locators.
    """

    data_root: Path
    document_backend: str = DEFAULT_DOCUMENT_BACKEND
    blob_backend: str = DEFAULT_BLOB_BACKEND
    s3_bucket: str | None = None
    s3_region: str | None = None
    s3_profile: str | None = None
    public_base_url: str | None = None

    @classmethod
    def from_env(cls) -> "StrataConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            StrataConfigError: If environment values are invalid.
        """
        data_root_value = os.getenv("STRATA_DATA_ROOT", str(DEFAULT_DATA_ROOT))
        return _validated(
            cls(
                data_root=Path(data_root_value).expanduser().resolve(),
                document_backend=os.getenv("STRATA_DOCUMENT_BACKEND", DEFAULT_DOCUMENT_BACKEND),
                blob_backend=os.getenv("STRATA_BLOB_BACKEND", DEFAULT_BLOB_BACKEND),
                s3_bucket=os.getenv("STRATA_S3_BUCKET"),
                s3_region=os.getenv("STRATA_S3_REGION"),
                s3_profile=os.getenv("STRATA_S3_PROFILE"),
                public_base_url=os.getenv("STRATA_PUBLIC_BASE_URL"),
            )
        )

    @classmethod
    def from_yaml(cls, config_path: str) -> "StrataConfig":
        """Build config from a YAML mapping file.

        Args:
            config_path: Path to a YAML file with top-level config keys.

        Returns:
            A validated config object.

        Raises:
            StrataConfigError: If the file is missing, malformed or invalid.
        """
        payload = _load_yaml_mapping(config_path)
        unknown_keys = sorted(set(payload) - set(_CONFIG_KEYS))
        if unknown_keys:
            raise StrataConfigError(
                f"Unsupported config keys in {config_path}: {', '.join(unknown_keys)}. "
                f"Supported keys: {', '.join(_CONFIG_KEYS)}."
            )
        data_root_value = str(payload.get("data_root") or DEFAULT_DATA_ROOT)
        return _validated(
            cls(
                data_root=Path(data_root_value).expanduser().resolve(),
                document_backend=str(payload.get("document_backend", DEFAULT_DOCUMENT_BACKEND)),
                blob_backend=str(payload.get("blob_backend", DEFAULT_BLOB_BACKEND)),
                s3_bucket=_optional_text(payload, "s3_bucket"),
                s3_region=_optional_text(payload, "s3_region"),
                s3_profile=_optional_text(payload, "s3_profile"),
                public_base_url=_optional_text(payload, "public_base_url"),
            )
        )


def _validated(config: StrataConfig) -> StrataConfig:
    """Check backend names and backend-specific settings.

    Args:
        config: Parsed config candidate.

    Returns:
        The same config when valid.

    Raises:
        StrataConfigError: If a backend is unknown or under-configured.
    """
    if config.document_backend not in DOCUMENT_BACKENDS:
        raise StrataConfigError(
            f"Invalid document backend '{config.document_backend}': "
            f"expected one of {', '.join(DOCUMENT_BACKENDS)}."
        )
    if config.blob_backend not in BLOB_BACKENDS:
        raise StrataConfigError(
            f"Invalid blob backend '{config.blob_backend}': "
            f"expected one of {', '.join(BLOB_BACKENDS)}."
        )
    if config.blob_backend == "s3" and not config.s3_bucket:
        raise StrataConfigError(
            "The s3 blob backend requires a bucket. Set STRATA_S3_BUCKET or 's3_bucket'."
        )
    return config


def _load_yaml_mapping(config_path: str) -> Mapping[str, object]:
    config_file = Path(config_path).expanduser().resolve()
    if not config_file.exists():
        raise StrataConfigError(
            f"Config file does not exist at {config_file}. Provide a valid YAML file path."
        )
    try:
        payload = cast(object, yaml.safe_load(config_file.read_text(encoding="utf-8")))
    except OSError as error:
        raise StrataConfigError(
            f"Failed to read config at {config_file}: {error}. Check file permissions and retry."
        ) from error
    except yaml.YAMLError as error:
        raise StrataConfigError(
            f"Failed to parse YAML config at {config_file}: {error}. Fix YAML syntax and retry."
        ) from error
    if payload is None:
        return {}
    if not isinstance(payload, Mapping):
        raise StrataConfigError(
            f"Invalid config at {config_file}: expected a mapping at top level."
        )
    return cast(Mapping[str, object], payload)


def _optional_text(payload: Mapping[str, object], key: str) -> str | None:
    value = payload.get(key)
    if value is None:
        return None
    return str(value)
