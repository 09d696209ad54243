"""Pytest configuration for repository test runs."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import pytest


def pytest_sessionstart() -> None:
    """Add src directory to sys.path for test imports."""
    project_root = Path(__file__).resolve().parent.parent
    src_path = project_root / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))


@pytest.fixture
def strata_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Clear Strata environment overrides and point the data root at tmp_path."""
    for name in (
        "STRATA_DOCUMENT_BACKEND",
        "STRATA_BLOB_BACKEND",
        "STRATA_S3_BUCKET",
        "STRATA_S3_REGION",
        "STRATA_S3_PROFILE",
        "STRATA_PUBLIC_BASE_URL",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("STRATA_DATA_ROOT", str(tmp_path))
    return tmp_path


@pytest.fixture
def memory_client(strata_env: Path) -> Any:
    """SDK client over fresh in-memory document and blob stores."""
    from core.config import StrataConfig
    from mapper.client import StrataClient
    from store.memory_store import MemoryBlobStore, MemoryDocumentStore

    return StrataClient(
        StrataConfig.from_env(),
        document_store=MemoryDocumentStore(),
        blob_store=MemoryBlobStore(),
    )
