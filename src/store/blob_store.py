"""Blob store interface.

Blobs are addressed by slash-separated paths. Each created blob can be
granted public read access and exposes a locator url that the mapper
stores in the owning entity's file field.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Sequence


@dataclass(frozen=True)
class BlobRef:
    """Existing blob returned by batch lookups.

    Attributes:
        path: Blob path.
        locator: Public locator url.
    """

    path: str
    locator: str


class BlobStore(ABC):
    """Backend contract for a binary object container.

    Every method may return its result directly or as a
    ``concurrent.futures.Future``.
    """

    @abstractmethod
    def exists(self, path: str) -> Any:
        """Return whether a blob exists."""

    @abstractmethod
    def create(self, path: str, data: bytes, public_read: bool = True) -> Any:
        """Create a blob, optionally granting public read access."""

    @abstractmethod
    def overwrite(self, path: str, data: bytes) -> Any:
        """Replace the content of an existing blob in place."""

    @abstractmethod
    def read(self, path: str) -> Any:
        """Return blob content, or None when the blob does not exist."""

    @abstractmethod
    def locator(self, path: str) -> Any:
        """Return the public locator url of a blob."""

    @abstractmethod
    def delete(self, path: str) -> Any:
        """Delete a blob; deleting a missing blob is a no-op."""

    @abstractmethod
    def get_many(self, paths: Sequence[str]) -> Any:
        """Return one ``BlobRef`` or None per requested path, in order."""
