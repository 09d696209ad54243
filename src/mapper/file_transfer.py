"""Blob transfer helpers for file fields.

This module validates caller-supplied file streams and moves their
content into the blob store at the deterministic blob path of a file
field. All blob store calls block through ``await_store``.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from core.errors import StrataFormatError
from core.logging_config import get_logger
from schema.entity_metadata import EntityMetadata
from store.blob_store import BlobStore
from store.store_call import await_store

_LOGGER = get_logger(__name__)


def check_streams(
    metadata: EntityMetadata,
    files: Mapping[str, Any] | None,
    entity: Any | None = None,
) -> dict[str, Any]:
    """Validate a file-stream map against the entity file fields.

    Args:
        metadata: Entity metadata.
        files: Field name to readable stream (or raw bytes).
        entity: Optional entity whose targeted file fields must be null.

    Returns:
        A copy of the stream map, empty when none was supplied.

    Raises:
        StrataFormatError: If a name is not a file field, a targeted
            field is already set or a stream is null.
    """
    if files is None:
        return {}
    for name, stream in files.items():
        descriptor = metadata.file_fields.get(name)
        if descriptor is None:
            raise StrataFormatError(
                f"File field {name} does not exist in class {metadata.type_name}."
            )
        if entity is not None and descriptor.read(entity) is not None:
            raise StrataFormatError(
                f"File field {name} must be null in the entity before uploading a stream. "
                "Set it to None to replace its content."
            )
        if stream is None:
            raise StrataFormatError(f"Input stream {name} cannot be null.")
    return dict(files)


def read_stream(name: str, stream: Any) -> bytes:
    """Read the whole content of a file stream.

    Raises:
        StrataFormatError: If the stream is null or does not yield bytes.
    """
    if stream is None:
        raise StrataFormatError(f"Input stream {name} cannot be null.")
    if isinstance(stream, (bytes, bytearray, memoryview)):
        return bytes(stream)
    reader = getattr(stream, "read", None)
    if not callable(reader):
        raise StrataFormatError(
            f"Input stream {name} must be bytes or expose read(); got {type(stream).__name__}."
        )
    data = reader()
    if not isinstance(data, (bytes, bytearray)):
        raise StrataFormatError(
            f"Input stream {name} must yield bytes; open files in binary mode."
        )
    return bytes(data)


def upload_blob(blobs: BlobStore, blob_path: str, data: bytes) -> str:
    """Create a public blob, or overwrite it in place when it exists.

    Args:
        blobs: Blob store.
        blob_path: Target blob path.
        data: Blob content.

    Returns:
        Locator url of the uploaded blob.
    """
    if await_store(f"check blob {blob_path}", blobs.exists, blob_path):
        await_store(f"overwrite blob {blob_path}", blobs.overwrite, blob_path, data)
        created = False
    else:
        await_store(f"create blob {blob_path}", blobs.create, blob_path, data, public_read=True)
        created = True
    locator = str(await_store(f"locate blob {blob_path}", blobs.locator, blob_path))
    _LOGGER.info("blob_uploaded", path=blob_path, size=len(data), created=created)
    return locator


def delete_blobs(blobs: BlobStore, blob_paths: Iterable[str]) -> int:
    """Delete the blobs that exist among the given paths.

    Missing blobs are skipped.

    Args:
        blobs: Blob store.
        blob_paths: Candidate blob paths.

    Returns:
        Number of deleted blobs.
    """
    paths = list(blob_paths)
    if not paths:
        return 0
    refs = await_store(f"look up {len(paths)} blobs", blobs.get_many, paths)
    deleted = 0
    for path, ref in zip(paths, refs):
        if ref is None:
            _LOGGER.debug("blob_delete_skipped", path=path, reason="missing")
            continue
        await_store(f"delete blob {path}", blobs.delete, path)
        deleted += 1
        _LOGGER.info("blob_deleted", path=path)
    return deleted
