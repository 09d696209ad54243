"""S3 blob backend.

This module encapsulates boto3 client creation and maps the blob store
contract onto S3 object calls. Public read is granted with the canned
``public-read`` ACL, and locators are virtual-hosted object urls.
"""

from __future__ import annotations

from typing import Any, Sequence
from urllib.parse import quote

from core.config import StrataConfig
from core.constants import S3_PUBLIC_READ_ACL
from core.errors import StrataDependencyError, StrataExistenceError
from store.blob_store import BlobRef, BlobStore

_MISSING_CODES = ("404", "NoSuchKey", "NotFound")
_ALL_USERS_URI = "http://acs.amazonaws.com/groups/global/AllUsers"


def create_s3_client(config: StrataConfig) -> Any:
    """Create a boto3 S3 client.

    Args:
        config: Runtime config with optional session settings.

    Returns:
        Boto3 S3 client.

    Raises:
        StrataDependencyError: If boto3 is missing.
    """
    try:
        import boto3
    except ImportError as error:
        raise StrataDependencyError(
            "The s3 blob backend requires boto3, but it is not installed. "
            "Install boto3 to store blobs in S3 buckets."
        ) from error
    session_kwargs: dict[str, str] = {}
    if config.s3_profile:
        session_kwargs["profile_name"] = config.s3_profile
    if config.s3_region:
        session_kwargs["region_name"] = config.s3_region
    session = boto3.session.Session(**session_kwargs)
    return session.client("s3")


class S3BlobStore(BlobStore):
    """Blob container backed by one S3 bucket."""

    def __init__(
        self,
        s3_client: Any,
        bucket: str,
        region: str | None = None,
        public_base_url: str | None = None,
    ) -> None:
        self._client = s3_client
        self._bucket = bucket
        self._region = region
        self._public_base_url = public_base_url.rstrip("/") if public_base_url else None

    def exists(self, path: str) -> bool:
        try:
            self._client.head_object(Bucket=self._bucket, Key=path)
        except Exception as error:
            if _error_code(error) in _MISSING_CODES:
                return False
            raise
        return True

    def create(self, path: str, data: bytes, public_read: bool = True) -> None:
        if self.exists(path):
            raise StrataExistenceError(f"Blob s3://{self._bucket}/{path} already exists.")
        self._put(path, data, public_read)

    def overwrite(self, path: str, data: bytes) -> None:
        if not self.exists(path):
            raise StrataExistenceError(f"Blob s3://{self._bucket}/{path} does not exist.")
        self._put(path, data, self._is_public(path))

    def read(self, path: str) -> bytes | None:
        try:
            response = self._client.get_object(Bucket=self._bucket, Key=path)
        except Exception as error:
            if _error_code(error) in _MISSING_CODES:
                return None
            raise
        return bytes(response["Body"].read())

    def locator(self, path: str) -> str:
        if not self.exists(path):
            raise StrataExistenceError(f"Blob s3://{self._bucket}/{path} does not exist.")
        return self._locator(path)

    def delete(self, path: str) -> None:
        self._client.delete_object(Bucket=self._bucket, Key=path)

    def get_many(self, paths: Sequence[str]) -> list[BlobRef | None]:
        return [
            BlobRef(path=path, locator=self._locator(path)) if self.exists(path) else None
            for path in paths
        ]

    def _put(self, path: str, data: bytes, public_read: bool) -> None:
        put_kwargs: dict[str, Any] = {"Bucket": self._bucket, "Key": path, "Body": data}
        if public_read:
            put_kwargs["ACL"] = S3_PUBLIC_READ_ACL
        self._client.put_object(**put_kwargs)

    def _is_public(self, path: str) -> bool:
        response = self._client.get_object_acl(Bucket=self._bucket, Key=path)
        for grant in response.get("Grants", []):
            grantee = grant.get("Grantee", {})
            if grantee.get("URI") == _ALL_USERS_URI and grant.get("Permission") == "READ":
                return True
        return False

    def _locator(self, path: str) -> str:
        quoted_path = quote(path)
        if self._public_base_url:
            return f"{self._public_base_url}/{quoted_path}"
        if self._region:
            return f"https://{self._bucket}.s3.{self._region}.amazonaws.com/{quoted_path}"
        return f"https://{self._bucket}.s3.amazonaws.com/{quoted_path}"


def _error_code(error: Exception) -> str:
    response = getattr(error, "response", None)
    if not isinstance(response, dict):
        return ""
    return str(response.get("Error", {}).get("Code", ""))
