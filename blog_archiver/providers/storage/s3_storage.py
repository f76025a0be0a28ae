"""Object-storage adapter (design stub).

Only URL construction and content-type mapping are implemented; the byte
operations raise :class:`StorageUnavailableError` until an S3 client is
wired in.  Keeping the stub behind ``IStorageAdapter`` lets the storage
backend be chosen from settings without touching the download path.
"""

from __future__ import annotations

from pathlib import PurePosixPath

from blog_archiver.interfaces.storage_adapter import IStorageAdapter
from blog_archiver.utils.errors import StorageUnavailableError

_CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
}


class S3StorageAdapter(IStorageAdapter):
    """Placeholder adapter for an S3 bucket."""

    def __init__(self, bucket: str, region: str = "ap-northeast-1", base_url: str = "") -> None:
        self._bucket = bucket
        self._region = region
        self._base_url = (base_url or f"https://{bucket}.s3.{region}.amazonaws.com").rstrip("/")

    @staticmethod
    def get_content_type(relative_path: str) -> str:
        suffix = PurePosixPath(relative_path).suffix.lower()
        return _CONTENT_TYPES.get(suffix, "application/octet-stream")

    def _unavailable(self, operation: str) -> StorageUnavailableError:
        return StorageUnavailableError(
            message=f"S3 {operation} is not implemented (bucket={self._bucket})",
            provider_name=self.get_provider_name(),
        )

    async def save(self, relative_path: str, data: bytes) -> str:
        raise self._unavailable("save")

    async def exists(self, relative_path: str) -> bool:
        raise self._unavailable("exists")

    def get_url(self, relative_path: str) -> str:
        return f"{self._base_url}/{relative_path.lstrip('/')}"

    async def delete(self, relative_path: str) -> bool:
        raise self._unavailable("delete")

    def get_provider_name(self) -> str:
        return "s3"
