"""Image storage adapters.

LocalStorageAdapter writes under a base directory on disk.
S3StorageAdapter is a stub that only builds public URLs.
"""

from blog_archiver.providers.storage.local_storage import LocalStorageAdapter
from blog_archiver.providers.storage.s3_storage import S3StorageAdapter

__all__ = ["LocalStorageAdapter", "S3StorageAdapter"]
