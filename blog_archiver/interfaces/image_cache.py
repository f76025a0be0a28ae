"""Abstract base class for the downloaded-image cache.

The cache maps a cache key (see ``ImageDownloader.cache_key``) to an
:class:`ImageCacheEntry`.  It survives restarts, so a previously
downloaded image is never fetched again while its stored file exists.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

from blog_archiver.models.images import ImageCacheEntry


class IImageCache(ABC):
    """Contract for the persistent image cache."""

    @abstractmethod
    async def load(self) -> None:
        """Read the persisted cache.  A missing or corrupt file yields an empty cache."""

    @abstractmethod
    def get(self, key: str) -> ImageCacheEntry | None:
        """Return the entry for *key*, or ``None``."""

    @abstractmethod
    async def put(self, key: str, entry: ImageCacheEntry) -> None:
        """Record *entry* under *key* and persist the cache."""

    @abstractmethod
    async def remove(self, key: str) -> None:
        """Drop *key* and persist the cache.  No-op when absent."""

    @abstractmethod
    def entries(self) -> list[ImageCacheEntry]:
        """Return all entries."""

    @abstractmethod
    async def cleanup(self, exists: Callable[[str], Awaitable[bool]]) -> int:
        """Remove entries whose stored file no longer exists.

        Returns
        -------
        int
            Number of entries removed.
        """
