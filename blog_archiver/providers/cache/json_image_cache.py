"""JSON-file image cache.

The whole cache lives in memory as a dict of cache key to
:class:`ImageCacheEntry` and is mirrored to a single JSON file.  Every
mutation rewrites the file in full (temp file, then ``os.replace``); there
is no append log, so only one archiving process may use a cache file at a
time.
"""

from __future__ import annotations

import asyncio
import json
import os
import tempfile
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

import structlog
from pydantic import ValidationError

from blog_archiver.interfaces.image_cache import IImageCache
from blog_archiver.models.images import ImageCacheEntry

logger = structlog.get_logger(logger_name=__name__)


class JsonImageCache(IImageCache):
    """Image cache persisted as one JSON object keyed by cache key."""

    def __init__(self, cache_file: str | Path) -> None:
        self._cache_file = Path(cache_file)
        self._entries: dict[str, ImageCacheEntry] = {}
        # Serialises rewrites from concurrent downloads in one window.
        self._write_lock = asyncio.Lock()

    @property
    def cache_file(self) -> Path:
        return self._cache_file

    def __len__(self) -> int:
        return len(self._entries)

    async def load(self) -> None:
        try:
            raw = await asyncio.to_thread(self._cache_file.read_text, encoding="utf-8")
        except FileNotFoundError:
            self._entries = {}
            return
        try:
            data: dict[str, Any] = json.loads(raw)
            self._entries = {
                key: ImageCacheEntry.model_validate(value) for key, value in data.items()
            }
        except (json.JSONDecodeError, AttributeError, ValidationError) as exc:
            logger.warning("image_cache_load_failed", path=str(self._cache_file), error=str(exc))
            self._entries = {}
            return
        logger.info("image_cache_loaded", path=str(self._cache_file), entries=len(self._entries))

    def get(self, key: str) -> ImageCacheEntry | None:
        return self._entries.get(key)

    async def put(self, key: str, entry: ImageCacheEntry) -> None:
        self._entries[key] = entry
        await self._save()

    async def remove(self, key: str) -> None:
        if self._entries.pop(key, None) is not None:
            await self._save()

    def entries(self) -> list[ImageCacheEntry]:
        return list(self._entries.values())

    async def cleanup(self, exists: Callable[[str], Awaitable[bool]]) -> int:
        stale = [
            key for key, entry in self._entries.items() if not await exists(entry.local_path)
        ]
        for key in stale:
            del self._entries[key]
        if stale:
            await self._save()
        logger.info("image_cache_cleaned", removed=len(stale), remaining=len(self._entries))
        return len(stale)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    async def _save(self) -> None:
        async with self._write_lock:
            payload = json.dumps(
                {key: entry.model_dump() for key, entry in self._entries.items()},
                ensure_ascii=False,
                indent=2,
            )
            await asyncio.to_thread(self._write_atomic, payload)

    def _write_atomic(self, payload: str) -> None:
        self._cache_file.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self._cache_file.parent, prefix=".cache_")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp_name, self._cache_file)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise
