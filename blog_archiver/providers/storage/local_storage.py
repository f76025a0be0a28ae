"""Local filesystem storage adapter.

Stores image bytes under a base directory.  Writes go to a temporary file
in the destination directory and are moved into place with ``os.replace``
so a crashed or interrupted download never leaves a truncated image at
the final path.  Blocking filesystem calls run via ``asyncio.to_thread``.
"""

from __future__ import annotations

import asyncio
import os
import tempfile
from pathlib import Path

import structlog

from blog_archiver.interfaces.storage_adapter import IStorageAdapter

logger = structlog.get_logger(logger_name=__name__)


class LocalStorageAdapter(IStorageAdapter):
    """Storage adapter rooted at a local directory."""

    def __init__(self, base_dir: str | Path = ".") -> None:
        self._base_dir = Path(base_dir)

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def get_absolute_path(self, relative_path: str) -> Path:
        return self.to_absolute_path(relative_path, self._base_dir)

    # ------------------------------------------------------------------
    # IStorageAdapter implementation
    # ------------------------------------------------------------------

    async def save(self, relative_path: str, data: bytes) -> str:
        target = self.get_absolute_path(relative_path)
        await asyncio.to_thread(self._write_atomic, target, data)
        logger.debug("storage_saved", path=relative_path, size=len(data))
        return relative_path

    async def exists(self, relative_path: str) -> bool:
        return await asyncio.to_thread(self.get_absolute_path(relative_path).is_file)

    def get_url(self, relative_path: str) -> str:
        return "/" + relative_path.lstrip("/")

    async def delete(self, relative_path: str) -> bool:
        target = self.get_absolute_path(relative_path)
        try:
            await asyncio.to_thread(target.unlink)
        except FileNotFoundError:
            return False
        logger.debug("storage_deleted", path=relative_path)
        return True

    def get_provider_name(self) -> str:
        return "local"

    # ------------------------------------------------------------------
    # Sync helpers (executed via asyncio.to_thread)
    # ------------------------------------------------------------------

    @staticmethod
    def _write_atomic(target: Path, data: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=".tmp_", suffix=target.suffix)
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
            os.replace(tmp_name, target)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise
