"""Abstract base class for image storage backends.

Every path passed to or returned from a storage adapter is *relative*
(e.g. ``images/田村保乃_sakurazaka46/post_12345_a1b2c3d4.jpg``).  The
adapter maps it to its own namespace: a directory on disk, an S3 key
prefix, and so on.  Persisted ``local_path`` values therefore stay valid
when the backend changes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path, PurePosixPath


class IStorageAdapter(ABC):
    """Contract for storing downloaded image bytes."""

    @staticmethod
    def to_relative_path(absolute_path: str | Path, base_dir: str | Path) -> str:
        """Express *absolute_path* relative to *base_dir* with forward slashes.

        Paths outside *base_dir* are returned unchanged (as POSIX text).
        """
        path = Path(absolute_path)
        try:
            return path.resolve().relative_to(Path(base_dir).resolve()).as_posix()
        except ValueError:
            return path.as_posix()

    @staticmethod
    def to_absolute_path(relative_path: str, base_dir: str | Path) -> Path:
        """Join a stored relative path onto *base_dir*."""
        return Path(base_dir) / PurePosixPath(relative_path.lstrip("/"))

    @abstractmethod
    async def save(self, relative_path: str, data: bytes) -> str:
        """Store *data* at *relative_path*, creating parents as needed.

        Writes must be atomic: a reader never observes a partial file.

        Returns
        -------
        str
            The relative path the bytes were stored under.
        """

    @abstractmethod
    async def exists(self, relative_path: str) -> bool:
        """Return ``True`` if an object is stored at *relative_path*."""

    @abstractmethod
    def get_url(self, relative_path: str) -> str:
        """Return a URL (or root-relative path) a client can load."""

    @abstractmethod
    async def delete(self, relative_path: str) -> bool:
        """Remove the object at *relative_path*.

        Returns ``False`` when nothing was stored there.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier for logs, e.g. ``"local"``."""
