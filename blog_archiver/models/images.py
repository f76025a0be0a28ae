"""Image cache and download result models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ImageCacheEntry(BaseModel):
    """Persisted record of one successfully downloaded image."""

    model_config = ConfigDict(frozen=True)

    url: str
    local_path: str
    member_id: int | None = None
    post_id: str | None = None
    # ISO-8601 UTC timestamp.
    downloaded_at: str
    size: int = 0


class DownloadResult(BaseModel):
    """Outcome of one ``download_many`` item, aligned with the input list."""

    model_config = ConfigDict(frozen=True)

    url: str
    local_path: str | None = None
    success: bool = False
    error: str | None = None


class FolderStats(BaseModel):
    """File count and byte size of one member/site image folder."""

    model_config = ConfigDict(frozen=True)

    name: str
    files: int = 0
    size: int = 0


class ImageStats(BaseModel):
    """Aggregate view over the images directory and the cache index."""

    model_config = ConfigDict(frozen=True)

    total_files: int = 0
    total_size: int = 0
    formatted_size: str = "0 B"
    cached_entries: int = 0
    folders: list[FolderStats] = Field(default_factory=list)
