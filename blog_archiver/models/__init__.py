"""Frozen Pydantic models shared across the archiver."""

from blog_archiver.models.blog import (
    Member,
    PostDetail,
    PostPage,
    PostStub,
    ScrapedPost,
    Site,
    StoredImage,
    StoredPost,
)
from blog_archiver.models.images import (
    DownloadResult,
    FolderStats,
    ImageCacheEntry,
    ImageStats,
)
from blog_archiver.models.summary import ScrapeSummary

__all__ = [
    "DownloadResult",
    "FolderStats",
    "ImageCacheEntry",
    "ImageStats",
    "Member",
    "PostDetail",
    "PostPage",
    "PostStub",
    "ScrapeSummary",
    "ScrapedPost",
    "Site",
    "StoredImage",
    "StoredPost",
]
