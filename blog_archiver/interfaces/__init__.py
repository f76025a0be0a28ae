"""Abstract interfaces for swappable backends.

Services depend only on these ABCs; concrete providers are chosen in
``blog_archiver.main`` from settings.
"""

from blog_archiver.interfaces.data_service import IDataService
from blog_archiver.interfaces.image_cache import IImageCache
from blog_archiver.interfaces.page_fetcher import IPageFetcher
from blog_archiver.interfaces.storage_adapter import IStorageAdapter

__all__ = [
    "IDataService",
    "IImageCache",
    "IPageFetcher",
    "IStorageAdapter",
]
