"""Utility modules for the blog archiver.

- **errors** -- exception hierarchy rooted at BlogArchiverError.
- **logging** -- structlog setup with console/JSON dual rendering.
- **concurrency** -- windowed asyncio fan-out used by the image downloader.
- **date_utils** -- parsing, range checks and display formatting for
  site-native blog dates.
- **text_formatting** -- HTML cleanup and preview helpers.
"""

from blog_archiver.utils.errors import (
    BlogArchiverError,
    ConfigurationError,
    DownloadError,
    HostNotFoundError,
    PostNotFoundError,
    ScrapeError,
    StorageUnavailableError,
)

__all__ = [
    "BlogArchiverError",
    "ConfigurationError",
    "DownloadError",
    "HostNotFoundError",
    "PostNotFoundError",
    "ScrapeError",
    "StorageUnavailableError",
]
