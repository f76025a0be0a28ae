"""Custom exception hierarchy for the blog archiver.

All application exceptions inherit from :class:`BlogArchiverError`, which
carries an optional ``provider_name`` so error handlers can identify which
backend (e.g. "playwright", "image_downloader", "sqlite") caused the failure.

The hierarchy is organized by pipeline stage:

    BlogArchiverError  (base -- catch-all for any archiver error)
    +-- ScrapeError              (page navigation / listing fetch)
    +-- DownloadError            (image download, retry budget exhausted)
    |   +-- HostNotFoundError    (DNS failure, never retried)
    +-- PostNotFoundError        (persistence update targeting a missing post)
    +-- StorageUnavailableError  (storage backend not available)
    +-- ConfigurationError       (startup / unknown backend names)

The scrape orchestrator catches ``BlogArchiverError`` per post and per
image so a single failure never aborts a run; anything outside this
hierarchy is treated as a programming error and propagates.
"""


class BlogArchiverError(Exception):
    """Base exception for all blog archiver errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name``.  ``__str__`` prefixes the provider name in brackets,
    e.g. ``[playwright] Navigation timed out``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Scraping / downloading
# ---------------------------------------------------------------------------

class ScrapeError(BlogArchiverError):
    """Raised when a listing or detail page cannot be fetched after retries."""

    def __init__(
        self,
        message: str = "Page fetch failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class DownloadError(BlogArchiverError):
    """Raised when an image download fails after exhausting its retries.

    ``attempts`` records how many attempts were made, ``url`` the image
    that failed.
    """

    def __init__(
        self,
        message: str = "Image download failed",
        url: str = "",
        attempts: int = 0,
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self._url = url
        self._attempts = attempts

    @property
    def url(self) -> str:
        return self._url

    @property
    def attempts(self) -> int:
        return self._attempts


class HostNotFoundError(DownloadError):
    """Raised when the image host cannot be resolved.

    DNS failures are permanent for the lifetime of a run, so the
    downloader raises this on the first attempt instead of retrying.
    """

    def __init__(
        self,
        message: str = "Host not found",
        url: str = "",
        attempts: int = 1,
        provider_name: str | None = None,
    ) -> None:
        super().__init__(
            message=message, url=url, attempts=attempts, provider_name=provider_name
        )


# ---------------------------------------------------------------------------
# Persistence / storage
# ---------------------------------------------------------------------------

class PostNotFoundError(BlogArchiverError):
    """Raised when an update targets a post URL with no matching row."""

    def __init__(
        self,
        message: str = "Post not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class StorageUnavailableError(BlogArchiverError):
    """Raised by storage backends that are declared but not yet available."""

    def __init__(
        self,
        message: str = "Storage backend is not available",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(BlogArchiverError):
    """Raised when configuration is invalid or names an unknown backend."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
