"""Application wiring for the blog archiver.

Builds every provider and service from :class:`Settings` with explicit,
configuration-driven backend selection.  Unknown backend names raise
:class:`ConfigurationError` instead of silently falling back.

``build_archiver`` returns the assembled components keyed by role; callers
must ``await shutdown(components)`` when done so the browser session and
the HTTP client are closed even on interrupt.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import httpx

from blog_archiver.config.settings import Settings
from blog_archiver.interfaces.data_service import IDataService
from blog_archiver.interfaces.page_fetcher import IPageFetcher
from blog_archiver.interfaces.storage_adapter import IStorageAdapter
from blog_archiver.providers.cache.json_image_cache import JsonImageCache
from blog_archiver.providers.data.sqlite_data_service import SQLiteDataService
from blog_archiver.providers.fetcher.httpx_fetcher import HttpxPageFetcher
from blog_archiver.providers.fetcher.playwright_fetcher import USER_AGENT, PlaywrightPageFetcher
from blog_archiver.providers.storage.local_storage import LocalStorageAdapter
from blog_archiver.providers.storage.s3_storage import S3StorageAdapter
from blog_archiver.services.blog_scrape_service import BlogScrapeService
from blog_archiver.services.image_downloader import ImageDownloader
from blog_archiver.services.member_directory import MemberDirectory
from blog_archiver.services.post_search_service import PostSearchService
from blog_archiver.services.rate_limiter import DelayScheduler, RateLimiterState
from blog_archiver.utils.errors import ConfigurationError
from blog_archiver.utils.logging import get_logger

_logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Backend factories
# ---------------------------------------------------------------------------


def build_storage_adapter(app_settings: Settings) -> IStorageAdapter:
    """Select the image storage backend from ``storage_type``."""
    storage_type = app_settings.storage_type.lower()
    if storage_type == "local":
        return LocalStorageAdapter(base_dir=app_settings.storage_base_dir)
    if storage_type == "s3":
        if not app_settings.s3_bucket:
            raise ConfigurationError(message="STORAGE_TYPE=s3 requires S3_BUCKET")
        return S3StorageAdapter(
            bucket=app_settings.s3_bucket,
            region=app_settings.s3_region,
            base_url=app_settings.s3_base_url,
        )
    raise ConfigurationError(message=f"Unknown storage_type: {app_settings.storage_type!r}")


def build_data_service(
    app_settings: Settings,
    storage: IStorageAdapter | None = None,
) -> IDataService:
    """Select the archive backend from ``data_service``."""
    if app_settings.data_service.lower() == "sqlite":
        return SQLiteDataService(db_path=app_settings.database_path, storage=storage)
    raise ConfigurationError(message=f"Unknown data_service: {app_settings.data_service!r}")


def build_page_fetcher(
    app_settings: Settings,
    http_client: httpx.AsyncClient | None = None,
) -> IPageFetcher:
    """Select the page fetcher from ``page_fetcher``."""
    fetcher = app_settings.page_fetcher.lower()
    if fetcher == "playwright":
        return PlaywrightPageFetcher(
            headless=app_settings.headless,
            timeout=app_settings.page_timeout,
            settle_delay=app_settings.page_settle_delay,
        )
    if fetcher == "httpx":
        return HttpxPageFetcher(http_client=http_client, timeout=app_settings.page_timeout)
    raise ConfigurationError(message=f"Unknown page_fetcher: {app_settings.page_fetcher!r}")


def build_delay_scheduler(app_settings: Settings) -> DelayScheduler:
    return DelayScheduler(
        state=RateLimiterState(),
        min_delay=app_settings.rate_min_delay,
        max_delay=app_settings.rate_max_delay,
        burst_limit=app_settings.rate_burst_limit,
        long_break=app_settings.rate_long_break,
        requests_per_minute=app_settings.rate_requests_per_minute,
    )


# ---------------------------------------------------------------------------
# Full assembly
# ---------------------------------------------------------------------------


async def build_archiver(custom_settings: Settings | None = None) -> dict[str, Any]:
    """Construct all archiver services with injected dependencies.

    Initialises the database schema and loads the image cache before
    returning.

    Returns
    -------
    dict
        Components keyed by role name: ``settings``, ``http_client``,
        ``storage``, ``data_service``, ``fetcher``, ``image_cache``,
        ``downloader``, ``scheduler``, ``scrape_service``, ``members``,
        ``search``.
    """
    s = custom_settings or Settings()

    storage = build_storage_adapter(s)
    data_service = build_data_service(s, storage=storage)
    http_client = httpx.AsyncClient(
        headers={"User-Agent": USER_AGENT},
        timeout=httpx.Timeout(s.image_timeout),
        follow_redirects=False,
    )
    fetcher = build_page_fetcher(s)
    image_cache = JsonImageCache(Path(s.image_cache_file))
    scheduler = build_delay_scheduler(s)

    downloader = ImageDownloader(
        http_client=http_client,
        storage=storage,
        cache=image_cache,
        images_dir=s.images_dir,
        retries=s.download_retries,
        retry_delay=s.download_retry_delay,
        concurrency=s.download_concurrency,
        timeout=s.image_timeout,
    )

    await data_service.initialize()
    await image_cache.load()

    _logger.info(
        "archiver_built",
        storage=storage.get_provider_name(),
        data_service=data_service.get_provider_name(),
        fetcher=fetcher.get_provider_name(),
    )

    return {
        "settings": s,
        "http_client": http_client,
        "storage": storage,
        "data_service": data_service,
        "fetcher": fetcher,
        "image_cache": image_cache,
        "downloader": downloader,
        "scheduler": scheduler,
        "scrape_service": BlogScrapeService(
            fetcher=fetcher,
            data_service=data_service,
            downloader=downloader,
            scheduler=scheduler,
            max_pages=s.max_pages,
        ),
        "members": MemberDirectory(fetcher=fetcher, data_service=data_service),
        "search": PostSearchService(data_service=data_service),
    }


async def shutdown(components: dict[str, Any]) -> None:
    """Close the page fetcher and the shared HTTP client.

    Each close is attempted even if the other fails.
    """
    try:
        fetcher: IPageFetcher | None = components.get("fetcher")
        if fetcher is not None:
            await fetcher.close()
    finally:
        http_client: httpx.AsyncClient | None = components.get("http_client")
        if http_client is not None and not http_client.is_closed:
            await http_client.aclose()
    _logger.info("archiver_shutdown")
