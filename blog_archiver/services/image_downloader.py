"""Image download with a persistent cache, in-flight dedup and retries.

``download_one`` resolves one image URL to a storage-relative path:

    1. Cache check: if the context-aware cache key has an entry and the
       stored file still exists, the cached path is returned with no
       network I/O.
    2. In-flight dedup: a URL already being downloaded by another task is
       awaited rather than fetched a second time.
    3. Download: the bytes are fetched (redirects followed manually as the
       same logical download) and written atomically through the storage
       adapter.  Non-2xx responses, timeouts and transport errors are
       retried with linear backoff; DNS failures fail immediately.
    4. A cache entry is recorded with size and timestamp.

``download_many`` runs ``download_one`` over a list in fixed-size windows
and returns one :class:`DownloadResult` per input, in input order.
"""

from __future__ import annotations

import asyncio
import hashlib
import re
import socket
from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath

import httpx
import structlog

from blog_archiver.interfaces.image_cache import IImageCache
from blog_archiver.interfaces.storage_adapter import IStorageAdapter
from blog_archiver.models.blog import Site
from blog_archiver.models.images import DownloadResult, FolderStats, ImageCacheEntry, ImageStats
from blog_archiver.providers.storage.local_storage import LocalStorageAdapter
from blog_archiver.utils.concurrency import gather_in_windows
from blog_archiver.utils.errors import BlogArchiverError, DownloadError, HostNotFoundError
from blog_archiver.utils.text_formatting import format_file_size

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_RETRIES = 3
_DEFAULT_RETRY_DELAY = 1.0
_DEFAULT_CONCURRENCY = 3
_MAX_REDIRECTS = 5
_REDIRECT_STATUSES = {301, 302, 303, 307, 308}
_ILLEGAL_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*]')
_DNS_FAILURE_MARKERS = (
    "name or service not known",
    "nodename nor servname",
    "getaddrinfo failed",
    "no address associated",
    "temporary failure in name resolution",
)


def _is_dns_failure(exc: BaseException) -> bool:
    """True when *exc*, or anything in its cause chain, is a name-resolution error."""
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, socket.gaierror):
            return True
        message = str(current).lower()
        if any(marker in message for marker in _DNS_FAILURE_MARKERS):
            return True
        current = current.__cause__ or current.__context__
    return False


class ImageDownloader:
    """Downloads post images into storage, backed by an image cache.

    Parameters
    ----------
    http_client:
        Shared ``httpx.AsyncClient``.  Redirects are followed by the
        downloader itself, so the client's own redirect setting is
        overridden per request.
    storage:
        Where image bytes are written.
    cache:
        Persistent index of downloaded images; must be loaded first.
    images_dir:
        Relative directory (inside storage) that holds the member folders.
    retries, retry_delay:
        Attempts per image and the linear backoff base in seconds.
    concurrency:
        Default window size for :meth:`download_many`.
    timeout:
        Per-request timeout in seconds.
    sleep:
        Injectable for tests; defaults to ``asyncio.sleep``.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        storage: IStorageAdapter,
        cache: IImageCache,
        images_dir: str = "images",
        retries: int = _DEFAULT_RETRIES,
        retry_delay: float = _DEFAULT_RETRY_DELAY,
        concurrency: int = _DEFAULT_CONCURRENCY,
        timeout: float = 10.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._client = http_client
        self._storage = storage
        self._cache = cache
        self._images_dir = images_dir.strip("/")
        self._retries = max(1, retries)
        self._retry_delay = retry_delay
        self._concurrency = concurrency
        self._timeout = timeout
        self._sleep = sleep
        self._in_flight: dict[str, asyncio.Task[str]] = {}

    # ------------------------------------------------------------------
    # Naming
    # ------------------------------------------------------------------

    @staticmethod
    def url_hash(url: str) -> str:
        return hashlib.md5(url.encode("utf-8")).hexdigest()

    @staticmethod
    def cache_key(url: str, member_id: int | str | None = None, post_id: str | None = None) -> str:
        """Context-aware cache key.

        With both *member_id* and *post_id* the key is post-scoped, so the
        same remote image used by two posts is cached twice.
        """
        if member_id is not None and post_id is not None:
            raw = f"{url}_{member_id}_{post_id}"
        else:
            raw = url
        return hashlib.md5(raw.encode("utf-8")).hexdigest()

    @staticmethod
    def folder_name(member_name: str | None, member_id: int | str | None, site: Site | str) -> str:
        sanitized = _ILLEGAL_FILENAME_CHARS.sub("", member_name or "")
        base = sanitized or f"member_{member_id}"
        return f"{base}_{Site(site).value}"

    def build_relative_path(
        self,
        url: str,
        member_id: int | str | None,
        post_id: str | None,
        member_name: str | None,
        site: Site | str,
    ) -> str:
        """Storage-relative destination: ``images/<folder>/post_<id>_<hash8><ext>``."""
        extension = PurePosixPath(httpx.URL(url).path).suffix or ".jpg"
        clean_post_id = str(post_id).split("?")[0].split("&")[0]
        filename = f"post_{clean_post_id}_{self.url_hash(url)[:8]}{extension}"
        folder = self.folder_name(member_name, member_id, site)
        return str(PurePosixPath(self._images_dir, folder, filename))

    # ------------------------------------------------------------------
    # Downloads
    # ------------------------------------------------------------------

    async def download_one(
        self,
        url: str,
        member_id: int | str | None = None,
        post_id: str | None = None,
        member_name: str | None = None,
        site: Site | str = Site.SAKURAZAKA,
        retries: int | None = None,
    ) -> str:
        """Return the storage-relative path of *url*, downloading if needed.

        Raises
        ------
        HostNotFoundError
            The image host could not be resolved (not retried).
        DownloadError
            Every attempt failed.
        """
        key = self.cache_key(url, member_id, post_id)
        cached = self._cache.get(key)
        if cached is not None and await self._storage.exists(cached.local_path):
            logger.debug("image_cache_hit", url=url, path=cached.local_path)
            return cached.local_path

        pending = self._in_flight.get(url)
        if pending is not None:
            logger.debug("image_download_joined", url=url)
            return await asyncio.shield(pending)

        attempts = self._retries if retries is None else max(1, retries)
        task = asyncio.ensure_future(
            self._download(url, key, member_id, post_id, member_name, site, attempts)
        )
        self._in_flight[url] = task
        try:
            return await asyncio.shield(task)
        finally:
            if task.done():
                self._in_flight.pop(url, None)
            else:
                task.add_done_callback(lambda _t: self._in_flight.pop(url, None))

    async def download_many(
        self,
        urls: Sequence[str],
        member_id: int | str | None = None,
        post_id: str | None = None,
        member_name: str | None = None,
        site: Site | str = Site.SAKURAZAKA,
        concurrency: int | None = None,
        on_progress: Callable[[int, int], None] | None = None,
    ) -> list[DownloadResult]:
        """Download *urls* in windows; results align with *urls* by index."""

        async def worker(url: str) -> DownloadResult:
            try:
                path = await self.download_one(url, member_id, post_id, member_name, site)
            except (BlogArchiverError, OSError) as exc:
                return DownloadResult(url=url, success=False, error=str(exc))
            return DownloadResult(url=url, local_path=path, success=True)

        def window_done(completed: int, total: int) -> None:
            logger.info("image_batch_progress", completed=completed, total=total)
            if on_progress:
                on_progress(completed, total)

        results = await gather_in_windows(
            list(urls), worker, concurrency or self._concurrency, window_done
        )
        succeeded = sum(1 for r in results if r.success)
        logger.info(
            "image_batch_complete",
            post_id=post_id,
            total=len(results),
            succeeded=succeeded,
            failed=len(results) - succeeded,
        )
        return results

    async def _download(
        self,
        url: str,
        key: str,
        member_id: int | str | None,
        post_id: str | None,
        member_name: str | None,
        site: Site | str,
        retries: int,
    ) -> str:
        try:
            relative_path = self.build_relative_path(url, member_id, post_id, member_name, site)
        except httpx.InvalidURL as exc:
            raise DownloadError(
                message=f"Invalid image URL {url}: {exc}",
                url=url,
                provider_name="image_downloader",
            ) from exc
        last_error = ""

        for attempt in range(1, retries + 1):
            try:
                data = await self._fetch_bytes(url)
            except HostNotFoundError:
                logger.warning("image_host_not_found", url=url)
                raise
            except (httpx.HTTPError, DownloadError) as exc:
                last_error = str(exc) or type(exc).__name__
                logger.warning(
                    "image_download_retry",
                    url=url,
                    attempt=attempt,
                    max_attempts=retries,
                    error=last_error,
                )
                if attempt < retries:
                    await self._sleep(self._retry_delay * attempt)
                continue

            await self._storage.save(relative_path, data)
            await self._cache.put(
                key,
                ImageCacheEntry(
                    url=url,
                    local_path=relative_path,
                    member_id=int(member_id) if member_id is not None else None,
                    post_id=post_id,
                    downloaded_at=datetime.now(tz=timezone.utc).isoformat(),  # noqa: UP017
                    size=len(data),
                ),
            )
            logger.debug("image_downloaded", url=url, path=relative_path, size=len(data))
            return relative_path

        raise DownloadError(
            message=f"Download failed after {retries} attempts: {last_error}",
            url=url,
            attempts=retries,
            provider_name="image_downloader",
        )

    async def _fetch_bytes(self, url: str) -> bytes:
        current = url
        for _hop in range(_MAX_REDIRECTS + 1):
            try:
                response = await self._client.get(
                    current, follow_redirects=False, timeout=self._timeout
                )
            except httpx.TransportError as exc:
                if _is_dns_failure(exc):
                    raise HostNotFoundError(
                        message=f"Host not found for {url}",
                        url=url,
                        provider_name="image_downloader",
                    ) from exc
                raise

            location = response.headers.get("location")
            if response.status_code in _REDIRECT_STATUSES and location:
                try:
                    current = str(httpx.URL(current).join(location))
                except httpx.InvalidURL as exc:
                    raise DownloadError(
                        message=f"Invalid redirect target {location!r} for {url}",
                        url=url,
                        provider_name="image_downloader",
                    ) from exc
                continue
            if not response.is_success:
                raise DownloadError(
                    message=f"HTTP {response.status_code} for {current}",
                    url=url,
                    provider_name="image_downloader",
                )
            return response.content

        raise DownloadError(
            message=f"Too many redirects for {url}",
            url=url,
            provider_name="image_downloader",
        )

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    async def cleanup_cache(self) -> int:
        """Drop cache entries whose stored file has disappeared."""
        return await self._cache.cleanup(self._storage.exists)

    def image_stats(self) -> ImageStats:
        """Per-folder file counts and sizes for locally stored images."""
        cached = len(self._cache.entries())
        if not isinstance(self._storage, LocalStorageAdapter):
            return ImageStats(cached_entries=cached)

        root: Path = self._storage.get_absolute_path(self._images_dir)
        if not root.is_dir():
            return ImageStats(cached_entries=cached)

        folders: list[FolderStats] = []
        for folder in sorted(p for p in root.iterdir() if p.is_dir()):
            files = [f for f in folder.iterdir() if f.is_file() and not f.name.startswith(".tmp_")]
            folders.append(
                FolderStats(name=folder.name, files=len(files), size=sum(f.stat().st_size for f in files))
            )

        total_size = sum(f.size for f in folders)
        return ImageStats(
            total_files=sum(f.files for f in folders),
            total_size=total_size,
            formatted_size=format_file_size(total_size),
            cached_entries=cached,
            folders=folders,
        )
