"""Plain HTTP page fetcher.

Fetches raw server HTML with an ``httpx.AsyncClient``.  No JavaScript is
executed, so this is suitable for listing pages that are fully server
rendered and for tests driven by ``httpx.MockTransport``.
"""

from __future__ import annotations

import asyncio

import httpx
import structlog

from blog_archiver.interfaces.page_fetcher import IPageFetcher
from blog_archiver.providers.fetcher.playwright_fetcher import USER_AGENT
from blog_archiver.utils.errors import ScrapeError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_TIMEOUT = 30.0
_MAX_RETRIES = 3
_RETRY_BACKOFF = 2.0
_DEFAULT_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "ja,en;q=0.8",
}


class HttpxPageFetcher(IPageFetcher):
    """Page fetcher backed by httpx.

    When no client is injected one is created and owned by the fetcher;
    ``close`` only closes a client the fetcher owns.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = _DEFAULT_TIMEOUT,
        max_retries: int = _MAX_RETRIES,
        retry_backoff: float = _RETRY_BACKOFF,
    ) -> None:
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            headers=_DEFAULT_HEADERS,
            follow_redirects=True,
        )
        self._max_retries = max(1, max_retries)
        self._retry_backoff = retry_backoff

    async def fetch(self, url: str) -> str:
        last_error = ""
        for attempt in range(1, self._max_retries + 1):
            try:
                response = await self._client.get(url)
                if response.status_code == 200:
                    return response.text
                last_error = f"HTTP {response.status_code}"
                # Client errors other than rate limiting will not improve on retry.
                if 400 <= response.status_code < 500 and response.status_code != 429:
                    break
            except httpx.HTTPError as exc:
                last_error = str(exc) or type(exc).__name__

            logger.warning("page_fetch_retry", url=url, attempt=attempt, error=last_error)
            if attempt < self._max_retries:
                await asyncio.sleep(self._retry_backoff * attempt)

        raise ScrapeError(
            message=f"Failed to fetch {url}: {last_error}",
            provider_name=self.get_provider_name(),
        )

    async def close(self) -> None:
        if self._owns_client and not self._client.is_closed:
            await self._client.aclose()

    def get_provider_name(self) -> str:
        return "httpx"
