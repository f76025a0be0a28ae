"""Headless-Chromium page fetcher built on Playwright.

One browser, one context and one page are launched lazily on the first
``fetch`` and reused for every following navigation, giving a single
browser session per scrape invocation.  Navigation waits for
``domcontentloaded`` and then a short settle delay so client-side
rendering can finish before the HTML is read.

Timeouts and navigation errors are retried with linearly increasing
backoff; after the retry budget is spent a :class:`ScrapeError` is raised.
"""

from __future__ import annotations

import asyncio
from typing import Any

import structlog
from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from blog_archiver.interfaces.page_fetcher import IPageFetcher
from blog_archiver.utils.errors import ScrapeError

logger = structlog.get_logger(logger_name=__name__)

_MAX_RETRIES = 3
_RETRY_BACKOFF = 2.0  # seconds, multiplied by the attempt number

CHROME_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--no-sandbox",
    "--disable-dev-shm-usage",
]

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/133.0.0.0 Safari/537.36"
)

_VIEWPORT = {"width": 1366, "height": 900}


class PlaywrightPageFetcher(IPageFetcher):
    """Page fetcher that renders pages in headless Chromium.

    Parameters
    ----------
    headless:
        Launch Chromium without a visible window.
    timeout:
        Navigation timeout in seconds.
    settle_delay:
        Seconds to wait after ``domcontentloaded`` before reading the DOM.
    max_retries:
        Navigation attempts per URL.
    """

    def __init__(
        self,
        headless: bool = True,
        timeout: float = 30.0,
        settle_delay: float = 1.5,
        max_retries: int = _MAX_RETRIES,
    ) -> None:
        self._headless = headless
        self._timeout_ms = timeout * 1000
        self._settle_delay = settle_delay
        self._max_retries = max(1, max_retries)
        self._pw: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None

    async def _ensure_page(self) -> Page:
        if self._page is None:
            self._pw = await async_playwright().start()
            self._browser = await self._pw.chromium.launch(
                headless=self._headless, args=CHROME_ARGS
            )
            self._context = await self._browser.new_context(
                user_agent=USER_AGENT,
                viewport=_VIEWPORT,
                locale="ja-JP",
            )
            self._page = await self._context.new_page()
            logger.info("browser_launched", headless=self._headless)
        return self._page

    async def fetch(self, url: str) -> str:
        page = await self._ensure_page()
        last_error: Exception | None = None

        for attempt in range(1, self._max_retries + 1):
            try:
                await page.goto(url, wait_until="domcontentloaded", timeout=self._timeout_ms)
                if self._settle_delay > 0:
                    await asyncio.sleep(self._settle_delay)
                html: str = await page.content()
                logger.debug("page_fetched", url=url, attempt=attempt, length=len(html))
                return html
            except (PlaywrightTimeoutError, PlaywrightError) as exc:
                last_error = exc
                logger.warning(
                    "page_fetch_retry",
                    url=url,
                    attempt=attempt,
                    error=str(exc).splitlines()[0] if str(exc) else type(exc).__name__,
                )
                if attempt < self._max_retries:
                    await asyncio.sleep(_RETRY_BACKOFF * attempt)

        raise ScrapeError(
            message=f"Failed to load {url} after {self._max_retries} attempts: {last_error}",
            provider_name=self.get_provider_name(),
        )

    async def close(self) -> None:
        resources: list[tuple[str, Any]] = [
            ("context", self._context),
            ("browser", self._browser),
        ]
        for name, resource in resources:
            if resource is None:
                continue
            try:
                await resource.close()
            except PlaywrightError as exc:
                logger.warning("browser_close_failed", resource=name, error=str(exc))
        if self._pw is not None:
            await self._pw.stop()
        if self._page is not None:
            logger.info("browser_closed")
        self._pw = self._browser = self._context = self._page = None

    def get_provider_name(self) -> str:
        return "playwright"
