"""Page fetchers.

PlaywrightPageFetcher renders pages in headless Chromium (default).
HttpxPageFetcher fetches raw server HTML over plain HTTP.
"""

from blog_archiver.providers.fetcher.httpx_fetcher import HttpxPageFetcher
from blog_archiver.providers.fetcher.playwright_fetcher import PlaywrightPageFetcher

__all__ = ["HttpxPageFetcher", "PlaywrightPageFetcher"]
