"""Abstract base class for page fetchers.

A page fetcher turns a URL into rendered HTML.  The default implementation
drives a headless browser because the blog sites render parts of their
markup client-side; a plain HTTP fetcher exists for tests and for pages
that do not need rendering.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class IPageFetcher(ABC):
    """Contract for fetching page HTML."""

    @abstractmethod
    async def fetch(self, url: str) -> str:
        """Return the HTML of *url* once the page has settled.

        Raises
        ------
        ScrapeError
            If the page cannot be loaded after the fetcher's retries.
        """

    @abstractmethod
    async def close(self) -> None:
        """Release browser or connection resources.  Safe to call twice."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier for logs."""
