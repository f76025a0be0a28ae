"""Pagination collector.

Walks a member's paginated listing pages and returns the post stubs to
scrape.  The stop rules are checked in this order after every page:

    a. the page yielded no stubs (end of pagination)
    b. ``date_from`` is set and the oldest dated stub on the page is older
       (later pages are strictly older)
    c. no date filter, a ``limit`` is set and enough stubs were collected
    d. the page held fewer stubs than the layout's page size (last page)

When a date range is active ``limit`` is ignored; the range alone decides
how many stubs come back.
"""

from __future__ import annotations

from datetime import date

import structlog

from blog_archiver.config.site_layouts import SiteLayout
from blog_archiver.interfaces.page_fetcher import IPageFetcher
from blog_archiver.models.blog import PostStub
from blog_archiver.services.listing_parser import parse_listing
from blog_archiver.services.rate_limiter import DelayScheduler
from blog_archiver.utils.date_utils import is_date_in_range, parse_blog_date

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_MAX_PAGES = 100


class PaginationCollector:
    """Collects post stubs across listing pages for one site layout."""

    def __init__(
        self,
        fetcher: IPageFetcher,
        scheduler: DelayScheduler,
        layout: SiteLayout,
        max_pages: int = _DEFAULT_MAX_PAGES,
    ) -> None:
        self._fetcher = fetcher
        self._scheduler = scheduler
        self._layout = layout
        self._max_pages = max_pages

    @property
    def layout(self) -> SiteLayout:
        return self._layout

    async def collect(
        self,
        member_id: str | int,
        limit: int | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> list[PostStub]:
        """Return stubs for *member_id* in listing order (newest first).

        Parameters
        ----------
        member_id:
            The member's ID on this layout's site.
        limit:
            Maximum number of stubs; ``None`` collects everything.  Ignored
            when a date bound is given.
        date_from, date_to:
            Inclusive date range.  Stubs with unparseable dates are kept.
        """
        has_date_filter = date_from is not None or date_to is not None
        collected: list[PostStub] = []

        for page in range(self._max_pages):
            await self._scheduler.delay(page)
            html = await self._fetcher.fetch(self._layout.list_url(member_id, page))
            stubs = self._dedupe(parse_listing(html, self._layout))

            in_range = [s for s in stubs if is_date_in_range(s.date, date_from, date_to)]
            collected.extend(in_range)
            logger.debug(
                "listing_page_parsed",
                site=self._layout.site.value,
                member_id=member_id,
                page=page,
                stubs=len(stubs),
                in_range=len(in_range),
            )

            reason = self._stop_reason(stubs, collected, limit, date_from, has_date_filter)
            if reason:
                logger.info(
                    "pagination_stop",
                    site=self._layout.site.value,
                    member_id=member_id,
                    page=page,
                    reason=reason,
                    collected=len(collected),
                )
                break

        if not has_date_filter and limit is not None:
            collected = collected[:limit]
        return collected

    def _stop_reason(
        self,
        stubs: list[PostStub],
        collected: list[PostStub],
        limit: int | None,
        date_from: date | None,
        has_date_filter: bool,
    ) -> str | None:
        if not stubs:
            return "empty_page"
        if date_from is not None:
            dates = [d for d in (parse_blog_date(s.date) for s in stubs) if d is not None]
            if dates and min(dates) < date_from:
                return "older_than_date_from"
        if not has_date_filter and limit is not None and len(collected) >= limit:
            return "limit_reached"
        if len(stubs) < self._layout.page_size:
            return "last_page"
        return None

    @staticmethod
    def _dedupe(stubs: list[PostStub]) -> list[PostStub]:
        seen: set[str] = set()
        unique: list[PostStub] = []
        for stub in stubs:
            if stub.url not in seen:
                seen.add(stub.url)
                unique.append(stub)
        return unique
