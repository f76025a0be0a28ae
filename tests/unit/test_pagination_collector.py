"""Unit tests for PaginationCollector stop rules and filtering."""

from __future__ import annotations

from datetime import date, timedelta
from unittest.mock import MagicMock

import pytest

from blog_archiver.config.site_layouts import SAKURAZAKA
from blog_archiver.services.pagination_collector import PaginationCollector
from blog_archiver.services.rate_limiter import DelayScheduler, RateLimiterState
from blog_archiver.utils.date_utils import parse_blog_date
from tests.conftest import FakePageFetcher, sakura_listing_html


def _entries(first_id: int, count: int, newest: date) -> list[tuple[str, str, str]]:
    """``count`` entries, one per day going back from *newest*."""
    out = []
    for offset in range(count):
        day = newest - timedelta(days=offset)
        out.append((str(first_id - offset), f"{day.year}.{day.month}.{day.day}", f"post {first_id - offset}"))
    return out


def _collector(pages: dict[int, str], no_sleep, max_pages: int = 100, default: str | None = None):
    fetcher = FakePageFetcher(
        {SAKURAZAKA.list_url("46", page): html for page, html in pages.items()},
        default=default,
    )
    scheduler = DelayScheduler(
        state=RateLimiterState(),
        sleep=no_sleep,
        rng=MagicMock(return_value=0.0),
    )
    return PaginationCollector(fetcher, scheduler, SAKURAZAKA, max_pages=max_pages), fetcher


class TestStopRules:
    @pytest.mark.asyncio
    async def test_short_page_is_last_page(self, no_sleep) -> None:
        collector, fetcher = _collector(
            {
                0: sakura_listing_html(_entries(2000, 20, date(2024, 3, 1))),
                1: sakura_listing_html(_entries(1980, 5, date(2024, 2, 10))),
            },
            no_sleep,
        )

        stubs = await collector.collect("46")

        assert len(stubs) == 25
        assert len(fetcher.requested) == 2

    @pytest.mark.asyncio
    async def test_empty_page_stops(self, no_sleep) -> None:
        collector, fetcher = _collector(
            {
                0: sakura_listing_html(_entries(2000, 20, date(2024, 3, 1))),
                1: sakura_listing_html([]),
            },
            no_sleep,
        )

        stubs = await collector.collect("46")

        assert len(stubs) == 20
        assert len(fetcher.requested) == 2

    @pytest.mark.asyncio
    async def test_limit_stops_early_and_slices(self, no_sleep) -> None:
        collector, fetcher = _collector(
            {0: sakura_listing_html(_entries(2000, 20, date(2024, 3, 1)))},
            no_sleep,
        )

        stubs = await collector.collect("46", limit=5)

        assert [s.title for s in stubs] == [f"post {n}" for n in range(2000, 1995, -1)]
        assert len(fetcher.requested) == 1

    @pytest.mark.asyncio
    async def test_page_older_than_date_from_stops(self, no_sleep) -> None:
        collector, fetcher = _collector(
            {
                0: sakura_listing_html(_entries(2000, 20, date(2024, 3, 20))),
                1: sakura_listing_html(_entries(1980, 20, date(2024, 2, 29))),
                2: sakura_listing_html(_entries(1960, 20, date(2024, 2, 9))),
            },
            no_sleep,
        )

        stubs = await collector.collect("46", date_from=date(2024, 2, 20))

        # Page 1 reaches back to 2024-02-10, so page 2 is never requested.
        assert len(fetcher.requested) == 2
        assert len(stubs) == 20 + 10
        assert all(parse_blog_date(s.date) >= date(2024, 2, 20) for s in stubs)

    @pytest.mark.asyncio
    async def test_date_range_ignores_limit(self, no_sleep) -> None:
        collector, _ = _collector(
            {0: sakura_listing_html(_entries(2000, 10, date(2024, 3, 10)))},
            no_sleep,
        )

        stubs = await collector.collect(
            "46", limit=1, date_from=date(2024, 3, 1), date_to=date(2024, 3, 8)
        )

        assert len(stubs) == 8
        assert stubs[0].date == "2024.3.8"

    @pytest.mark.asyncio
    async def test_max_pages_caps_the_walk(self, no_sleep) -> None:
        full_page = sakura_listing_html(_entries(2000, 20, date(2024, 3, 1)))
        collector, fetcher = _collector({}, no_sleep, max_pages=3, default=full_page)

        await collector.collect("46")

        assert len(fetcher.requested) == 3


class TestFiltering:
    @pytest.mark.asyncio
    async def test_unparseable_dates_are_kept(self, no_sleep) -> None:
        html = sakura_listing_html([("1", "近日公開", "teaser"), ("2", "2020.1.1", "old")])
        collector, _ = _collector({0: html}, no_sleep)

        stubs = await collector.collect("46", date_from=date(2024, 1, 1))

        assert [s.title for s in stubs] == ["teaser"]

    @pytest.mark.asyncio
    async def test_rate_limiter_called_before_every_page(self, no_sleep) -> None:
        collector, fetcher = _collector(
            {
                0: sakura_listing_html(_entries(2000, 20, date(2024, 3, 1))),
                1: sakura_listing_html(_entries(1980, 3, date(2024, 2, 1))),
            },
            no_sleep,
        )

        await collector.collect("46")

        assert collector._scheduler.state.request_count == len(fetcher.requested) == 2
