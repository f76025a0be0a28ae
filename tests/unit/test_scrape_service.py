"""Unit tests for BlogScrapeService.

Pages come from FakePageFetcher, posts go to a real temporary SQLite
archive, and the image downloader is mocked.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from blog_archiver.config.site_layouts import SAKURAZAKA
from blog_archiver.models.blog import Member, Site
from blog_archiver.models.images import DownloadResult
from blog_archiver.services.blog_scrape_service import BlogScrapeService, post_id_from_url
from blog_archiver.services.rate_limiter import DelayScheduler
from tests.conftest import FakePageFetcher, sakura_listing_html, sakura_post_url

_IMAGE_A = "https://sakurazaka46.com/files/14/diary/s46/blog/moblog/a.jpg"
_IMAGE_B = "https://cdn.example.com/photos/b.jpg"

_DETAIL_1001 = """
<html><body>
<div class="box-ttl"><h3>冬の思い出</h3></div>
<p class="date">2024.1.15 20:00</p>
<div class="box-article">
  <p>今日はメンバーと一緒にお出かけしてきました。とても楽しかったです！</p>
  <img src="/files/14/diary/s46/blog/moblog/a.jpg">
  <img src="https://cdn.example.com/photos/b.jpg">
</div>
</body></html>
"""


def _listing() -> str:
    return sakura_listing_html(
        [
            ("1001", "2024.1.15", "post 1001"),
            ("1002", "2024.1.14", ""),
            ("1003", "2024.1.13", "post 1003"),
        ]
    )


def _downloader() -> MagicMock:
    downloader = MagicMock()
    downloader.download_many = AsyncMock(
        return_value=[
            DownloadResult(url=_IMAGE_A, local_path="images/田村 保乃_sakurazaka46/post_1001_a.jpg", success=True),
            DownloadResult(url=_IMAGE_B, error="HTTP 404", success=False),
        ]
    )
    return downloader


def _service(fetcher, data_service, downloader, no_sleep) -> BlogScrapeService:
    scheduler = DelayScheduler(sleep=no_sleep, rng=MagicMock(return_value=0.0))
    return BlogScrapeService(fetcher, data_service, downloader, scheduler)


@pytest.fixture
def fetcher() -> FakePageFetcher:
    return FakePageFetcher(
        {
            SAKURAZAKA.list_url("46", 0): _listing(),
            sakura_post_url("1001"): _DETAIL_1001,
            sakura_post_url("1002"): "<html><body></body></html>",
        }
    )


def test_post_id_from_url() -> None:
    assert post_id_from_url(sakura_post_url("59123")) == "59123"
    assert post_id_from_url("https://example.com/") == ""


@pytest.mark.asyncio
async def test_scrape_member_saves_skips_and_links_images(
    fetcher, data_service, member, no_sleep
) -> None:
    downloader = _downloader()
    progress: list[tuple[int, int, str]] = []
    service = _service(fetcher, data_service, downloader, no_sleep)

    summary = await service.scrape_member(
        member, limit=None, on_progress=lambda i, t, title: progress.append((i, t, title))
    )

    assert summary.posts_found == 3
    assert summary.posts_saved == 1
    assert summary.posts_skipped == 2
    assert summary.images_downloaded == 1
    assert summary.images_failed == 1
    assert len(summary.errors) == 1
    assert sakura_post_url("1003") in summary.errors[0]
    assert progress == [(1, 3, "冬の思い出")]

    posts = await data_service.get_all_posts()
    assert len(posts) == 1
    stored = posts[0]
    assert stored.member_id == 46
    assert stored.title == "冬の思い出"
    assert stored.date == "2024/1/15"
    assert stored.image_urls == [_IMAGE_A, _IMAGE_B]
    assert stored.local_images == ["images/田村 保乃_sakurazaka46/post_1001_a.jpg", None]

    downloader.download_many.assert_awaited_once()
    kwargs = downloader.download_many.await_args.kwargs
    assert kwargs["member_id"] == "46"
    assert kwargs["post_id"] == "1001"
    assert kwargs["site"] is Site.SAKURAZAKA


@pytest.mark.asyncio
async def test_rescrape_updates_in_place(fetcher, data_service, member, no_sleep) -> None:
    service = _service(fetcher, data_service, _downloader(), no_sleep)

    await service.scrape_member(member)
    await service.scrape_member(member)

    assert len(await data_service.get_all_posts()) == 1


@pytest.mark.asyncio
async def test_images_can_be_skipped(fetcher, data_service, member, no_sleep) -> None:
    downloader = _downloader()
    service = _service(fetcher, data_service, downloader, no_sleep)

    summary = await service.scrape_member(member, download_images=False)

    assert summary.posts_saved == 1
    assert summary.images_downloaded == 0
    downloader.download_many.assert_not_awaited()
    stored = (await data_service.get_all_posts())[0]
    assert stored.local_images == [None, None]


@pytest.mark.asyncio
async def test_limit_caps_processed_posts(fetcher, data_service, member, no_sleep) -> None:
    service = _service(fetcher, data_service, _downloader(), no_sleep)

    summary = await service.scrape_member(member, limit=1)

    assert summary.posts_found == 1
    assert fetcher.requested == [SAKURAZAKA.list_url("46", 0), sakura_post_url("1001")]


@pytest.mark.asyncio
async def test_listing_failure_returns_error_summary(data_service, member, no_sleep) -> None:
    service = _service(FakePageFetcher(), data_service, _downloader(), no_sleep)

    summary = await service.scrape_member(member)

    assert summary.posts_found == 0
    assert len(summary.errors) == 1


@pytest.mark.asyncio
async def test_unknown_keyaki_member_is_reported(data_service, no_sleep) -> None:
    fetcher = FakePageFetcher()
    service = _service(fetcher, data_service, _downloader(), no_sleep)

    summary = await service.scrape_member(Member(id=59, name="山下 瞳月"), site="keyakizaka46")

    assert summary.site is Site.KEYAKIZAKA
    assert summary.errors
    assert fetcher.requested == []
