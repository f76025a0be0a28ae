"""Shared pytest fixtures for the blog archiver test suite."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from blog_archiver.config.site_layouts import KEYAKIZAKA, SAKURAZAKA
from blog_archiver.interfaces.page_fetcher import IPageFetcher
from blog_archiver.models.blog import Member, ScrapedPost, Site
from blog_archiver.providers.cache.json_image_cache import JsonImageCache
from blog_archiver.providers.data.sqlite_data_service import SQLiteDataService
from blog_archiver.providers.storage.local_storage import LocalStorageAdapter
from blog_archiver.utils.errors import ScrapeError

# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakePageFetcher(IPageFetcher):
    """In-memory page fetcher: serves canned HTML and records every URL."""

    def __init__(self, pages: dict[str, str] | None = None, default: str | None = None) -> None:
        self.pages = dict(pages or {})
        self.default = default
        self.requested: list[str] = []
        self.closed = False

    async def fetch(self, url: str) -> str:
        self.requested.append(url)
        if url in self.pages:
            return self.pages[url]
        if self.default is not None:
            return self.default
        raise ScrapeError(message=f"no page for {url}", provider_name="fake")

    async def close(self) -> None:
        self.closed = True

    def get_provider_name(self) -> str:
        return "fake"


# ---------------------------------------------------------------------------
# HTML builders
# ---------------------------------------------------------------------------


def sakura_listing_html(entries: list[tuple[str, str, str]]) -> str:
    """Listing page with ``(post_id, date, title)`` entries plus a sidebar."""
    items = "".join(
        f'<li class="box"><a href="/s/s46/diary/detail/{pid}?ima=0000&cd=blog">'
        f'<p class="date">{d}</p><h3 class="title">{t}</h3></a></li>'
        for pid, d, t in entries
    )
    return (
        "<html><body>"
        f'<div class="com-blog-part"><ul>{items}</ul></div>'
        '<aside><h3>NEW ENTRY</h3><ul><li class="box">'
        '<a href="/s/s46/diary/detail/99999?ima=0000&cd=blog">sidebar</a></li></ul></aside>'
        "</body></html>"
    )


def sakura_post_url(post_id: str) -> str:
    return f"{SAKURAZAKA.base_url}/s/s46/diary/detail/{post_id}?ima=0000&cd=blog"


def keyaki_post_url(post_id: str) -> str:
    return f"{KEYAKIZAKA.base_url}/s/k46o/diary/detail/{post_id}?ima=0000&cd=member"


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def storage(tmp_path: Path) -> LocalStorageAdapter:
    return LocalStorageAdapter(base_dir=tmp_path)


@pytest.fixture
async def data_service(tmp_path: Path, storage: LocalStorageAdapter) -> SQLiteDataService:
    """A SQLiteDataService on a temporary database, schema created."""
    service = SQLiteDataService(db_path=tmp_path / "db" / "archive.db", storage=storage)
    await service.initialize()
    return service


@pytest.fixture
def image_cache(tmp_path: Path) -> JsonImageCache:
    return JsonImageCache(tmp_path / "data" / "image_cache.json")


@pytest.fixture
def no_sleep() -> AsyncMock:
    """Stand-in for ``asyncio.sleep`` that records requested delays."""
    return AsyncMock(return_value=None)


@pytest.fixture
def member() -> Member:
    return Member(
        id=46,
        name="田村 保乃",
        blog_url="https://sakurazaka46.com/s/s46/diary/blog/list?ima=0000&ct=46",
    )


@pytest.fixture
def make_post():
    """Factory for ScrapedPost records."""

    def _make(
        url: str = "https://sakurazaka46.com/s/s46/diary/detail/1001",
        title: str = "今日のこと",
        date: str = "2024/01/15",
        content: str = "<p>こんにちは、今日はとても寒い一日でした。</p>",
        images: list[str] | None = None,
        member_id: int = 46,
        member_name: str = "田村 保乃",
        site: Site = Site.SAKURAZAKA,
    ) -> ScrapedPost:
        return ScrapedPost(
            member_id=member_id,
            member_name=member_name,
            url=url,
            title=title,
            date=date,
            content=content,
            site=site,
            images=images or [],
        )

    return _make
