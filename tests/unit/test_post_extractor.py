"""Unit tests for PostDetailExtractor field fallbacks."""

from __future__ import annotations

import pytest

from blog_archiver.config.site_layouts import KEYAKIZAKA, SAKURAZAKA
from blog_archiver.services.post_extractor import PostDetailExtractor, is_excluded_image
from blog_archiver.utils.errors import ScrapeError
from tests.conftest import FakePageFetcher

_LONG_TEXT = "今日はメンバーと一緒にお出かけしてきました。とても楽しかったです！"

_SAKURA_DETAIL = f"""
<html><head></head><body>
<header><h1>SAKURAZAKA46 OFFICIAL BLOG</h1></header>
<div class="box-ttl"><h3>冬の思い出</h3></div>
<div class="blog-foot-date"><p class="date">2024.1.15 20:00</p></div>
<div class="box-article">
  <p>{_LONG_TEXT}</p>
  <img src="/files/14/diary/s46/blog/moblog/a.jpg">
  <img src="/images/common/icon_sns.png">
  <script>trackView();</script>
  <img src="https://cdn.example.com/photos/b.jpg">
  <img src="/files/14/diary/s46/blog/moblog/a.jpg">
</div>
</body></html>
"""


def _extractor(layout=SAKURAZAKA) -> PostDetailExtractor:
    return PostDetailExtractor(FakePageFetcher(), layout)


class TestTitle:
    def test_skips_boilerplate_and_uses_next_selector(self) -> None:
        assert _extractor().parse(_SAKURA_DETAIL).title == "冬の思い出"

    def test_falls_through_to_blog_title(self) -> None:
        html = '<h1>OFFICIAL BLOG</h1><div class="blog-title">春</div>'
        assert _extractor().parse(html).title == "春"

    def test_keyaki_keeps_first_line(self) -> None:
        html = '<div class="box-ttl">\n  欅のブログ\n  上村 莉菜\n</div>'
        assert _extractor(KEYAKIZAKA).parse(html).title == "欅のブログ"

    def test_missing_title_is_empty(self) -> None:
        assert _extractor().parse("<p>no heading</p>").title == ""


class TestDate:
    def test_year_month_day_parts_are_padded(self) -> None:
        html = '<span class="year">2024</span><span class="month">1月</span><span class="day">5日</span>'
        assert _extractor().parse(html).date == "2024/01/05"

    def test_regex_over_date_like_elements(self) -> None:
        assert _extractor().parse(_SAKURA_DETAIL).date == "2024/1/15"

    def test_meta_published_time(self) -> None:
        html = (
            '<html><head><meta property="article:published_time" '
            'content="2024-01-15T20:00:00+09:00"></head><body></body></html>'
        )
        assert _extractor().parse(html).date == "2024/01/15"

    def test_no_date_anywhere(self) -> None:
        assert _extractor().parse("<div class='date'>today</div>").date == ""


class TestContent:
    def test_strips_script_and_keeps_markup(self) -> None:
        content = _extractor().parse(_SAKURA_DETAIL).content
        assert _LONG_TEXT in content
        assert "<img" in content
        assert "trackView" not in content

    def test_short_container_is_skipped(self) -> None:
        html = f'<div class="box-article">短い</div><div class="blog-body"><p>{_LONG_TEXT}</p></div>'
        assert _extractor().parse(html).content == f"<p>{_LONG_TEXT}</p>"

    def test_plain_text_fallback(self) -> None:
        paragraph = _LONG_TEXT * 2
        html = f"<article>{paragraph}</article><article>NEW ENTRY {paragraph}</article>"
        assert _extractor().parse(html).content == paragraph

    def test_keyaki_has_no_plain_text_fallback(self) -> None:
        html = f"<article>{_LONG_TEXT * 2}</article>"
        assert _extractor(KEYAKIZAKA).parse(html).content == ""


class TestImages:
    def test_dom_order_dedup_exclusion_and_absolute_urls(self) -> None:
        images = _extractor().parse(_SAKURA_DETAIL).images
        assert images == [
            "https://sakurazaka46.com/files/14/diary/s46/blog/moblog/a.jpg",
            "https://cdn.example.com/photos/b.jpg",
        ]

    def test_regex_pass_finds_images_outside_image_container(self) -> None:
        html = (
            f'<div class="entry-content"><p>{_LONG_TEXT}</p>'
            '<img src="/files/x.jpg?w=1&amp;h=2"><img src="/files/x.jpg?w=1&amp;h=2"></div>'
        )
        assert _extractor().parse(html).images == ["https://sakurazaka46.com/files/x.jpg?w=1&h=2"]

    def test_keyaki_falls_back_to_body_and_skips_emoji(self) -> None:
        html = (
            '<html><body><div class="x"><img src="/img/a.jpg">'
            '<img src="https://twemoji.maxcdn.com/1f600.png"></div></body></html>'
        )
        assert _extractor(KEYAKIZAKA).parse(html).images == ["https://www.keyakizaka46.com/img/a.jpg"]

    @pytest.mark.parametrize(
        "src, excluded",
        [
            ("/images/LOGO.png", True),
            ("/img/app_banner.jpg", True),
            ("/files/jasrac.gif", True),
            ("/files/14/diary/photo.jpg", False),
        ],
    )
    def test_exclusion_is_case_insensitive(self, src: str, excluded: bool) -> None:
        assert is_excluded_image(src) is excluded


class TestExtract:
    @pytest.mark.asyncio
    async def test_fetches_and_parses(self) -> None:
        url = "https://sakurazaka46.com/s/s46/diary/detail/1001"
        extractor = PostDetailExtractor(FakePageFetcher({url: _SAKURA_DETAIL}), SAKURAZAKA)

        detail = await extractor.extract(url)

        assert detail.title == "冬の思い出"
        assert len(detail.images) == 2

    @pytest.mark.asyncio
    async def test_fetch_failure_propagates(self) -> None:
        extractor = PostDetailExtractor(FakePageFetcher(), SAKURAZAKA)
        with pytest.raises(ScrapeError):
            await extractor.extract("https://sakurazaka46.com/missing")
