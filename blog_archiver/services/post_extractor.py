"""Post detail extraction.

Reads title, date, content and images from a post's detail page.  Every
field uses an ordered-selector fallback: selectors are tried in priority
order and the first element whose text passes the field's filter wins.
Extraction never raises for missing fields; absent data comes back as an
empty string or an empty image list, and the caller falls back to the
listing stub.
"""

from __future__ import annotations

import re
from datetime import datetime
from html import unescape

import structlog
from bs4 import BeautifulSoup, Tag

from blog_archiver.config.site_layouts import IMAGE_EXCLUDE_PATTERNS, SiteLayout
from blog_archiver.interfaces.page_fetcher import IPageFetcher
from blog_archiver.models.blog import PostDetail
from blog_archiver.utils.text_formatting import clean_html_content

logger = structlog.get_logger(logger_name=__name__)

_MIN_CONTENT_TEXT = 20
_MIN_FALLBACK_PARAGRAPH = 50
_FALLBACK_BOILERPLATE = ("NEW ENTRY", "OFFICIAL BLOG")

_INLINE_DATE_RE = re.compile(r"\d{4}[/\-.]\d{1,2}[/\-.]\d{1,2}")
_IMG_SRC_RE = re.compile(r"""<img[^>]+src=["']([^"']+)["'][^>]*>""", re.IGNORECASE)


def is_excluded_image(src: str) -> bool:
    lowered = src.lower()
    return any(pattern in lowered for pattern in IMAGE_EXCLUDE_PATTERNS)


class PostDetailExtractor:
    """Extracts :class:`PostDetail` records for one site layout."""

    def __init__(self, fetcher: IPageFetcher, layout: SiteLayout) -> None:
        self._fetcher = fetcher
        self._layout = layout

    async def extract(self, url: str) -> PostDetail:
        """Fetch *url* and extract its fields.

        Only page-load failures propagate (as ``ScrapeError`` from the
        fetcher); a page with none of the expected markup yields an empty
        ``PostDetail``.
        """
        html = await self._fetcher.fetch(url)
        detail = self.parse(html)
        logger.debug(
            "post_extracted",
            url=url,
            has_title=bool(detail.title),
            has_date=bool(detail.date),
            content_length=len(detail.content),
            images=len(detail.images),
        )
        return detail

    def parse(self, html: str) -> PostDetail:
        soup = BeautifulSoup(html, "html.parser")
        content = self._extract_content(soup)
        return PostDetail(
            title=self._extract_title(soup),
            date=self._extract_date(soup),
            content=content,
            images=self._extract_images(soup, content),
        )

    # ------------------------------------------------------------------
    # Title
    # ------------------------------------------------------------------

    def _extract_title(self, soup: BeautifulSoup) -> str:
        layout = self._layout
        for selector in layout.title_selectors:
            element = soup.select_one(selector)
            if element is None:
                continue
            text = element.get_text().strip()
            if not text or any(phrase in text for phrase in layout.title_exclusions):
                continue
            if layout.title_first_line_only:
                # The legacy heading also carries the member name on later lines.
                lines = [line.strip() for line in text.splitlines() if line.strip()]
                text = lines[0] if lines else text
            return text
        return ""

    # ------------------------------------------------------------------
    # Date
    # ------------------------------------------------------------------

    def _extract_date(self, soup: BeautifulSoup) -> str:
        return (
            self._date_from_parts(soup)
            or self._date_from_text(soup)
            or self._date_from_meta(soup)
        )

    @staticmethod
    def _date_from_parts(soup: BeautifulSoup) -> str:
        year = soup.select_one(".year")
        month = soup.select_one(".month")
        day = soup.select_one(".day")
        if year is None or month is None or day is None:
            return ""
        y = year.get_text().strip()
        m = month.get_text().strip().replace("月", "")
        d = day.get_text().strip().replace("日", "")
        if not (y and m and d):
            return ""
        return f"{y}/{m.zfill(2)}/{d.zfill(2)}"

    def _date_from_text(self, soup: BeautifulSoup) -> str:
        for element in soup.select(self._layout.date_selectors):
            match = _INLINE_DATE_RE.search(element.get_text().strip())
            if match:
                return match.group(0).replace("-", "/").replace(".", "/")
        return ""

    @staticmethod
    def _date_from_meta(soup: BeautifulSoup) -> str:
        meta = soup.select_one('meta[property="article:published_time"]')
        raw = (meta.get("content") or "").strip() if meta is not None else ""
        if not raw:
            return ""
        try:
            published = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError:
            return ""
        return published.strftime("%Y/%m/%d")

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------

    def _extract_content(self, soup: BeautifulSoup) -> str:
        for selector in self._layout.content_selectors:
            element = soup.select_one(selector)
            if element is None or len(element.get_text().strip()) <= _MIN_CONTENT_TEXT:
                continue
            content = clean_html_content(element.decode_contents())
            if content:
                return content

        if not self._layout.text_fallback_selectors:
            return ""
        paragraphs = []
        for element in soup.select(self._layout.text_fallback_selectors):
            text = element.get_text().strip()
            if len(text) > _MIN_FALLBACK_PARAGRAPH and not any(
                phrase in text for phrase in _FALLBACK_BOILERPLATE
            ):
                paragraphs.append(text)
        return "\n\n".join(paragraphs)

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------

    def _image_container(self, soup: BeautifulSoup) -> Tag | None:
        for selector in self._layout.image_container_selectors:
            container = soup.select_one(selector)
            if container is not None:
                return container
        if self._layout.image_container_falls_back_to_body:
            return soup.body or soup
        return None

    def _extract_images(self, soup: BeautifulSoup, content: str) -> list[str]:
        images: list[str] = []
        seen: set[str] = set()

        def add(src: str) -> None:
            if not src or src in seen or is_excluded_image(src):
                return
            seen.add(src)
            images.append(self._layout.absolute_url(src))

        container = self._image_container(soup)
        if container is not None:
            for img in container.find_all("img"):
                add((img.get("src") or "").strip())

        # Second pass over the extracted HTML for tags the DOM query missed.
        # Serialised attributes are entity-escaped, so unescape before comparing.
        for match in _IMG_SRC_RE.finditer(content):
            add(unescape(match.group(1)).strip())

        return images
