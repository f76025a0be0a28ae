"""Listing-page parsers for the two blog layouts.

Each parser turns the HTML of one listing page into ``PostStub`` records in
page order, deduplicated by URL within the page.  Entries outside the main
list (sidebar "latest entries" widgets) are ignored.
"""

from __future__ import annotations

import re

from bs4 import BeautifulSoup, Tag

from blog_archiver.config.site_layouts import DETAIL_PATH_FRAGMENT, SIDEBAR_MARKERS, SiteLayout
from blog_archiver.models.blog import PostStub, Site

_LISTING_DATE_RE = re.compile(r"(\d{4})/(\d{2})/(\d{2})")
_ANCESTOR_DEPTH = 5


def _text(element: Tag | None) -> str:
    return element.get_text(strip=True) if element is not None else ""


# ---------------------------------------------------------------------------
# sakurazaka46: entries are ``li.box`` items inside ``.com-blog-part``
# ---------------------------------------------------------------------------

def parse_sakurazaka_listing(html: str, layout: SiteLayout) -> list[PostStub]:
    soup = BeautifulSoup(html, "html.parser")
    container = soup.select_one(".com-blog-part")
    if container is None:
        return []

    stubs: list[PostStub] = []
    seen: set[str] = set()
    for item in container.select("li.box"):
        link = item.find("a")
        if link is None:
            continue
        href = link.get("href") or ""
        if DETAIL_PATH_FRAGMENT not in href or href in seen:
            continue
        seen.add(href)
        stubs.append(
            PostStub(
                url=layout.absolute_url(href),
                date=_text(item.select_one(".date, .time")),
                title=_text(item.select_one(".title, h3, h4")),
            )
        )
    return stubs


# ---------------------------------------------------------------------------
# keyakizaka46: detail links anywhere on the page, minus sidebar widgets
# ---------------------------------------------------------------------------

def _is_sidebar_heading(child: Tag) -> bool:
    text = child.get_text()
    if not any(marker in text for marker in SIDEBAR_MARKERS):
        return False
    return child.select_one(f"a[href*='{DETAIL_PATH_FRAGMENT}']") is None


def _in_sidebar(link: Tag) -> bool:
    """True when a nearby ancestor is a widget titled "NEW ENTRY" / "最新記事".

    A widget ancestor has a direct child carrying the marker text that is
    itself free of detail links (the widget heading).
    """
    for depth, ancestor in enumerate(link.parents):
        if depth >= _ANCESTOR_DEPTH or ancestor.name in (None, "[document]"):
            break
        for child in ancestor.find_all(recursive=False):
            if _is_sidebar_heading(child):
                return True
    return False


def _nearby_listing_date(link: Tag) -> str:
    for depth, ancestor in enumerate(link.parents):
        if depth >= _ANCESTOR_DEPTH or ancestor.name in (None, "[document]"):
            break
        box_bottom = ancestor.select_one(".box-bottom")
        if box_bottom is None:
            continue
        match = _LISTING_DATE_RE.search(box_bottom.get_text())
        if match:
            return f"{match.group(1)}/{match.group(2)}/{match.group(3)}"
    return ""


def parse_keyakizaka_listing(html: str, layout: SiteLayout) -> list[PostStub]:
    soup = BeautifulSoup(html, "html.parser")
    stubs: list[PostStub] = []
    seen: set[str] = set()
    for link in soup.select(f"a[href*='{DETAIL_PATH_FRAGMENT}']"):
        href = link.get("href") or ""
        if not href or href in seen or _in_sidebar(link):
            continue
        seen.add(href)
        stubs.append(
            PostStub(
                url=layout.absolute_url(href),
                date=_nearby_listing_date(link),
                title=link.get_text(" ", strip=True),
            )
        )
    return stubs


_PARSERS = {
    Site.SAKURAZAKA: parse_sakurazaka_listing,
    Site.KEYAKIZAKA: parse_keyakizaka_listing,
}


def parse_listing(html: str, layout: SiteLayout) -> list[PostStub]:
    """Parse a listing page with the parser registered for ``layout.site``."""
    return _PARSERS[layout.site](html, layout)
