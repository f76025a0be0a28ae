"""Member directory.

Resolves the list of members whose blogs can be archived.  The list is
scraped from the sakurazaka46 blog index; when that fails for any reason
a hardcoded list of known members is used instead so the archiver stays
usable offline.
"""

from __future__ import annotations

import re

import structlog
from bs4 import BeautifulSoup

from blog_archiver.config.site_layouts import (
    KEYAKI_MEMBER_MAP,
    MEMBER_DIRECTORY_URL,
    SAKURAZAKA,
    known_members,
)
from blog_archiver.interfaces.data_service import IDataService
from blog_archiver.interfaces.page_fetcher import IPageFetcher
from blog_archiver.models.blog import Member
from blog_archiver.utils.errors import BlogArchiverError

logger = structlog.get_logger(logger_name=__name__)

_MEMBER_ID_RE = re.compile(r"ct=(\d+)")
_MAX_NAME_LENGTH = 20


def parse_member_directory(html: str) -> list[Member]:
    """Extract members from the blog index page, sorted by id."""
    soup = BeautifulSoup(html, "html.parser")
    members: dict[int, Member] = {}
    for link in soup.select('a[href*="ct="]'):
        href = link.get("href") or ""
        if "/diary/blog/list" not in href:
            continue
        match = _MEMBER_ID_RE.search(href)
        if not match:
            continue
        member_id = int(match.group(1))
        name = link.get_text(" ", strip=True)
        if member_id <= 0 or not name or len(name) >= _MAX_NAME_LENGTH:
            continue
        members.setdefault(
            member_id,
            Member(id=member_id, name=name, blog_url=SAKURAZAKA.absolute_url(href)),
        )
    return [members[key] for key in sorted(members)]


def keyaki_member_id(member_name: str) -> str | None:
    """Legacy keyakizaka46 diary id for *member_name*, if the member had one.

    Names are matched exactly first, then with whitespace removed so that
    "田村保乃" and "田村 保乃" resolve to the same member.
    """
    if member_name in KEYAKI_MEMBER_MAP:
        return KEYAKI_MEMBER_MAP[member_name]
    compact = "".join(member_name.split())
    for name, legacy_id in KEYAKI_MEMBER_MAP.items():
        if "".join(name.split()) == compact:
            return legacy_id
    return None


class MemberDirectory:
    """Looks up members from the site, the archive, or the fallback list."""

    def __init__(self, fetcher: IPageFetcher, data_service: IDataService) -> None:
        self._fetcher = fetcher
        self._data_service = data_service

    async def fetch_members(self) -> list[Member]:
        """Scrape the member list; fall back to the known-member list on failure."""
        try:
            html = await self._fetcher.fetch(MEMBER_DIRECTORY_URL)
            members = parse_member_directory(html)
        except BlogArchiverError as exc:
            logger.warning("member_fetch_failed", error=str(exc))
            members = []

        if not members:
            members = known_members()
            logger.info("member_fallback_used", count=len(members))
        else:
            logger.info("members_fetched", count=len(members))
        return members

    async def refresh(self) -> list[Member]:
        members = await self.fetch_members()
        await self._data_service.save_members(members)
        return members

    async def ensure_members(self) -> list[Member]:
        """Stored members, seeding the table from the site when it is empty."""
        members = await self._data_service.get_members()
        if members:
            return members
        return await self.refresh()

    async def find_member(
        self,
        member_id: int | None = None,
        name: str | None = None,
    ) -> Member | None:
        """Resolve a member by id or by (whitespace-insensitive) name."""
        members = await self.ensure_members()
        if member_id is not None:
            return next((m for m in members if m.id == member_id), None)
        if name:
            compact = "".join(name.split())
            return next((m for m in members if "".join(m.name.split()) == compact), None)
        return None

    async def members_from_posts(self) -> list[Member]:
        """Members with archived posts, with post counts and ``has_keyaki``."""
        return await self._data_service.get_members_from_posts()
