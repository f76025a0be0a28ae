"""Read-side query layer over the post archive.

The archive only offers broad queries (all posts, per member, substring
search).  Filtering by date range, sorting by parsed date and pagination
happen here on the full result set.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date

from blog_archiver.interfaces.data_service import IDataService
from blog_archiver.models.blog import PostPage, StoredPost
from blog_archiver.utils.date_utils import parse_blog_date, parse_post_date

_SORT_ORDERS = ("desc", "asc")


def paginate(posts: Sequence[StoredPost], page: int = 1, per_page: int = 20) -> PostPage:
    """Slice *posts* into 1-indexed pages of *per_page*."""
    page = max(1, page)
    per_page = max(1, per_page)
    start = (page - 1) * per_page
    return PostPage(
        posts=list(posts[start:start + per_page]),
        page=page,
        per_page=per_page,
        total=len(posts),
    )


class PostSearchService:
    """Keyword, member and date-range search over archived posts."""

    def __init__(self, data_service: IDataService) -> None:
        self._data_service = data_service

    async def advanced_search(
        self,
        keyword: str = "",
        title_search: bool = False,
        member_id: int | None = None,
        member_ids: Sequence[int] | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        sort_order: str = "desc",
        limit: int | None = None,
    ) -> list[StoredPost]:
        """Search the archive.

        Parameters
        ----------
        keyword:
            Case-insensitive substring; empty matches every post.
        title_search:
            Match *keyword* against titles only instead of title + content.
        member_id, member_ids:
            Restrict to one member or to any of several members.
        date_from, date_to:
            Inclusive bounds.  Posts without a parseable date are dropped
            whenever a bound is given.
        sort_order:
            ``"desc"`` (newest first) or ``"asc"``.
        limit:
            Maximum number of posts returned after sorting.
        """
        if sort_order not in _SORT_ORDERS:
            msg = f"sort_order must be one of {_SORT_ORDERS}, got {sort_order!r}"
            raise ValueError(msg)

        keyword = keyword.strip()
        if keyword:
            posts = await self._data_service.search_posts(keyword)
            if title_search:
                needle = keyword.casefold()
                posts = [p for p in posts if needle in p.title.casefold()]
        elif member_id is not None:
            posts = await self._data_service.get_posts(member_id=member_id)
        else:
            posts = await self._data_service.get_all_posts()

        if member_id is not None:
            posts = [p for p in posts if p.member_id == member_id]
        if member_ids:
            wanted = set(member_ids)
            posts = [p for p in posts if p.member_id in wanted]

        if date_from is not None or date_to is not None:
            posts = [p for p in posts if self._in_range(p.date, date_from, date_to)]

        posts.sort(key=lambda p: parse_post_date(p.date), reverse=sort_order == "desc")
        return posts[:limit] if limit is not None else posts

    async def search_page(
        self,
        page: int = 1,
        per_page: int = 20,
        **filters: object,
    ) -> PostPage:
        posts = await self.advanced_search(**filters)  # type: ignore[arg-type]
        return paginate(posts, page, per_page)

    @staticmethod
    def _in_range(date_str: str, date_from: date | None, date_to: date | None) -> bool:
        post_date = parse_blog_date(date_str)
        if post_date is None:
            return False
        if date_from is not None and post_date < date_from:
            return False
        if date_to is not None and post_date > date_to:
            return False
        return True
