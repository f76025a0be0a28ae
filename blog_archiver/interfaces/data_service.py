"""Abstract base class for the post archive.

The archive holds three record kinds: members, posts (unique by URL) and
the images belonging to each post.  Image rows keep their insertion order,
which is the order the images appeared in the post; callers rely on that
ordinal alignment when filling in download results.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from blog_archiver.models.blog import Member, ScrapedPost, StoredImage, StoredPost


class IDataService(ABC):
    """Contract for persisting members, posts and post images."""

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables if they do not exist."""

    # -- members ----------------------------------------------------------

    @abstractmethod
    async def save_member(self, member: Member) -> None:
        """Insert or replace a member record."""

    @abstractmethod
    async def save_members(self, members: Sequence[Member]) -> int:
        """Insert or replace many members; return how many were written."""

    @abstractmethod
    async def get_members(self) -> list[Member]:
        """Return all stored members ordered by id."""

    @abstractmethod
    async def get_members_from_posts(self) -> list[Member]:
        """Return members that have at least one archived post.

        ``has_keyaki`` is set for members with a post from the legacy site.
        """

    # -- posts ------------------------------------------------------------

    @abstractmethod
    async def upsert_post(self, post: ScrapedPost) -> int:
        """Insert or update the post identified by ``post.url``.

        On update the post id is kept and the image rows are replaced by
        ``post.images`` in order.  A ``local_path`` already recorded for the
        same image URL is carried over.

        Returns
        -------
        int
            The post's id.
        """

    @abstractmethod
    async def update_post_image_local_paths(
        self,
        url: str,
        local_paths: Sequence[str | None],
    ) -> None:
        """Set ``local_path`` on the images of the post at *url* by position.

        ``local_paths[i]`` is written to the i-th image row (ordered by row
        id).  ``None`` entries, and rows beyond the end of *local_paths*,
        are set to NULL.

        Raises
        ------
        PostNotFoundError
            If no post has the given URL.
        """

    @abstractmethod
    async def get_posts(
        self,
        member_id: int | None = None,
        limit: int | None = None,
    ) -> list[StoredPost]:
        """Return posts newest first, optionally for one member."""

    @abstractmethod
    async def get_all_posts(self) -> list[StoredPost]:
        """Return every archived post, newest first."""

    @abstractmethod
    async def search_posts(self, keyword: str) -> list[StoredPost]:
        """Return posts whose title or content contains *keyword*."""

    @abstractmethod
    async def get_post(self, post_id: int) -> StoredPost | None:
        """Return one post by id, or ``None``."""

    @abstractmethod
    async def get_post_images(self, post_id: int) -> list[StoredImage]:
        """Return the image rows of a post in ordinal order."""

    @abstractmethod
    async def delete_post(self, post_id: int) -> int:
        """Delete a post, its image rows and its stored image files.

        Returns
        -------
        int
            ``1`` if the post was deleted, ``0`` if it did not exist.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier for logs."""
