"""Blog archive domain models.

Defines Pydantic v2 models for members, listing stubs, extracted post
details, persisted posts and their images.  All models are frozen: the
scrape pipeline produces new instances rather than mutating old ones.

Flow through the pipeline:
    1. A listing page is parsed          → PostStub (one per entry link)
    2. The detail page is extracted      → PostDetail
    3. Stub + detail are merged          → ScrapedPost (written to SQLite)
    4. Rows are read back                → StoredPost with StoredImage list
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Site(str, Enum):
    """The two blog sites a member's history may live on."""

    SAKURAZAKA = "sakurazaka46"
    KEYAKIZAKA = "keyakizaka46"


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------
class Member(BaseModel):
    """A group member with a blog on the current site."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    blog_url: str = ""
    # Only populated when members are derived from archived posts.
    has_keyaki: bool = False
    post_count: int = 0


# ---------------------------------------------------------------------------
# Scrape-time models
# ---------------------------------------------------------------------------
class PostStub(BaseModel):
    """One entry discovered on a listing page; unique by ``url``."""

    model_config = ConfigDict(frozen=True)

    url: str
    title: str = ""
    # Raw date text as shown on the listing (e.g. "2023.10.5", "2019/03/21").
    date: str = ""


class PostDetail(BaseModel):
    """Fields read from a single post's detail page."""

    model_config = ConfigDict(frozen=True)

    title: str = ""
    date: str = ""
    # Cleaned HTML fragment of the post body.
    content: str = ""
    # Absolute image URLs in document order, excluding site chrome.
    images: list[str] = Field(default_factory=list)


class ScrapedPost(BaseModel):
    """A merged stub + detail ready to persist."""

    model_config = ConfigDict(frozen=True)

    member_id: int
    member_name: str
    url: str
    title: str = ""
    date: str = ""
    content: str = ""
    site: Site = Site.SAKURAZAKA
    images: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Persisted models
# ---------------------------------------------------------------------------
class StoredImage(BaseModel):
    """An image row: the remote URL and, once downloaded, its storage path."""

    model_config = ConfigDict(frozen=True)

    url: str
    local_path: str | None = None


class StoredPost(BaseModel):
    """A post as read back from the archive."""

    model_config = ConfigDict(frozen=True)

    id: int
    member_id: int | None = None
    member_name: str
    url: str
    title: str = ""
    date: str = ""
    content: str = ""
    site: Site = Site.SAKURAZAKA
    created_at: str | None = None
    # Image rows in insertion (ordinal) order.
    images: list[StoredImage] = Field(default_factory=list)

    @property
    def image_urls(self) -> list[str]:
        return [image.url for image in self.images]

    @property
    def local_images(self) -> list[str | None]:
        """Storage paths aligned with ``images``; ``None`` where not downloaded."""
        return [image.local_path for image in self.images]


class PostPage(BaseModel):
    """One page of a paginated post list."""

    model_config = ConfigDict(frozen=True)

    posts: list[StoredPost] = Field(default_factory=list)
    page: int = 1
    per_page: int = 20
    total: int = 0

    @property
    def total_pages(self) -> int:
        if self.per_page <= 0:
            return 0
        return (self.total + self.per_page - 1) // self.per_page

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages
