"""Result model for a member scrape run."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from blog_archiver.models.blog import Site


class ScrapeSummary(BaseModel):
    """Counts reported back to the CLI after ``scrape_member`` finishes."""

    model_config = ConfigDict(frozen=True)

    member_id: int
    member_name: str
    site: Site
    posts_found: int = 0
    posts_saved: int = 0
    posts_skipped: int = 0
    images_downloaded: int = 0
    images_failed: int = 0
    errors: list[str] = Field(default_factory=list)
