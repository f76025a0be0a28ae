"""Orchestrates the scrape-download-persist pipeline for one member.

For each run:

    1. The rate limiter state is reset (no pacing state leaks across runs).
    2. The pagination collector gathers post stubs from the listing pages.
    3. Posts are processed strictly one after another: detail extraction,
       upsert, then a windowed image download whose input-ordered results
       are written back to the post's image rows by position.

A failure on one post (``BlogArchiverError``) is logged, counted and
skipped; it never aborts the run.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date

import httpx
import structlog

from blog_archiver.config.site_layouts import SiteLayout, get_layout
from blog_archiver.interfaces.data_service import IDataService
from blog_archiver.interfaces.page_fetcher import IPageFetcher
from blog_archiver.models.blog import Member, PostStub, ScrapedPost, Site
from blog_archiver.models.summary import ScrapeSummary
from blog_archiver.services.image_downloader import ImageDownloader
from blog_archiver.services.member_directory import keyaki_member_id
from blog_archiver.services.pagination_collector import PaginationCollector
from blog_archiver.services.post_extractor import PostDetailExtractor
from blog_archiver.services.rate_limiter import DelayScheduler
from blog_archiver.utils.errors import BlogArchiverError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_MAX_PAGES = 100


def post_id_from_url(url: str) -> str:
    """Last path segment of a detail URL (``.../diary/detail/12345?ima=0`` -> ``12345``)."""
    segments = [s for s in httpx.URL(url).path.split("/") if s]
    return segments[-1] if segments else ""


class BlogScrapeService:
    """Scrapes a member's blog on one site into the archive.

    Parameters
    ----------
    fetcher:
        Page fetcher shared by the collector and the extractor (one browser
        session per run).
    data_service:
        The post archive.
    downloader:
        Image downloader; only used when ``download_images`` is requested.
    scheduler:
        Request pacing, reset at the start of every run.
    max_pages:
        Pagination safety cap.
    """

    def __init__(
        self,
        fetcher: IPageFetcher,
        data_service: IDataService,
        downloader: ImageDownloader,
        scheduler: DelayScheduler,
        max_pages: int = _DEFAULT_MAX_PAGES,
    ) -> None:
        self._fetcher = fetcher
        self._data_service = data_service
        self._downloader = downloader
        self._scheduler = scheduler
        self._max_pages = max_pages
        self._logger = logger

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def scrape_member(
        self,
        member: Member,
        site: Site | str = Site.SAKURAZAKA,
        limit: int | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        download_images: bool = True,
        on_progress: Callable[[int, int, str], None] | None = None,
    ) -> ScrapeSummary:
        """Archive *member*'s posts from *site*.

        Parameters
        ----------
        member:
            The member; posts are stored under ``member.id`` on both sites.
        site:
            Which blog to scrape.
        limit:
            Newest-N posts; ``None`` for all.  Ignored with a date range.
        date_from, date_to:
            Inclusive date range.
        download_images:
            Download and link images after each post is saved.
        on_progress:
            Callback ``(index, total, title)`` after each processed post.

        Returns
        -------
        ScrapeSummary
            Counts of posts found, saved, skipped and images fetched.
        """
        site = Site(site)
        layout = get_layout(site)
        self._scheduler.reset()

        listing_id = self._listing_member_id(member, site)
        if listing_id is None:
            self._logger.warning("keyaki_member_unknown", member=member.name)
            return ScrapeSummary(
                member_id=member.id,
                member_name=member.name,
                site=site,
                errors=[f"No {site.value} blog id for {member.name}"],
            )

        self._logger.info(
            "scrape_started",
            member=member.name,
            site=site.value,
            listing_id=listing_id,
            limit=limit,
            date_from=str(date_from) if date_from else None,
            date_to=str(date_to) if date_to else None,
        )

        collector = PaginationCollector(self._fetcher, self._scheduler, layout, self._max_pages)
        try:
            stubs = await collector.collect(listing_id, limit, date_from, date_to)
        except BlogArchiverError as exc:
            self._logger.error("listing_collect_failed", member=member.name, error=str(exc))
            return ScrapeSummary(
                member_id=member.id, member_name=member.name, site=site, errors=[str(exc)]
            )

        extractor = PostDetailExtractor(self._fetcher, layout)
        saved = skipped = images_ok = images_failed = 0
        errors: list[str] = []

        for index, stub in enumerate(stubs):
            await self._scheduler.delay(index)
            try:
                post = await self._scrape_post(extractor, layout, member, stub)
                if post is None:
                    skipped += 1
                    self._logger.info("post_skipped_empty", url=stub.url)
                    continue

                await self._data_service.upsert_post(post)
                saved += 1

                if download_images and post.images:
                    ok, failed = await self._download_images(post, listing_id, member)
                    images_ok += ok
                    images_failed += failed
            except BlogArchiverError as exc:
                skipped += 1
                errors.append(f"{stub.url}: {exc}")
                self._logger.warning("post_scrape_failed", url=stub.url, error=str(exc))
                continue

            self._logger.info(
                "post_scraped",
                index=index + 1,
                total=len(stubs),
                url=post.url,
                title=post.title,
                images=len(post.images),
            )
            if on_progress:
                on_progress(index + 1, len(stubs), post.title)

        summary = ScrapeSummary(
            member_id=member.id,
            member_name=member.name,
            site=site,
            posts_found=len(stubs),
            posts_saved=saved,
            posts_skipped=skipped,
            images_downloaded=images_ok,
            images_failed=images_failed,
            errors=errors,
        )
        self._logger.info(
            "scrape_complete",
            member=member.name,
            site=site.value,
            found=summary.posts_found,
            saved=summary.posts_saved,
            skipped=summary.posts_skipped,
            images=summary.images_downloaded,
            image_failures=summary.images_failed,
        )
        return summary

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _listing_member_id(member: Member, site: Site) -> str | None:
        if site is Site.KEYAKIZAKA:
            return keyaki_member_id(member.name)
        return str(member.id)

    async def _scrape_post(
        self,
        extractor: PostDetailExtractor,
        layout: SiteLayout,
        member: Member,
        stub: PostStub,
    ) -> ScrapedPost | None:
        detail = await extractor.extract(stub.url)
        title = detail.title or stub.title
        if layout.prefer_listing_date:
            post_date = stub.date or detail.date
        else:
            post_date = detail.date or stub.date

        if not title and not detail.content:
            return None

        return ScrapedPost(
            member_id=member.id,
            member_name=member.name,
            url=stub.url,
            title=title,
            date=post_date,
            content=detail.content,
            site=layout.site,
            images=detail.images,
        )

    async def _download_images(
        self,
        post: ScrapedPost,
        listing_id: str,
        member: Member,
    ) -> tuple[int, int]:
        results = await self._downloader.download_many(
            post.images,
            member_id=listing_id,
            post_id=post_id_from_url(post.url),
            member_name=member.name,
            site=post.site,
        )
        # Full input-ordered list; failures stay as None so later paths keep their row.
        await self._data_service.update_post_image_local_paths(
            post.url, [r.local_path if r.success else None for r in results]
        )
        succeeded = sum(1 for r in results if r.success)
        return succeeded, len(results) - succeeded
