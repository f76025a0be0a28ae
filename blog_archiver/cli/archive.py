"""CLI for archiving, searching and maintaining member blog posts.

Usage::

    # List members (seeds the member table on first run)
    python -m blog_archiver.cli members --refresh

    # Archive the newest 10 posts of a member from the current blog
    python -m blog_archiver.cli scrape --member-id 46 --limit 10

    # Archive a member's legacy-site posts within a date range
    python -m blog_archiver.cli scrape --name "田村 保乃" --site keyakizaka46 \\
        --from 2019-01-01 --to 2019-12-31

    # Search archived posts
    python -m blog_archiver.cli search 桜 --title --sort asc --page 2

    # Inspect / delete a post, show storage statistics, prune the image cache
    python -m blog_archiver.cli show 12
    python -m blog_archiver.cli delete 12
    python -m blog_archiver.cli stats
    python -m blog_archiver.cli cleanup-cache

Ctrl-C closes the browser session and the HTTP client before exiting
with status 130.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import date
from typing import Any

from blog_archiver.config.settings import Settings
from blog_archiver.main import build_archiver, shutdown
from blog_archiver.models.blog import Site
from blog_archiver.utils.date_utils import format_date
from blog_archiver.utils.errors import BlogArchiverError
from blog_archiver.utils.logging import configure_logging, get_logger
from blog_archiver.utils.text_formatting import clean_text_preview, format_file_size, strip_html_tags

_EXIT_INTERRUPTED = 130
_DEFAULT_LIMIT = 10


# ---------------------------------------------------------------------------
# Argument types
# ---------------------------------------------------------------------------


def _iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid date {value!r}, expected YYYY-MM-DD") from exc


def _limit(value: str) -> int | None:
    """``all`` means no limit; otherwise a positive integer."""
    if value.lower() == "all":
        return None
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid limit {value!r}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("limit must be positive")
    return parsed


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------


async def _handle_members(args: argparse.Namespace, components: dict[str, Any]) -> int:
    """List members, optionally re-fetching them from the site."""
    directory = components["members"]
    members = await directory.refresh() if args.refresh else await directory.ensure_members()
    archived = {m.id: m for m in await directory.members_from_posts()}

    for member in members:
        line = f"  {member.id:>3}  {member.name}"
        stored = archived.get(member.id)
        if stored is not None:
            line += f"  ({stored.post_count} posts{', keyakizaka46' if stored.has_keyaki else ''})"
        print(line)
    print(f"\n{len(members)} members")
    return 0


async def _handle_scrape(args: argparse.Namespace, components: dict[str, Any]) -> int:
    """Archive one member's posts."""
    member = await components["members"].find_member(member_id=args.member_id, name=args.name)
    if member is None:
        print(f"Error: unknown member {args.member_id or args.name!r}", file=sys.stderr)
        return 1

    has_range = args.date_from is not None or args.date_to is not None
    scope = "date range" if has_range else (f"newest {args.limit}" if args.limit else "all posts")
    print(f"Scraping {member.name} ({args.site}) - {scope}")

    def on_progress(index: int, total: int, title: str) -> None:
        print(f"  [{index}/{total}] {title or 'Untitled'}")

    summary = await components["scrape_service"].scrape_member(
        member,
        site=args.site,
        limit=args.limit,
        date_from=args.date_from,
        date_to=args.date_to,
        download_images=not args.no_images,
        on_progress=on_progress,
    )

    print()
    print(f"Found {summary.posts_found}, saved {summary.posts_saved}, skipped {summary.posts_skipped}")
    if not args.no_images:
        print(f"Images: {summary.images_downloaded} downloaded, {summary.images_failed} failed")
    for error in summary.errors:
        print(f"  ! {error}", file=sys.stderr)
    return 0


async def _handle_search(args: argparse.Namespace, components: dict[str, Any]) -> int:
    """Search archived posts and print one page of results."""
    result = await components["search"].search_page(
        page=args.page,
        per_page=args.per_page,
        keyword=args.keyword,
        title_search=args.title,
        member_id=args.member_id,
        date_from=args.date_from,
        date_to=args.date_to,
        sort_order=args.sort,
    )
    if not result.total:
        print("No posts found.")
        return 0

    for post in result.posts:
        print(f"  #{post.id:<5} {format_date(post.date):<10}  {post.member_name}  {post.title}")
        preview = clean_text_preview(post.content, max_length=80)
        if preview:
            print(f"         {preview}")
    print(f"\nPage {result.page}/{result.total_pages} ({result.total} posts)")
    return 0


async def _handle_show(args: argparse.Namespace, components: dict[str, Any]) -> int:
    post = await components["data_service"].get_post(args.post_id)
    if post is None:
        print(f"Post {args.post_id} not found.", file=sys.stderr)
        return 1

    storage = components["storage"]
    print(f"{post.title}")
    print(f"{post.member_name} / {format_date(post.date)} / {post.site.value}")
    print(post.url)
    print()
    print(strip_html_tags(post.content).strip())
    if post.images:
        print()
        for image in post.images:
            target = storage.get_url(image.local_path) if image.local_path else "(not downloaded)"
            print(f"  {image.url} -> {target}")
    return 0


async def _handle_delete(args: argparse.Namespace, components: dict[str, Any]) -> int:
    deleted = await components["data_service"].delete_post(args.post_id)
    if not deleted:
        print(f"Post {args.post_id} not found.", file=sys.stderr)
        return 1
    print(f"Deleted post {args.post_id}.")
    return 0


async def _handle_stats(args: argparse.Namespace, components: dict[str, Any]) -> int:
    """Print archive and image storage statistics."""
    posts = await components["data_service"].get_all_posts()
    members = await components["members"].members_from_posts()
    stats = components["downloader"].image_stats()

    print(f"Posts:   {len(posts):,} from {len(members)} members")
    print(f"Images:  {stats.total_files:,} files, {stats.formatted_size}")
    print(f"Cache:   {stats.cached_entries:,} entries")
    for folder in stats.folders:
        print(f"  {folder.name:<30} {folder.files:>6} files  {format_file_size(folder.size):>10}")
    return 0


async def _handle_cleanup_cache(args: argparse.Namespace, components: dict[str, Any]) -> int:
    removed = await components["downloader"].cleanup_cache()
    print(f"Removed {removed} stale cache entries.")
    return 0


_HANDLERS = {
    "members": _handle_members,
    "scrape": _handle_scrape,
    "search": _handle_search,
    "show": _handle_show,
    "delete": _handle_delete,
    "stats": _handle_stats,
    "cleanup-cache": _handle_cleanup_cache,
}


async def _run(args: argparse.Namespace, app_settings: Settings) -> int:
    components = await build_archiver(app_settings)
    try:
        return await _HANDLERS[args.command](args, components)
    finally:
        await shutdown(components)


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the archiver CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m blog_archiver.cli",
        description="Archive member blog posts and images for offline browsing.",
    )
    subparsers = parser.add_subparsers(dest="command", help="archiver commands")

    # -- members --
    members_parser = subparsers.add_parser("members", help="List members")
    members_parser.add_argument(
        "--refresh", action="store_true", help="Re-fetch the member list from the site"
    )

    # -- scrape --
    scrape_parser = subparsers.add_parser("scrape", help="Archive a member's blog posts")
    who = scrape_parser.add_mutually_exclusive_group(required=True)
    who.add_argument("--member-id", type=int, help="Member id on the current blog")
    who.add_argument("--name", help="Member name, e.g. '田村 保乃'")
    scrape_parser.add_argument(
        "--site",
        choices=[s.value for s in Site],
        default=Site.SAKURAZAKA.value,
        help="Blog to scrape (default: sakurazaka46)",
    )
    scrape_parser.add_argument(
        "--limit",
        type=_limit,
        default=_DEFAULT_LIMIT,
        help="Newest N posts, or 'all' (default: 10; ignored with --from/--to)",
    )
    scrape_parser.add_argument("--from", dest="date_from", type=_iso_date, help="YYYY-MM-DD")
    scrape_parser.add_argument("--to", dest="date_to", type=_iso_date, help="YYYY-MM-DD")
    scrape_parser.add_argument(
        "--no-images", action="store_true", help="Skip image downloads"
    )

    # -- search --
    search_parser = subparsers.add_parser("search", help="Search archived posts")
    search_parser.add_argument("keyword", nargs="?", default="", help="Keyword (optional)")
    search_parser.add_argument("--title", action="store_true", help="Match titles only")
    search_parser.add_argument("--member-id", type=int, default=None)
    search_parser.add_argument("--from", dest="date_from", type=_iso_date)
    search_parser.add_argument("--to", dest="date_to", type=_iso_date)
    search_parser.add_argument("--sort", choices=["desc", "asc"], default="desc")
    search_parser.add_argument("--page", type=int, default=1)
    search_parser.add_argument("--per-page", type=int, default=20)

    # -- show / delete --
    show_parser = subparsers.add_parser("show", help="Show one archived post")
    show_parser.add_argument("post_id", type=int)
    delete_parser = subparsers.add_parser("delete", help="Delete a post and its images")
    delete_parser.add_argument("post_id", type=int)

    # -- maintenance --
    subparsers.add_parser("stats", help="Show archive and image statistics")
    subparsers.add_parser("cleanup-cache", help="Drop cache entries for missing files")

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> int:
    """CLI entry point.  Returns the process exit code."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    app_settings = Settings()
    configure_logging(
        log_level=app_settings.log_level,
        json_output=(app_settings.app_env == "production"),
    )
    logger = get_logger(__name__)

    try:
        return asyncio.run(_run(args, app_settings))
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return _EXIT_INTERRUPTED
    except BlogArchiverError as exc:
        logger.error("command_failed", command=args.command, error=str(exc), exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except Exception:
        logger.exception("command_crashed", command=args.command)
        print(f"Error: unexpected failure in {args.command!r}, see log for details", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
