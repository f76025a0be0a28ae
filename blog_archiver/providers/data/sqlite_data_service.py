"""SQLite-backed post archive.

Persists members, blog posts and their images to a local SQLite database
using ``aiosqlite``.  Each public method opens its own connection and
commits before returning, so every call is atomic on its own and no
transaction spans calls.

Image rows are read back through a LEFT JOIN and grouped in Python into
ordered ``StoredImage`` lists; row id order is the order the images were
discovered in the post body.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from blog_archiver.interfaces.data_service import IDataService
from blog_archiver.interfaces.storage_adapter import IStorageAdapter
from blog_archiver.models.blog import Member, ScrapedPost, Site, StoredImage, StoredPost
from blog_archiver.utils.errors import BlogArchiverError, PostNotFoundError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/blog_archive.db")

_CREATE_MEMBERS_TABLE = """\
CREATE TABLE IF NOT EXISTS members (
    id        INTEGER PRIMARY KEY,
    name      TEXT NOT NULL,
    blog_url  TEXT
);
"""

_CREATE_POSTS_TABLE = """\
CREATE TABLE IF NOT EXISTS blog_posts (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    member_id    INTEGER,
    member_name  TEXT NOT NULL DEFAULT '',
    url          TEXT NOT NULL UNIQUE,
    title        TEXT NOT NULL DEFAULT '',
    date         TEXT NOT NULL DEFAULT '',
    content      TEXT NOT NULL DEFAULT '',
    site         TEXT NOT NULL DEFAULT 'sakurazaka46',
    created_at   TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
"""

_CREATE_IMAGES_TABLE = """\
CREATE TABLE IF NOT EXISTS blog_images (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    post_id     INTEGER NOT NULL,
    image_url   TEXT NOT NULL,
    local_path  TEXT
);
"""

_CREATE_INDICES = [
    "CREATE INDEX IF NOT EXISTS idx_posts_member ON blog_posts(member_id);",
    "CREATE INDEX IF NOT EXISTS idx_posts_date ON blog_posts(date);",
    "CREATE INDEX IF NOT EXISTS idx_images_post ON blog_images(post_id);",
]

_UPSERT_MEMBER = """\
INSERT INTO members (id, name, blog_url) VALUES (?, ?, ?)
ON CONFLICT(id) DO UPDATE SET name = excluded.name, blog_url = excluded.blog_url;
"""

_UPSERT_POST = """\
INSERT INTO blog_posts (member_id, member_name, url, title, date, content, site)
VALUES (?, ?, ?, ?, ?, ?, ?)
ON CONFLICT(url) DO UPDATE SET member_id   = excluded.member_id,
                               member_name = excluded.member_name,
                               title       = excluded.title,
                               date        = excluded.date,
                               content     = excluded.content,
                               site        = excluded.site;
"""

_INSERT_IMAGE = "INSERT INTO blog_images (post_id, image_url, local_path) VALUES (?, ?, ?);"

_SELECT_POSTS_WITH_IMAGES = """\
SELECT p.id, p.member_id, p.member_name, p.url, p.title, p.date, p.content,
       p.site, p.created_at, i.image_url, i.local_path
FROM blog_posts p
LEFT JOIN blog_images i ON i.post_id = p.id
"""

_ORDER_NEWEST_FIRST = " ORDER BY p.date DESC, p.id DESC, i.id ASC"

_SELECT_MEMBERS_FROM_POSTS = """\
SELECT p.member_id AS id,
       MAX(p.member_name) AS name,
       MAX(m.blog_url) AS blog_url,
       COUNT(*) AS post_count,
       MAX(CASE WHEN p.site = 'keyakizaka46' THEN 1 ELSE 0 END) AS has_keyaki
FROM blog_posts p
LEFT JOIN members m ON m.id = p.member_id
WHERE p.member_id IS NOT NULL
GROUP BY p.member_id
ORDER BY p.member_id;
"""


def _escape_like(keyword: str) -> str:
    return keyword.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _group_rows(rows: Iterable[aiosqlite.Row]) -> list[StoredPost]:
    """Fold joined post/image rows into posts, preserving row order."""
    posts: dict[int, dict[str, Any]] = {}
    for row in rows:
        post_id = row["id"]
        if post_id not in posts:
            posts[post_id] = {
                "id": post_id,
                "member_id": row["member_id"],
                "member_name": row["member_name"] or "",
                "url": row["url"],
                "title": row["title"] or "",
                "date": row["date"] or "",
                "content": row["content"] or "",
                "site": row["site"] or Site.SAKURAZAKA.value,
                "created_at": row["created_at"],
                "images": [],
            }
        # LEFT JOIN yields one NULL image row for posts without images.
        if row["image_url"]:
            posts[post_id]["images"].append(
                StoredImage(url=row["image_url"], local_path=row["local_path"] or None)
            )
    return [StoredPost.model_validate(data) for data in posts.values()]


class SQLiteDataService(IDataService):
    """Post archive persisted in a single SQLite file.

    Parameters
    ----------
    db_path:
        SQLite database file; parent directories are created on
        :meth:`initialize`.
    storage:
        Storage adapter used to unlink image files when a post is deleted.
        When ``None`` only database rows are removed.
    """

    def __init__(
        self,
        db_path: str | Path = _DEFAULT_DB_PATH,
        storage: IStorageAdapter | None = None,
    ) -> None:
        self._db_path = Path(db_path)
        self._storage = storage

    async def initialize(self) -> None:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute("PRAGMA journal_mode=WAL")
            await db.execute(_CREATE_MEMBERS_TABLE)
            await db.execute(_CREATE_POSTS_TABLE)
            await db.execute(_CREATE_IMAGES_TABLE)
            for idx_sql in _CREATE_INDICES:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("archive_db_initialized", path=str(self._db_path))

    # ------------------------------------------------------------------
    # Members
    # ------------------------------------------------------------------

    async def save_member(self, member: Member) -> None:
        await self.save_members([member])

    async def save_members(self, members: Sequence[Member]) -> int:
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.executemany(
                _UPSERT_MEMBER,
                [(m.id, m.name, m.blog_url or None) for m in members],
            )
            await db.commit()
        logger.info("members_saved", count=len(members))
        return len(members)

    async def get_members(self) -> list[Member]:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute("SELECT id, name, blog_url FROM members ORDER BY id")
            rows = await cursor.fetchall()
        return [Member(id=r["id"], name=r["name"], blog_url=r["blog_url"] or "") for r in rows]

    async def get_members_from_posts(self) -> list[Member]:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(_SELECT_MEMBERS_FROM_POSTS)
            rows = await cursor.fetchall()
        return [
            Member(
                id=r["id"],
                name=r["name"] or "",
                blog_url=r["blog_url"] or "",
                post_count=r["post_count"],
                has_keyaki=bool(r["has_keyaki"]),
            )
            for r in rows
        ]

    # ------------------------------------------------------------------
    # Posts
    # ------------------------------------------------------------------

    async def upsert_post(self, post: ScrapedPost) -> int:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            await db.execute(
                _UPSERT_POST,
                (
                    post.member_id,
                    post.member_name,
                    post.url,
                    post.title,
                    post.date,
                    post.content,
                    Site(post.site).value,
                ),
            )
            cursor = await db.execute("SELECT id FROM blog_posts WHERE url = ?", (post.url,))
            row = await cursor.fetchone()
            post_id = row["id"]

            cursor = await db.execute(
                "SELECT image_url, local_path FROM blog_images WHERE post_id = ? ORDER BY id",
                (post_id,),
            )
            known_paths: dict[str, str] = {}
            for image_row in await cursor.fetchall():
                if image_row["local_path"]:
                    known_paths.setdefault(image_row["image_url"], image_row["local_path"])

            await db.execute("DELETE FROM blog_images WHERE post_id = ?", (post_id,))
            await db.executemany(
                _INSERT_IMAGE,
                [(post_id, url, known_paths.get(url)) for url in post.images],
            )
            await db.commit()

        logger.debug("post_upserted", post_id=post_id, url=post.url, images=len(post.images))
        return post_id

    async def update_post_image_local_paths(
        self,
        url: str,
        local_paths: Sequence[str | None],
    ) -> None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute("SELECT id FROM blog_posts WHERE url = ?", (url,))
            row = await cursor.fetchone()
            if row is None:
                raise PostNotFoundError(
                    message=f"No post with url {url}",
                    provider_name=self.get_provider_name(),
                )

            cursor = await db.execute(
                "SELECT id FROM blog_images WHERE post_id = ? ORDER BY id",
                (row["id"],),
            )
            image_ids = [r["id"] for r in await cursor.fetchall()]
            updates = [
                (local_paths[index] if index < len(local_paths) else None, image_id)
                for index, image_id in enumerate(image_ids)
            ]
            await db.executemany("UPDATE blog_images SET local_path = ? WHERE id = ?", updates)
            await db.commit()

        logger.debug(
            "post_image_paths_updated",
            url=url,
            rows=len(image_ids),
            filled=sum(1 for path, _ in updates if path),
        )

    async def get_posts(
        self,
        member_id: int | None = None,
        limit: int | None = None,
    ) -> list[StoredPost]:
        sql = _SELECT_POSTS_WITH_IMAGES
        params: tuple[Any, ...] = ()
        if member_id is not None:
            sql += " WHERE p.member_id = ?"
            params = (member_id,)
        posts = await self._fetch_posts(sql + _ORDER_NEWEST_FIRST, params)
        # LIMIT applies to posts, not joined rows, so slice after grouping.
        return posts[:limit] if limit is not None else posts

    async def get_all_posts(self) -> list[StoredPost]:
        return await self._fetch_posts(_SELECT_POSTS_WITH_IMAGES + _ORDER_NEWEST_FIRST)

    async def search_posts(self, keyword: str) -> list[StoredPost]:
        pattern = f"%{_escape_like(keyword)}%"
        sql = (
            _SELECT_POSTS_WITH_IMAGES
            + " WHERE p.title LIKE ? ESCAPE '\\' OR p.content LIKE ? ESCAPE '\\'"
            + _ORDER_NEWEST_FIRST
        )
        return await self._fetch_posts(sql, (pattern, pattern))

    async def get_post(self, post_id: int) -> StoredPost | None:
        posts = await self._fetch_posts(
            _SELECT_POSTS_WITH_IMAGES + " WHERE p.id = ? ORDER BY i.id ASC",
            (post_id,),
        )
        return posts[0] if posts else None

    async def get_post_images(self, post_id: int) -> list[StoredImage]:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT image_url, local_path FROM blog_images WHERE post_id = ? ORDER BY id",
                (post_id,),
            )
            rows = await cursor.fetchall()
        return [StoredImage(url=r["image_url"], local_path=r["local_path"]) for r in rows]

    async def delete_post(self, post_id: int) -> int:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT local_path FROM blog_images WHERE post_id = ? AND local_path IS NOT NULL",
                (post_id,),
            )
            local_paths = [r["local_path"] for r in await cursor.fetchall()]

            await db.execute("DELETE FROM blog_images WHERE post_id = ?", (post_id,))
            for local_path in local_paths:
                await self._unlink_image(local_path)

            cursor = await db.execute("DELETE FROM blog_posts WHERE id = ?", (post_id,))
            deleted = cursor.rowcount
            await db.commit()

        logger.info("post_deleted", post_id=post_id, deleted=deleted, images=len(local_paths))
        return deleted

    def get_provider_name(self) -> str:
        return "sqlite"

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _fetch_posts(self, sql: str, params: tuple[Any, ...] = ()) -> list[StoredPost]:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(sql, params)
            rows = await cursor.fetchall()
        return _group_rows(rows)

    async def _unlink_image(self, local_path: str) -> None:
        if self._storage is None:
            return
        try:
            await self._storage.delete(local_path)
        except (OSError, BlogArchiverError) as exc:
            logger.warning("post_image_unlink_failed", path=local_path, error=str(exc))
