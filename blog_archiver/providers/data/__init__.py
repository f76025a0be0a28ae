"""Post archive providers.

SQLiteDataService stores members, posts and post images in one SQLite
file (data/blog_archive.db by default).
"""

from blog_archiver.providers.data.sqlite_data_service import SQLiteDataService

__all__ = ["SQLiteDataService"]
