"""Application settings loaded from environment variables via pydantic-settings.

Settings are read from two sources, in priority order:

  1. **Environment variables** -- e.g. ``STORAGE_TYPE=s3`` (always wins).
  2. **.env file** -- ``key=value`` lines in the project root (local dev).

Field ``storage_type`` maps to env var ``STORAGE_TYPE`` and so on.  Backend
choices (storage, data service, page fetcher) are made explicitly here and
resolved by the factories in ``blog_archiver.main``.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Blog archiver settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # === Storage ===
    # Every local_path persisted in the database is relative to storage_base_dir.
    storage_type: str = "local"  # "local" | "s3"
    storage_base_dir: str = "."
    images_dir: str = "images"
    s3_bucket: str = ""
    s3_region: str = "ap-northeast-1"
    s3_base_url: str = ""  # CloudFront or similar; empty = bucket URL

    # === Persistence ===
    data_service: str = "sqlite"
    database_path: str = "data/blog_archive.db"
    image_cache_file: str = "data/image_cache.json"

    # === Page fetching ===
    page_fetcher: str = "playwright"  # "playwright" | "httpx"
    headless: bool = True
    page_timeout: float = 30.0
    page_settle_delay: float = 1.5
    max_pages: int = 100

    # === Rate limiting (seconds) ===
    rate_min_delay: float = 2.0
    rate_max_delay: float = 4.0
    rate_burst_limit: int = 10
    rate_long_break: float = 5.0
    rate_requests_per_minute: int | None = None

    # === Image downloads ===
    image_timeout: float = 10.0
    download_retries: int = 3
    download_retry_delay: float = 1.0
    download_concurrency: int = 3

    # === App Config ===
    app_env: str = "development"
    log_level: str = "INFO"
