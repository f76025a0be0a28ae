"""Configuration module -- exports Settings and the site layout constants."""

from blog_archiver.config.settings import Settings
from blog_archiver.config.site_layouts import (
    IMAGE_EXCLUDE_PATTERNS,
    KEYAKIZAKA,
    SAKURAZAKA,
    SiteLayout,
    get_layout,
)

__all__ = [
    "IMAGE_EXCLUDE_PATTERNS",
    "KEYAKIZAKA",
    "SAKURAZAKA",
    "Settings",
    "SiteLayout",
    "get_layout",
]
