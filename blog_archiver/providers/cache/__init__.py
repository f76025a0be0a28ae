"""Image cache providers.

JsonImageCache keeps the download index in memory and mirrors it to a
single JSON file, so repeated runs skip images already on disk.
"""

from blog_archiver.providers.cache.json_image_cache import JsonImageCache

__all__ = ["JsonImageCache"]
