"""HTML and text cleanup helpers for stored blog content."""

from __future__ import annotations

import html
import re

_SCRIPT_RE = re.compile(r"<script[^>]*>.*?</script>", re.IGNORECASE | re.DOTALL)
_STYLE_RE = re.compile(r"<style[^>]*>.*?</style>", re.IGNORECASE | re.DOTALL)
_TAG_RE = re.compile(r"<[^>]*>")
_WHITESPACE_RE = re.compile(r"\s+")


def clean_html_content(fragment: str | None) -> str:
    """Remove ``<script>`` and ``<style>`` blocks from an HTML fragment."""
    if not fragment:
        return ""
    cleaned = _SCRIPT_RE.sub("", fragment)
    cleaned = _STYLE_RE.sub("", cleaned)
    return cleaned.strip()


def strip_html_tags(fragment: str | None) -> str:
    if not fragment:
        return ""
    return _TAG_RE.sub("", fragment)


def clean_text_preview(fragment: str | None, max_length: int = 150) -> str:
    """Plain-text preview of an HTML fragment.

    Strips tags, decodes entities, collapses whitespace and truncates to
    *max_length* characters with a trailing ``...``.
    """
    if not fragment:
        return ""
    text = html.unescape(strip_html_tags(fragment)).replace("\xa0", " ")
    text = _WHITESPACE_RE.sub(" ", text).strip()
    if len(text) > max_length:
        return text[:max_length] + "..."
    return text


def format_file_size(num_bytes: int) -> str:
    """Human-readable size, e.g. ``1.50 MB``."""
    if num_bytes <= 0:
        return "0 B"
    units = ["B", "KB", "MB", "GB", "TB"]
    size = float(num_bytes)
    unit = 0
    while size >= 1024 and unit < len(units) - 1:
        size /= 1024
        unit += 1
    return f"{size:.2f} {units[unit]}"
