"""Date helpers for site-native blog dates.

Both blog layouts publish dates in loosely formatted strings
(``2024.12.25``, ``2024/12/25``, ``2024年12月25日``, occasionally a bare day
number).  Stored posts keep the site-native string; these helpers parse it
only when a comparison or a sort key is needed.
"""

from __future__ import annotations

import re
from datetime import date

_EPOCH = date(1970, 1, 1)

# Year, month and day separated by any of . / - space or the CJK unit
# characters.  Anything after the day (time, weekday) is ignored.
_DATE_RE = re.compile(r"(\d{4})\s*[./\-年 ]\s*(\d{1,2})\s*[./\-月 ]\s*(\d{1,2})")
_FORMAT_RE = re.compile(r"(\d{4})[年\-.](\d{1,2})[月\-.](\d{1,2})日?")
_SLASHED_RE = re.compile(r"\d{4}/\d{1,2}/\d{1,2}")


def _safe_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_blog_date(date_str: str | None) -> date | None:
    """Parse a site-native date string, returning ``None`` when unparseable."""
    if not date_str:
        return None
    match = _DATE_RE.search(date_str)
    if not match:
        return None
    return _safe_date(int(match.group(1)), int(match.group(2)), int(match.group(3)))


def is_date_in_range(
    date_str: str | None,
    date_from: date | None,
    date_to: date | None,
) -> bool:
    """Return ``True`` when *date_str* falls within ``[date_from, date_to]``.

    Both bounds are inclusive and compared at day granularity.  A post
    whose date cannot be parsed is treated as in range so that it is
    never silently dropped.
    """
    post_date = parse_blog_date(date_str)
    if post_date is None:
        return True
    if date_from and post_date < date_from:
        return False
    if date_to and post_date > date_to:
        return False
    return True


def parse_post_date(date_str: str | None, today: date | None = None) -> date:
    """Sort key for stored posts.

    Unparseable values sort as 1970-01-01.  A bare day number (``"25"``)
    is read as that day of the current month, which is how one layout
    renders posts from the current month.
    """
    if not date_str:
        return _EPOCH

    parsed = parse_blog_date(date_str)
    if parsed is not None:
        return parsed

    stripped = date_str.strip()
    if stripped.isdigit():
        day = int(stripped)
        if 1 <= day <= 31:
            ref = today or date.today()
            return _safe_date(ref.year, ref.month, day) or _EPOCH

    return _EPOCH


def format_date(date_str: str | None, today: date | None = None) -> str:
    """Normalise a site-native date to ``YYYY/MM/DD`` for display."""
    if not date_str:
        return ""

    if _SLASHED_RE.search(date_str):
        return date_str

    stripped = date_str.strip()
    if stripped.isdigit():
        day = int(stripped)
        if 1 <= day <= 31:
            ref = today or date.today()
            return f"{ref.year}/{ref.month:02d}/{day:02d}"

    return _FORMAT_RE.sub(r"\1/\2/\3", date_str)
