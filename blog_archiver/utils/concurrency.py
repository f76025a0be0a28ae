"""Bounded-concurrency helper for image download batches.

``gather_in_windows`` processes a list in fixed-size windows: every item in
a window runs concurrently, windows run one after another, and an optional
callback fires after each window completes.  Results keep the input order
even though execution inside a window is concurrent.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Sequence, TypeVar

_T = TypeVar("_T")
_R = TypeVar("_R")


async def gather_in_windows(
    items: Sequence[_T],
    worker: Callable[[_T], Awaitable[_R]],
    window_size: int,
    on_window_done: Callable[[int, int], None] | None = None,
) -> list[_R]:
    """Apply *worker* to *items* in sequential windows of *window_size*.

    The worker is expected to handle its own failures.  An exception it
    raises propagates immediately; the other tasks of that window keep
    running and later windows are not started.

    Parameters
    ----------
    items:
        Inputs, processed in order.
    worker:
        Async callable applied to each item.
    window_size:
        Number of items run concurrently per window (minimum 1).
    on_window_done:
        Called as ``(completed, total)`` after every window.

    Returns
    -------
    list
        One result per input item, in input order.
    """
    size = max(1, window_size)
    total = len(items)
    results: list[_R] = []

    for start in range(0, total, size):
        window = items[start:start + size]
        results.extend(await asyncio.gather(*(worker(item) for item in window)))
        if on_window_done:
            on_window_done(min(start + size, total), total)

    return results
