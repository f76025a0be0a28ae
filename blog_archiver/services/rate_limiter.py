"""Request pacing for the blog sites.

``DelayScheduler.delay(index)`` must be awaited before every outbound page
request.  Every ``burst_limit``-th request takes a long break; every other
request waits a uniformly random gap, minus the time already elapsed
since the previous request.  The scheduler never fails, it only sleeps.

Mutable counters live in an injected :class:`RateLimiterState` so a
scrape run can ``reset()`` them without rebuilding the scheduler.
"""

from __future__ import annotations

import asyncio
import random
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import structlog

logger = structlog.get_logger(logger_name=__name__)


@dataclass
class RateLimiterState:
    """Counters shared by every request in one scrape run."""

    request_count: int = 0
    last_request_time: float = 0.0
    window_start: float = 0.0

    def reset(self) -> None:
        self.request_count = 0
        self.last_request_time = 0.0
        self.window_start = 0.0


class DelayScheduler:
    """Randomised inter-request delay with periodic long breaks.

    Parameters
    ----------
    state:
        Mutable counters; reset at the start of every scrape run.
    min_delay, max_delay:
        Bounds (seconds) of the random gap between requests.
    burst_limit:
        Every request whose index is a positive multiple of this value
        takes ``long_break`` instead of the random gap.
    long_break:
        Pause in seconds after each burst.
    requests_per_minute:
        Optional soft ceiling.  When set, a request that would exceed the
        ceiling within the current 60 s window waits for the window to
        roll over.
    sleep, clock, rng:
        Injectable for tests; default to ``asyncio.sleep``,
        ``time.monotonic`` and ``random.uniform``.
    """

    def __init__(
        self,
        state: RateLimiterState | None = None,
        min_delay: float = 2.0,
        max_delay: float = 4.0,
        burst_limit: int = 10,
        long_break: float = 5.0,
        requests_per_minute: int | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
        rng: Callable[[float, float], float] = random.uniform,
    ) -> None:
        self._state = state or RateLimiterState()
        self._min_delay = min_delay
        self._max_delay = max(min_delay, max_delay)
        self._burst_limit = burst_limit
        self._long_break = long_break
        self._requests_per_minute = requests_per_minute
        self._sleep = sleep
        self._clock = clock
        self._rng = rng

    @property
    def state(self) -> RateLimiterState:
        return self._state

    def reset(self) -> None:
        self._state.reset()

    async def delay(self, request_index: int) -> float:
        """Wait before request number *request_index*.

        Returns
        -------
        float
            Seconds slept.
        """
        state = self._state
        now = self._clock()
        if state.window_start == 0.0:
            state.window_start = now

        if request_index > 0 and self._burst_limit > 0 and request_index % self._burst_limit == 0:
            wait = self._long_break
            logger.debug("rate_limit_long_break", request_index=request_index, wait_s=wait)
        else:
            target_gap = self._rng(self._min_delay, self._max_delay)
            elapsed = now - state.last_request_time if state.last_request_time else target_gap
            wait = max(0.0, target_gap - elapsed)

        wait = max(wait, self._ceiling_wait(now))
        if wait > 0:
            await self._sleep(wait)

        state.request_count += 1
        state.last_request_time = self._clock()
        return wait

    def _ceiling_wait(self, now: float) -> float:
        if not self._requests_per_minute:
            return 0.0
        state = self._state
        if now - state.window_start >= 60.0:
            state.window_start = now
            state.request_count = 0
            return 0.0
        if state.request_count < self._requests_per_minute:
            return 0.0
        wait = 60.0 - (now - state.window_start)
        state.window_start = now + wait
        state.request_count = 0
        logger.debug("rate_limit_ceiling", wait_s=wait)
        return wait
