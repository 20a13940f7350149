"""Fixed-window rate limiter — per-caller request budget for the pipeline.

Each caller key gets a counter that lives for ``window_seconds``. The first
request of a window creates the entry; later requests increment it and are
rejected once the count passes the limit. There is no smoothing across
window boundaries, so a burst of up to ``2 * limit`` is possible around a
window edge.

State is process-local: the limiter rate-limits one running instance only.
The key→entry mapping sits behind ``InMemoryRateLimitStore`` so a shared
store can replace it without touching the algorithm. Read-modify-write is
serialized by the store's asyncio.Lock.

Usage:
    limiter = FixedWindowRateLimiter()
    limiter.start_sweeper()  # inside a running event loop

    result = await limiter.check("optimize:203.0.113.7", limit=20, window_seconds=60)
    if not result.allowed:
        ...  # reject, retry after result.reset_in_seconds
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL = 60.0


@dataclass
class RateLimitEntry:
    """Counter for a single caller key within its current window."""

    count: int
    reset_time: float  # clock value at which the window expires


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of a single ``check`` call."""

    allowed: bool
    limit: int
    remaining: int
    reset_in_seconds: int

    def headers(self) -> dict[str, str]:
        """Standard X-RateLimit-* response headers."""
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset_in_seconds),
        }


class InMemoryRateLimitStore:
    """Process-local key→entry mapping. At most one entry per key."""

    def __init__(self) -> None:
        self._entries: dict[str, RateLimitEntry] = {}
        self.lock = asyncio.Lock()

    def get(self, key: str) -> RateLimitEntry | None:
        return self._entries.get(key)

    def set(self, key: str, entry: RateLimitEntry) -> None:
        self._entries[key] = entry

    def delete_expired(self, now: float) -> int:
        """Drop entries whose window has already ended. Returns how many were removed."""
        expired = [key for key, entry in self._entries.items() if now >= entry.reset_time]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)


class FixedWindowRateLimiter:
    """Fixed-window counter keyed by caller identity."""

    def __init__(
        self,
        store: InMemoryRateLimitStore | None = None,
        clock: Callable[[], float] = time.monotonic,
        sweep_interval: float = DEFAULT_SWEEP_INTERVAL,
    ):
        self.store = store or InMemoryRateLimitStore()
        self._clock = clock
        self.sweep_interval = sweep_interval
        self._sweeper: asyncio.Task | None = None

    async def check(self, key: str, limit: int, window_seconds: int) -> RateLimitResult:
        """Count one request for ``key`` and decide whether it may proceed."""
        async with self.store.lock:
            now = self._clock()
            entry = self.store.get(key)

            if entry is None or now >= entry.reset_time:
                self.store.set(key, RateLimitEntry(count=1, reset_time=now + window_seconds))
                return RateLimitResult(
                    allowed=True,
                    limit=limit,
                    remaining=limit - 1,
                    reset_in_seconds=window_seconds,
                )

            entry.count += 1
            reset_in_seconds = math.ceil(entry.reset_time - now)

            if entry.count > limit:
                logger.debug("Rate limit exceeded for %s (%d/%d)", key, entry.count, limit)
                return RateLimitResult(
                    allowed=False,
                    limit=limit,
                    remaining=0,
                    reset_in_seconds=reset_in_seconds,
                )

            return RateLimitResult(
                allowed=True,
                limit=limit,
                remaining=limit - entry.count,
                reset_in_seconds=reset_in_seconds,
            )

    async def sweep(self) -> int:
        """Remove expired entries to bound memory."""
        async with self.store.lock:
            removed = self.store.delete_expired(self._clock())
        if removed:
            logger.debug("Rate limiter sweep removed %d expired entries", removed)
        return removed

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval)
            try:
                await self.sweep()
            except Exception:
                logger.exception("Rate limiter sweep failed")

    def start_sweeper(self) -> None:
        """Start the periodic sweep on the running event loop (idempotent)."""
        if self._sweeper is not None and not self._sweeper.done():
            return
        self._sweeper = asyncio.get_running_loop().create_task(self._sweep_loop())
        logger.info("Rate limiter sweeper started (interval=%.0fs)", self.sweep_interval)

    async def stop_sweeper(self) -> None:
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        try:
            await self._sweeper
        except asyncio.CancelledError:
            pass
        self._sweeper = None

    @property
    def sweeper_running(self) -> bool:
        return self._sweeper is not None and not self._sweeper.done()

    def get_stats(self) -> dict:
        return {
            "tracked_keys": len(self.store),
            "sweep_interval_seconds": self.sweep_interval,
            "sweeper_running": self.sweeper_running,
        }
