"""
In-memory sliding window rate limiter guarding scan admission.

State lives in this process only. Running more than one instance behind a
load balancer multiplies the effective quota; that deployment needs a
shared counter instead.
"""

import asyncio
import logging
import math
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of one admission check."""
    allowed: bool
    limit: int
    remaining: Optional[int] = None
    retry_after: Optional[int] = None


class RateLimiter:
    """
    Sliding window rate limiter keyed by client identity.

    Each identity maps to the timestamps of its admitted requests inside the
    trailing window. Stale timestamps are purged on every check for that
    identity, and a background sweep drops identities with nothing left so
    memory stays bounded.
    """

    def __init__(
        self,
        max_requests: int = 10,
        window_seconds: float = 60.0,
        sweep_interval_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize rate limiter.

        Args:
            max_requests: Maximum requests allowed per identity in the window
            window_seconds: Length of the trailing window in seconds
            sweep_interval_seconds: Interval between background sweeps
            clock: Monotonic time source (injectable for tests)
        """
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")

        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.sweep_interval_seconds = sweep_interval_seconds
        self._clock = clock
        self._windows: Dict[str, List[float]] = {}
        self._lock = asyncio.Lock()
        self._sweep_task: Optional[asyncio.Task] = None

    def _recent(self, timestamps: List[float], now: float) -> List[float]:
        return [ts for ts in timestamps if now - ts < self.window_seconds]

    async def check_rate_limit(self, identity: str) -> RateLimitDecision:
        """
        Check whether ``identity`` may start another request, recording it if so.

        Args:
            identity: Client identity (e.g. ``ip:203.0.113.7``)

        Returns:
            RateLimitDecision with ``remaining`` when allowed or
            ``retry_after`` (seconds) when rejected
        """
        async with self._lock:
            now = self._clock()
            recent = self._recent(self._windows.get(identity, []), now)

            if len(recent) >= self.max_requests:
                self._windows[identity] = recent
                retry_after = math.ceil(recent[0] + self.window_seconds - now)
                retry_after = max(1, retry_after)
                logger.warning(
                    f"Rate limit exceeded for {identity}: {len(recent)} requests "
                    f"in {self.window_seconds}s, retry after {retry_after}s"
                )
                return RateLimitDecision(
                    allowed=False,
                    limit=self.max_requests,
                    retry_after=retry_after,
                )

            recent.append(now)
            self._windows[identity] = recent
            return RateLimitDecision(
                allowed=True,
                limit=self.max_requests,
                remaining=self.max_requests - len(recent),
            )

    async def sweep(self) -> int:
        """
        Purge stale timestamps and drop identities with none left.

        Returns:
            Number of identities removed
        """
        async with self._lock:
            now = self._clock()
            removed = 0
            for identity in list(self._windows):
                recent = self._recent(self._windows[identity], now)
                if recent:
                    self._windows[identity] = recent
                else:
                    del self._windows[identity]
                    removed += 1

        if removed:
            logger.debug(f"Rate limiter sweep removed {removed} idle identities")
        return removed

    @property
    def tracked_identities(self) -> int:
        return len(self._windows)

    async def _sweep_loop(self):
        """Background task that sweeps stale identities periodically."""
        while True:
            await asyncio.sleep(self.sweep_interval_seconds)
            try:
                await self.sweep()
            except Exception as e:
                logger.error(f"Rate limiter sweep error: {e}")

    def start(self):
        """Start the background sweep task on the running loop."""
        if self._sweep_task is None or self._sweep_task.done():
            self._sweep_task = asyncio.create_task(self._sweep_loop())
            logger.info(
                f"Rate limiter started: {self.max_requests} requests per "
                f"{self.window_seconds}s, sweep every {self.sweep_interval_seconds}s"
            )

    async def stop(self):
        """Cancel the background sweep task."""
        if self._sweep_task:
            self._sweep_task.cancel()
            try:
                await self._sweep_task
            except asyncio.CancelledError:
                pass
            self._sweep_task = None
