"""Per-provider sliding window rate limiting"""

import asyncio
import time
from collections import defaultdict, deque
from typing import Dict, Tuple
import logging


class RateLimiter:
    """
    Sliding window limiter keyed by provider id.

    Each provider is allowed `requests` calls within any `window_seconds` span. Callers
    await acquire() before sending; it sleeps until the oldest call in the window ages out.
    """

    def __init__(self, clock=time.monotonic):
        self.clock = clock

        # Timestamps of recent requests per provider
        self.request_windows: Dict[str, deque] = defaultdict(deque)

        # provider_id -> (requests, window_seconds)
        self.limits: Dict[str, Tuple[int, float]] = {}

        self.locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

        self.stats = {
            "requests_made": defaultdict(int),
            "requests_blocked": defaultdict(int),
            "total_wait_time": defaultdict(float)
        }

        self.logger = logging.getLogger(__name__)

    def register_provider(self, provider_id: str, requests: int, window_seconds: float = 60.0):
        """
        Register a provider's limit

        Args:
            provider_id: Provider identifier
            requests: Requests allowed per window
            window_seconds: Window length in seconds
        """
        if requests < 1 or window_seconds <= 0:
            raise ValueError(f"invalid rate limit for {provider_id}: {requests}/{window_seconds}s")

        self.limits[provider_id] = (requests, window_seconds)
        self.logger.info(f"Registered {provider_id} with rate limit {requests}/{window_seconds:g}s")

    async def acquire(self, provider_id: str) -> float:
        """
        Wait until a request to provider_id is allowed

        Returns:
            Seconds spent waiting (0 if no wait was needed)
        """
        if provider_id not in self.limits:
            return 0.0

        async with self.locks[provider_id]:
            wait_time = self.calculate_wait_time(provider_id)

            if wait_time > 0:
                self.stats["requests_blocked"][provider_id] += 1
                self.stats["total_wait_time"][provider_id] += wait_time
                self.logger.debug(f"Rate limiting {provider_id}: waiting {wait_time:.2f}s")
                await asyncio.sleep(wait_time)

            self.request_windows[provider_id].append(self.clock())
            self.stats["requests_made"][provider_id] += 1

            return wait_time

    def calculate_wait_time(self, provider_id: str) -> float:
        """Seconds until the next request to provider_id fits in its window"""
        current_time = self.clock()
        requests, window_seconds = self.limits[provider_id]
        window = self.request_windows[provider_id]

        cutoff_time = current_time - window_seconds
        while window and window[0] <= cutoff_time:
            window.popleft()

        if len(window) < requests:
            return 0.0

        return max(0.0, window_seconds - (current_time - window[0]))

    def get_stats(self) -> Dict:
        """Per-provider counters plus block rate and average wait"""
        stats = {}
        for provider_id in self.limits:
            made = self.stats["requests_made"][provider_id]
            blocked = self.stats["requests_blocked"][provider_id]
            total_wait = self.stats["total_wait_time"][provider_id]

            stats[provider_id] = {
                "requests_made": made,
                "requests_blocked": blocked,
                "block_rate": blocked / max(1, made) * 100,
                "avg_wait": total_wait / max(1, blocked)
            }

        return stats
