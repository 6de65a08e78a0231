# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Token Bucket Limiter

Single responsibility: Cap the rate of upstream calls shared by all tasks
"""

import asyncio
import time


class TokenBucketLimiter:
    """
    Token bucket shared by every task that talks to an upstream service.

    The bucket starts full. Each acquire() reserves one token immediately and
    then sleeps until the reservation is due, so waiting tasks are served in
    arrival order and a cancelled wait hands its token back.
    """

    def __init__(self, rate: float, burst: int):
        """
        Initialize limiter.

        Args:
            rate: Tokens added per second
            burst: Bucket capacity
        """
        if rate <= 0:
            raise ValueError(f"rate must be positive, got {rate}")
        if burst < 1:
            raise ValueError(f"burst must be at least 1, got {burst}")
        self.rate = rate
        self.burst = burst
        self._tokens = float(burst)
        self._updated = time.monotonic()

    def _reserve(self) -> float:
        """Take one token and return how long to wait before using it."""
        # No await between reading and updating the bucket.
        now = time.monotonic()
        self._tokens = min(float(self.burst), self._tokens + (now - self._updated) * self.rate)
        self._updated = now
        self._tokens -= 1
        if self._tokens >= 0:
            return 0.0
        return -self._tokens / self.rate

    async def acquire(self):
        """
        Wait until one token is available.

        Raises:
            asyncio.CancelledError: If the waiting task is cancelled
        """
        delay = self._reserve()
        if delay <= 0:
            return
        try:
            await asyncio.sleep(delay)
        except asyncio.CancelledError:
            self._tokens += 1
            raise
