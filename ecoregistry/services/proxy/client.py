# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Fetch Client

Single responsibility: Issue every upstream request under one shared rate
limit, with optional persistent caching of outcomes

Every request carries the Disable-Module-Fetch header (so the proxy never
fetches uncached modules on our behalf) and a fixed User-Agent. Requests are
never retried here; retry policy belongs to the caller.
"""

import logging
import os
import tempfile
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import httpx

from ecoregistry.core.config import Config
from ecoregistry.core.errors import TransportError, UpstreamStatusError
from .cache import ResponseCache
from .limiter import TokenBucketLimiter

logger = logging.getLogger(__name__)

DEFAULT_BURST = 10
DEFAULT_CACHE_TTL = 24 * 60 * 60


@dataclass(frozen=True)
class FetchClientConfig:
    """Fetch client settings, constructed once and passed to the client"""
    qps: float = 50.0
    burst: int = DEFAULT_BURST
    user_agent: str = "ecoregistry"
    timeout: float = 60.0
    cache_enabled: bool = False
    cache_dir: str = os.path.join(tempfile.gettempdir(), "goproxy-cache")
    cache_ttl: float = DEFAULT_CACHE_TTL
    debug: bool = False

    @classmethod
    def from_config(cls, config: Config) -> "FetchClientConfig":
        """Build client settings from the application config (ingest rate)."""
        return cls(
            qps=config.ingest_qps,
            burst=config.burst,
            user_agent=config.user_agent,
            timeout=config.http_timeout,
            cache_enabled=config.cache_enabled,
            cache_dir=config.cache_dir,
            cache_ttl=config.cache_ttl_hours * 60 * 60,
            debug=config.debug_requests,
        )


class FetchClient:
    """
    Rate-limited, optionally caching HTTP fetcher shared by all components.

    Features:
    - One token bucket for all calls, replaceable at runtime with set_rate()
    - Cache of successes and non-2xx outcomes (never transport failures)
    - Aggregate call rate for progress reports
    """

    def __init__(
        self,
        config: Optional[FetchClientConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize fetch client.

        Args:
            config: Client configuration
            transport: Optional httpx transport (tests pass httpx.MockTransport)
        """
        self.config = config or FetchClientConfig()
        self._lock = threading.Lock()
        self._limiter = TokenBucketLimiter(self.config.qps, self.config.burst)
        self._ncalls = 0
        self._start: Optional[float] = None
        self.cache: Optional[ResponseCache] = None
        if self.config.cache_enabled:
            self.cache = ResponseCache(Path(self.config.cache_dir), self.config.cache_ttl)
        self._client = httpx.AsyncClient(
            timeout=self.config.timeout,
            transport=transport,
            follow_redirects=True,
            headers={
                # Prevents the proxy from fetching uncached modules.
                "Disable-Module-Fetch": "true",
                "User-Agent": self.config.user_agent,
            },
        )

        logger.info(
            f"Fetch client initialized - qps={self.config.qps}, burst={self.config.burst}, "
            f"cache={'on' if self.cache else 'off'}"
        )

    async def __aenter__(self) -> "FetchClient":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()

    async def aclose(self):
        """Close the underlying HTTP connection pool."""
        await self._client.aclose()

    # -- Rate control --

    @property
    def rate(self) -> float:
        with self._lock:
            return self._limiter.rate

    def set_rate(self, qps: float):
        """
        Replace the limiter. Affects every subsequent call.

        Args:
            qps: Maximum calls per second
        """
        limiter = TokenBucketLimiter(qps, self.config.burst)
        with self._lock:
            self._limiter = limiter
        logger.info(f"Fetch rate set to {qps} qps")

    def qps(self) -> float:
        """Calls made per second since the limiter was first used."""
        with self._lock:
            start = self._start
            ncalls = self._ncalls
        if start is None:
            return 0.0
        elapsed = time.monotonic() - start
        if elapsed <= 0:
            return 0.0
        return ncalls / elapsed

    def reset_qps(self):
        """Restart the call-rate measurement."""
        with self._lock:
            self._ncalls = 0
            self._start = None

    # -- Fetching --

    async def fetch(self, url: str) -> bytes:
        """
        Fetch a URL under the shared rate limit.

        Args:
            url: URL to GET

        Returns:
            Response body

        Raises:
            UpstreamStatusError: On a non-2xx response
            TransportError: On connection-level failure
            asyncio.CancelledError: If cancelled while waiting for a token
        """
        with self._lock:
            limiter = self._limiter
            if self._start is None:
                self._start = time.monotonic()
        await limiter.acquire()

        if self.config.debug:
            logger.debug(f"GET {url}")
        with self._lock:
            self._ncalls += 1
        try:
            response = await self._client.get(url)
        except httpx.RequestError as e:
            raise TransportError(f"GET {url}: {e}", url=url) from e

        if not response.is_success:
            raise UpstreamStatusError(response.status_code, url=url)
        return response.content

    async def fetch_cached(self, url: str) -> bytes:
        """
        Fetch a URL, consulting the response cache first when enabled.

        A fresh cache entry is served without touching the network; a cached
        non-2xx outcome is replayed as UpstreamStatusError.

        Args:
            url: URL to GET

        Returns:
            Response body

        Raises:
            UpstreamStatusError: On a (possibly cached) non-2xx response
            TransportError: On connection-level failure (never cached)
        """
        if self.cache is not None:
            entry = await self.cache.get(url)
            if entry is not None:
                status, body = entry
                if 200 <= status < 300:
                    return body
                raise UpstreamStatusError(status, url=url)

        try:
            body = await self.fetch(url)
        except UpstreamStatusError as e:
            if self.cache is not None:
                await self.cache.put(url, e.status)
            raise

        if self.cache is not None:
            await self.cache.put(url, 200, body)
        return body
