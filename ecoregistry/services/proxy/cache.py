# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Response Cache

Single responsibility: Persist upstream responses (including non-2xx
outcomes) on disk, one file per URL

File layout:
    <cache_dir>/<percent-escaped URL>
    content = 3-digit status, newline, raw body
"""

import logging
import time
from pathlib import Path
from typing import Optional, Tuple
from urllib.parse import quote

import aiofiles
import aiofiles.os

from ecoregistry.core.errors import EcoRegistryError

logger = logging.getLogger(__name__)


class CacheEntryError(EcoRegistryError):
    """A cache file exists but its contents are not a valid entry."""


class ResponseCache:
    """File-per-URL cache of upstream outcomes with a freshness TTL"""

    def __init__(self, cache_dir: Path, ttl_seconds: float):
        """
        Initialize response cache.

        Args:
            cache_dir: Directory holding cache files (created if missing)
            ttl_seconds: Entries older than this are ignored
        """
        self.cache_dir = Path(cache_dir)
        self.ttl_seconds = ttl_seconds
        self.cache_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, url: str) -> Path:
        """Cache file for a URL."""
        return self.cache_dir / quote(url, safe="")

    async def get(self, url: str) -> Optional[Tuple[int, bytes]]:
        """
        Look up a fresh entry.

        Args:
            url: Upstream URL

        Returns:
            (status, body) if a fresh entry exists, None otherwise

        Raises:
            CacheEntryError: If the entry is truncated or has no status line
        """
        filename = self.path_for(url)
        try:
            stat = await aiofiles.os.stat(filename)
        except FileNotFoundError:
            return None
        if time.time() - stat.st_mtime >= self.ttl_seconds:
            return None

        async with aiofiles.open(filename, "rb") as f:
            data = await f.read()
        if len(data) < 4:
            raise CacheEntryError(f"cache entry {filename} contents too short")
        try:
            status = int(data[:3])
        except ValueError as e:
            raise CacheEntryError(f"cache entry {filename} has no status: {e}") from e
        return status, data[4:]

    async def put(self, url: str, status: int, body: bytes = b""):
        """
        Store an outcome.

        Args:
            url: Upstream URL
            status: HTTP status of the outcome
            body: Response body (empty for non-2xx outcomes)
        """
        async with aiofiles.open(self.path_for(url), "wb") as f:
            await f.write(b"%03d\n" % status + body)
        logger.debug(f"Cached {status} for {url}")
