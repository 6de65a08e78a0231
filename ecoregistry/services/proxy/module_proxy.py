# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Module Proxy

Single responsibility: Map module proxy endpoints onto FetchClient calls

Endpoints:
    <proxy>/<escaped path>/@v/list
    <proxy>/<escaped path>/@v/<escaped version>.info
    <proxy>/<escaped path>/@v/<escaped version>.mod
    <proxy>/<escaped path>/@v/<escaped version>.zip
    <proxy>/<escaped path>/@latest
"""

import io
import logging
import zipfile
from typing import List
from urllib.parse import quote

from ecoregistry.models.module_models import InfoEntry
from .client import FetchClient

logger = logging.getLogger(__name__)

DEFAULT_PROXY_URL = "https://proxy.golang.org"


def _escape(s: str, kind: str) -> str:
    # Case-encoding: each upper-case letter becomes "!" + lower-case.
    out = []
    for ch in s:
        if ch == "!" or ord(ch) >= 0x80:
            raise ValueError(f"invalid {kind} {s!r}: disallowed character {ch!r}")
        if "A" <= ch <= "Z":
            out.append("!" + ch.lower())
        else:
            out.append(ch)
    return "".join(out)


def escape_path(path: str) -> str:
    """
    Escape a module path for use in a proxy URL.

    Args:
        path: Module path

    Returns:
        Case-encoded, percent-escaped path

    Raises:
        ValueError: If the path is empty or contains disallowed characters
    """
    if not path or path.startswith("/") or path.endswith("/"):
        raise ValueError(f"invalid module path {path!r}")
    return quote(_escape(path, "module path"), safe="/!~")


def escape_version(version: str) -> str:
    """Escape a version for use in a proxy URL."""
    if not version or "/" in version:
        raise ValueError(f"invalid version {version!r}")
    return quote(_escape(version, "version"), safe="!~+")


class ModuleProxy:
    """Read-only client for the module proxy"""

    def __init__(self, client: FetchClient, base_url: str = DEFAULT_PROXY_URL):
        """
        Initialize module proxy.

        Args:
            client: Shared fetch client
            base_url: Proxy base URL
        """
        self.client = client
        self.base_url = base_url.rstrip("/")

    def path_url(self, path: str) -> str:
        return f"{self.base_url}/{escape_path(path)}"

    def version_url(self, path: str, version: str, suffix: str) -> str:
        return f"{self.path_url(path)}/@v/{escape_version(version)}{suffix}"

    async def list_versions(self, path: str) -> List[str]:
        """
        List the tagged versions the proxy knows for a module.

        Args:
            path: Module path

        Returns:
            Versions in the order the proxy lists them (possibly empty)
        """
        data = await self.client.fetch_cached(f"{self.path_url(path)}/@v/list")
        return data.decode("utf-8").split()

    async def info(self, path: str, version: str) -> InfoEntry:
        """
        Get version info (canonical version, commit time, origin).

        Args:
            path: Module path
            version: Module version

        Returns:
            Parsed info entry
        """
        data = await self.client.fetch_cached(self.version_url(path, version, ".info"))
        return InfoEntry.model_validate_json(data)

    async def latest(self, path: str) -> str:
        """
        Get the version the proxy itself reports as latest.

        Args:
            path: Module path

        Returns:
            Version string
        """
        data = await self.client.fetch_cached(f"{self.path_url(path)}/@latest")
        return InfoEntry.model_validate_json(data).version

    async def mod(self, path: str, version: str) -> bytes:
        """Get the module descriptor (go.mod) at a version."""
        return await self.client.fetch_cached(self.version_url(path, version, ".mod"))

    async def zip_data(self, path: str, version: str) -> bytes:
        """Download a module archive. Archives are never cached."""
        return await self.client.fetch(self.version_url(path, version, ".zip"))

    async def zip(self, path: str, version: str) -> zipfile.ZipFile:
        """Download a module archive and open it."""
        data = await self.zip_data(path, version)
        logger.debug(f"Fetched {len(data)} byte archive for {path}@{version}")
        return zipfile.ZipFile(io.BytesIO(data))
