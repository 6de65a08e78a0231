# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Latest Version Finder

Single responsibility: Compute one module's latest unretracted version from
what the module proxy serves
"""

import logging

from ecoregistry.core.errors import NoVersionsError, UpstreamStatusError
from ecoregistry.services.proxy.module_proxy import ModuleProxy
from ecoregistry.services.versions.retractions import parse_retractions, resolve_with_retractions

logger = logging.getLogger(__name__)


def manifest_is_real(data: bytes) -> bool:
    """
    Whether a served descriptor looks like a real go.mod file.

    The proxy always serves a descriptor, synthesizing a lone module line
    when the version has none. Anything beyond that first line counts as
    real. A module with no requirements is misclassified, which is
    cheaper than downloading the archive to check.
    """
    return data.find(b"\n") != len(data) - 1


class LatestVersionFinder:
    """Resolves latest versions through the module proxy"""

    def __init__(self, proxy: ModuleProxy):
        """
        Initialize finder.

        Args:
            proxy: Module proxy client
        """
        self.proxy = proxy

    async def has_real_manifest(self, path: str, version: str) -> bool:
        data = await self.proxy.mod(path, version)
        return manifest_is_real(data)

    async def find(self, path: str) -> str:
        """
        Find the latest version of a module, honoring retractions.

        A module with no tagged versions that the proxy has not served at a
        pseudo-version recently gets an empty list and a 404/410 from
        @latest. That is a valid state with no version information, reported
        as NoVersionsError.

        Args:
            path: Module path

        Returns:
            Latest version; "" if every version is retracted

        Raises:
            NoVersionsError: If the proxy knows no version at all
            UpstreamStatusError: On other upstream failures
        """
        versions = await self.proxy.list_versions(path)
        try:
            latest = await self.proxy.latest(path)
        except UpstreamStatusError as e:
            # No information from @latest is not a showstopper; the list may
            # still have versions.
            if not e.is_not_found:
                raise
        else:
            versions.append(latest)

        if not versions:
            raise NoVersionsError(path)

        async def has_real_manifest(version: str) -> bool:
            return await self.has_real_manifest(path, version)

        async def manifest_bytes_for(version: str) -> bytes:
            return await self.proxy.mod(path, version)

        def parse(data: bytes):
            return parse_retractions(data, location=f"{path}/go.mod")

        return await resolve_with_retractions(versions, has_real_manifest, manifest_bytes_for, parse)
