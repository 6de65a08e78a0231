# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Module registry persistence and the update run.

- store: transactional single-writer store of module records
- latest: latest unretracted version of one module via the proxy
- orchestrator: ingest then resolve
"""

from .store import BOUNDARY_PARAM, ModuleRegistry, WATERMARK_PARAM
from .latest import LatestVersionFinder, manifest_is_real
from .orchestrator import UpdateConfig, UpdateOrchestrator, is_soft_failure

__all__ = [
    "ModuleRegistry",
    "WATERMARK_PARAM",
    "BOUNDARY_PARAM",
    "LatestVersionFinder",
    "manifest_is_real",
    "UpdateConfig",
    "UpdateOrchestrator",
    "is_soft_failure",
]
