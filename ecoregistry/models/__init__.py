# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""Data models for the module registry."""

from ecoregistry.models.module_models import (
    ModuleState,
    ModuleRecord,
    FeedEvent,
    Origin,
    InfoEntry,
    RetractionRange,
    UpdateReport,
)

__all__ = [
    "ModuleState",
    "ModuleRecord",
    "FeedEvent",
    "Origin",
    "InfoEntry",
    "RetractionRange",
    "UpdateReport",
]
