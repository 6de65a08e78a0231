# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Core utilities and shared modules for the registry updater.

This package contains:
- config: Configuration management
- errors: Custom exceptions
- logging: Structured logging
"""

from ecoregistry.core.config import get_config, load_config, Config
from ecoregistry.core.errors import (
    EcoRegistryError,
    TransportError,
    UpstreamStatusError,
    NoVersionsError,
    ManifestParseError,
    FeedDecodeError,
    StorageError,
    ResolutionError,
    ConfigurationError,
)
from ecoregistry.core.logging import configure_logging, log_event

__all__ = [
    "get_config",
    "load_config",
    "Config",
    "EcoRegistryError",
    "TransportError",
    "UpstreamStatusError",
    "NoVersionsError",
    "ManifestParseError",
    "FeedDecodeError",
    "StorageError",
    "ResolutionError",
    "ConfigurationError",
    "log_event",
    "configure_logging",
]
