# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Upstream access for the module proxy and the module index.

- limiter: token bucket shared by all requests
- cache: on-disk cache of upstream outcomes
- client: the rate-limited, caching fetch primitive
- module_proxy: proxy endpoints (list, info, mod, zip, latest)
- feed: duplicate-free reader of the module index
"""

from .client import FetchClient, FetchClientConfig
from .cache import ResponseCache
from .limiter import TokenBucketLimiter
from .module_proxy import ModuleProxy, escape_path, escape_version
from .feed import FeedCursor, decode_boundary, encode_boundary, read_feed_page

__all__ = [
    "FetchClient",
    "FetchClientConfig",
    "ResponseCache",
    "TokenBucketLimiter",
    "ModuleProxy",
    "escape_path",
    "escape_version",
    "FeedCursor",
    "read_feed_page",
    "encode_boundary",
    "decode_boundary",
]
