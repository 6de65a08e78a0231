# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Module version ranking and latest-version resolution.
"""

from .resolver import later, pick_latest, resolve_latest
from .retractions import parse_retractions, is_retracted, resolve_with_retractions

__all__ = [
    "later",
    "pick_latest",
    "resolve_latest",
    "parse_retractions",
    "is_retracted",
    "resolve_with_retractions",
]
