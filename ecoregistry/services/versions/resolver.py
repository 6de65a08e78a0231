# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Version Resolver

Single responsibility: Pick the latest version of a module from its version
list (no I/O; manifest checks are delegated to a caller-supplied predicate)

Ordering: tagged releases are preferred to tagged prereleases, and both to
pseudo-versions; within a tier, semantic version order decides.
"""

import logging
from typing import Awaitable, Callable, Iterable, List

from . import semantics

logger = logging.getLogger(__name__)

# Reports whether a module version has a real descriptor (go.mod file).
HasRealManifest = Callable[[str], Awaitable[bool]]


def later(v1: str, v2: str) -> bool:
    """
    Report whether v1 is later than v2.

    Args:
        v1: Version string
        v2: Version string

    Returns:
        True if v1 ranks above v2
    """
    rel1 = not semantics.is_prerelease(v1)
    rel2 = not semantics.is_prerelease(v2)
    if rel1 and rel2:
        return semantics.compare(v1, v2) > 0
    if rel1 != rel2:
        return rel1
    # Both are prereleases.
    pseudo1 = semantics.is_pseudo_version(v1)
    pseudo2 = semantics.is_pseudo_version(v2)
    if pseudo1 == pseudo2:
        return semantics.compare(v1, v2) > 0
    return not pseudo1


def pick_latest(versions: Iterable[str]) -> str:
    """
    Return the highest-ranked version, or "" if there are none.

    Args:
        versions: Version strings

    Returns:
        Latest version or the empty string
    """
    latest = ""
    for v in versions:
        if not latest or later(v, latest):
            latest = v
    return latest


async def resolve_latest(versions: List[str], has_real_manifest: HasRealManifest) -> str:
    """
    Find the latest version the way the go command does.

    An incompatible version ("+incompatible") is only chosen when no tagged
    compatible version exists, or when the latest compatible tagged version
    has no real descriptor (the author has not adopted modules).

    Args:
        versions: All known versions of the module
        has_real_manifest: Async predicate on a version

    Returns:
        Latest version, or "" if versions is empty

    Raises:
        Exception: Whatever has_real_manifest raises
    """
    latest = pick_latest(versions)
    if not latest:
        return ""
    # If the latest is a compatible version, use it.
    if not semantics.is_incompatible(latest):
        return latest

    compatible = [
        v for v in versions
        if not semantics.is_incompatible(v) and not semantics.is_pseudo_version(v)
    ]
    latest_compat = pick_latest(compatible)
    if not latest_compat:
        logger.debug(f"No compatible tagged version; using incompatible {latest}")
        return latest

    if await has_real_manifest(latest_compat):
        return latest_compat
    return latest
