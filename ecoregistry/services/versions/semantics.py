# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Version Semantics

Single responsibility: Classify and order module version strings

Module versions are semantic versions with a mandatory "v" prefix. "vMAJOR"
and "vMAJOR.MINOR" are shorthands for "vMAJOR.0.0" and "vMAJOR.MINOR.0".
Build metadata (such as "+incompatible") does not affect ordering, and
invalid versions sort below every valid one.
"""

import re
from typing import Optional

import semver

# Untagged versions synthesized from a commit time and hash, e.g.
# v0.0.0-20190124233150-8f7fa2680c82 or v1.2.4-0.20191109021931-daa7c04131f5
_PSEUDO_VERSION_RE = re.compile(
    r"^v[0-9]+\.(0\.0-|\d+\.\d+-([^+]*\.)?0\.)\d{14}-[A-Za-z0-9]+"
    r"(\+[0-9A-Za-z-]+(\.[0-9A-Za-z-]+)*)?$"
)

INCOMPATIBLE_SUFFIX = "+incompatible"


def parse(version: str) -> Optional[semver.Version]:
    """
    Parse a module version.

    Args:
        version: Version string such as "v1.2.3-pre"

    Returns:
        Parsed version, or None if the string is not a valid module version
    """
    if not version.startswith("v"):
        return None
    try:
        return semver.Version.parse(version[1:], optional_minor_and_patch=True)
    except ValueError:
        return None


def is_valid(version: str) -> bool:
    return parse(version) is not None


def compare(v1: str, v2: str) -> int:
    """
    Compare two versions.

    Returns:
        -1, 0 or +1 as v1 is less than, equal to or greater than v2
    """
    p1, p2 = parse(v1), parse(v2)
    if p1 is None or p2 is None:
        if p1 is None and p2 is None:
            return 0
        return -1 if p1 is None else 1
    return p1.compare(p2)


def is_prerelease(version: str) -> bool:
    """Whether a valid version carries a prerelease suffix."""
    parsed = parse(version)
    return parsed is not None and parsed.prerelease is not None


def is_pseudo_version(version: str) -> bool:
    """Whether a version is a pseudo-version (no human-assigned tag)."""
    return (
        version.count("-") >= 2
        and is_valid(version)
        and _PSEUDO_VERSION_RE.match(version) is not None
    )


def is_incompatible(version: str) -> bool:
    """Whether a version is a major-version-incompatible tag."""
    return version.endswith(INCOMPATIBLE_SUFFIX)
