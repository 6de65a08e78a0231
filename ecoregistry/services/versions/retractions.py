# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Retraction Filter

Single responsibility: Refine the latest version by dropping versions the
module author has retracted

The retractions are read from the module descriptor (go.mod) at the raw
latest version. Only `retract` directives are read:

    retract v1.0.1 // published by mistake
    retract [v1.1.0, v1.1.9]
    retract (
        v1.2.0
        [v1.3.0, v1.3.5]
    )
"""

import logging
from typing import Awaitable, Callable, List, Optional

from ecoregistry.core.errors import ManifestParseError
from ecoregistry.models.module_models import RetractionRange
from . import semantics
from .resolver import HasRealManifest, resolve_latest

logger = logging.getLogger(__name__)

ManifestBytesFor = Callable[[str], Awaitable[bytes]]
ParseRetractions = Callable[[bytes], List[RetractionRange]]


def _parse_version(token: str, lineno: int, location: Optional[str]) -> str:
    token = token.strip()
    if len(token) >= 2 and token[0] == token[-1] == '"':
        token = token[1:-1]
    if not semantics.is_valid(token):
        raise ManifestParseError(f"line {lineno}: invalid version {token!r}", location)
    return token


def _parse_range(text: str, lineno: int, location: Optional[str]) -> RetractionRange:
    if text.startswith("["):
        if not text.endswith("]"):
            raise ManifestParseError(f"line {lineno}: unterminated version interval", location)
        bounds = text[1:-1].split(",")
        if len(bounds) != 2:
            raise ManifestParseError(f"line {lineno}: version interval needs two versions", location)
        return RetractionRange(
            low=_parse_version(bounds[0], lineno, location),
            high=_parse_version(bounds[1], lineno, location),
        )
    version = _parse_version(text, lineno, location)
    return RetractionRange(low=version, high=version)


def parse_retractions(data: bytes, location: Optional[str] = None) -> List[RetractionRange]:
    """
    Read the retracted version ranges declared in a module descriptor.

    Args:
        data: Raw descriptor bytes
        location: Descriptor name for error messages

    Returns:
        Retraction ranges in declaration order

    Raises:
        ManifestParseError: If the descriptor is not UTF-8 or a retract
            directive is malformed
    """
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ManifestParseError(f"not UTF-8: {e}", location) from e

    ranges = []
    in_block = False
    block_start = 0
    for lineno, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.split("//", 1)[0].strip()
        if not line:
            continue
        if in_block:
            if line == ")":
                in_block = False
            else:
                ranges.append(_parse_range(line, lineno, location))
            continue

        # Any whitespace separates the verb; "retract(" opens a block.
        if line.startswith("retract("):
            verb, rest = "retract", line[len("retract"):]
        else:
            fields = line.split(None, 1)
            verb = fields[0]
            rest = fields[1] if len(fields) > 1 else ""
        if verb != "retract":
            continue
        rest = rest.strip()
        if rest == "(":
            in_block = True
            block_start = lineno
        elif not rest:
            raise ManifestParseError(f"line {lineno}: retract needs a version or interval", location)
        else:
            ranges.append(_parse_range(rest, lineno, location))

    if in_block:
        raise ManifestParseError(f"line {block_start}: unterminated retract block", location)
    return ranges


def is_retracted(version: str, ranges: List[RetractionRange]) -> bool:
    """Whether any range covers the version (bounds inclusive)."""
    for r in ranges:
        if semantics.compare(version, r.low) >= 0 and semantics.compare(version, r.high) <= 0:
            return True
    return False


async def resolve_with_retractions(
    versions: List[str],
    has_real_manifest: HasRealManifest,
    manifest_bytes_for: ManifestBytesFor,
    parse: ParseRetractions = parse_retractions
) -> str:
    """
    Resolve the latest version, then re-resolve without retracted versions.

    A descriptor that cannot be parsed does not block resolution: the raw
    latest version is returned.

    Args:
        versions: All known versions of the module
        has_real_manifest: Async predicate on a version
        manifest_bytes_for: Async fetch of the descriptor at a version
        parse: Retraction reader for descriptor bytes

    Returns:
        Latest unretracted version; "" if there are no versions or every
        version is retracted
    """
    raw_latest = await resolve_latest(versions, has_real_manifest)
    if not raw_latest:
        return ""

    data = await manifest_bytes_for(raw_latest)
    try:
        ranges = parse(data)
    except ManifestParseError as e:
        logger.warning(f"Bad module descriptor at {raw_latest}: {e}")
        return raw_latest

    unretracted = [v for v in versions if not is_retracted(v, ranges)]
    if len(unretracted) == len(versions):
        return raw_latest
    logger.debug(f"{len(versions) - len(unretracted)} retracted versions removed")
    # Empty if every version is retracted.
    return await resolve_latest(unretracted, has_real_manifest)
