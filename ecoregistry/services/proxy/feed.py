# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Module Index Feed

Single responsibility: Read the module index as a resumable, duplicate-free
sequence of feed events
"""

import json
import logging
from typing import AsyncIterator, Iterable, List, Optional, Set
from urllib.parse import urlencode

from pydantic import ValidationError

from ecoregistry.core.errors import FeedDecodeError
from ecoregistry.models.module_models import FeedEvent
from .client import FetchClient

logger = logging.getLogger(__name__)

DEFAULT_INDEX_URL = "https://index.golang.org/index"


async def read_feed_page(
    client: FetchClient,
    since: str = "",
    limit: int = 0,
    index_url: str = DEFAULT_INDEX_URL
) -> List[FeedEvent]:
    """
    Read one page of events from the module index.

    Args:
        client: Shared fetch client
        since: Empty, or a timestamp returned in a previously read event
        limit: Page size passed to the index unless non-positive
        index_url: Index endpoint

    Returns:
        Events in index order

    Raises:
        FeedDecodeError: If a line of the page is not a JSON event
    """
    params = {}
    if since:
        params["since"] = since
    if limit > 0:
        params["limit"] = limit
    url = index_url
    if params:
        url += "?" + urlencode(params)

    body = await client.fetch(url)

    # The index returns newline-delimited JSON objects.
    events = []
    for lineno, line in enumerate(body.decode("utf-8").splitlines(), start=1):
        if not line.strip():
            continue
        try:
            events.append(FeedEvent.model_validate(json.loads(line)))
        except (json.JSONDecodeError, ValidationError) as e:
            raise FeedDecodeError(
                f"decoding index line {lineno}: {e}",
                details={"url": url, "line": lineno}
            ) from e
    return events


def encode_boundary(events: Iterable[FeedEvent]) -> str:
    """Serialize boundary events for storage next to the watermark."""
    return json.dumps([e.model_dump() for e in sorted(events, key=lambda e: (e.path, e.version))])


def decode_boundary(data: Optional[str]) -> List[FeedEvent]:
    """
    Read boundary events stored by encode_boundary.

    Args:
        data: Stored JSON, or None if nothing was stored

    Returns:
        Boundary events (empty if nothing was stored)

    Raises:
        FeedDecodeError: If the stored value is not a list of events
    """
    if not data:
        return []
    try:
        items = json.loads(data)
        if not isinstance(items, list):
            raise TypeError(f"expected a list, got {type(items).__name__}")
        return [FeedEvent.model_validate(item) for item in items]
    except (json.JSONDecodeError, ValidationError, TypeError) as e:
        raise FeedDecodeError(f"decoding stored index boundary: {e}") from e


class FeedCursor:
    """
    Resumable iterator over index events since a watermark.

    Never yields the same event twice, even when a page boundary splits a run
    of events sharing one timestamp. A failure ends the iteration quietly;
    check error() once the loop is over:

        cursor = FeedCursor(client, since, boundary=stored_boundary)
        async for event in cursor.events():
            ...
        if cursor.error():
            raise cursor.error()
        # cursor.since and cursor.boundary resume the next drain.
    """

    def __init__(
        self,
        client: FetchClient,
        since: str = "",
        limit: int = 0,
        index_url: str = DEFAULT_INDEX_URL,
        boundary: Iterable[FeedEvent] = ()
    ):
        """
        Initialize feed cursor.

        Args:
            client: Shared fetch client
            since: Watermark to start from (empty for the start of the feed)
            limit: Optional page size
            index_url: Index endpoint
            boundary: Events at the `since` timestamp already consumed by an
                earlier drain; they are not yielded again
        """
        self.client = client
        self.since = since
        self.limit = limit
        self.index_url = index_url
        self._error: Optional[Exception] = None
        # Events already yielded at the current `since` timestamp.
        self._boundary: Set[FeedEvent] = set(boundary)

    def error(self) -> Optional[Exception]:
        """First failure that ended the iteration, if any."""
        return self._error

    def _set_error(self, error: Exception):
        if self._error is None:
            self._error = error

    @property
    def boundary(self) -> List[FeedEvent]:
        """Events at the current `since` timestamp; pass them to the next cursor."""
        return sorted(self._boundary, key=lambda e: (e.path, e.version))

    async def events(self) -> AsyncIterator[FeedEvent]:
        """
        Yield new events until the feed is exhausted or a fetch fails.

        Yields:
            Feed events in index order
        """
        while True:
            try:
                page = await read_feed_page(self.client, self.since, self.limit, self.index_url)
            except Exception as e:
                logger.error(f"Reading index since {self.since!r} failed: {e}")
                self._set_error(e)
                return

            n = 0
            for event in page:
                if event in self._boundary:
                    continue
                yield event
                n += 1
            if n == 0:
                return

            self.since = page[-1].timestamp
            # The index is ordered, so only the trailing run at the new
            # watermark can be repeated by the next page.
            self._boundary = set()
            for event in reversed(page):
                if event.timestamp != self.since:
                    break
                self._boundary.add(event)
            logger.debug(f"Index page of {len(page)} events, {n} new, now at {self.since}")
