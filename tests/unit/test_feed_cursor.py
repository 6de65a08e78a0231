# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Unit tests for the module index feed reader
"""

import httpx
import pytest

from ecoregistry.core.errors import FeedDecodeError, UpstreamStatusError
from ecoregistry.services.proxy.client import FetchClient
from ecoregistry.models.module_models import FeedEvent
from ecoregistry.services.proxy.feed import (
    FeedCursor,
    decode_boundary,
    encode_boundary,
    read_feed_page,
)

from .fakes import INDEX_URL, index_event

T1 = "2019-04-10T19:08:52.997264Z"
T2 = "2019-04-10T19:09:00.000000Z"
T3 = "2019-04-10T19:10:00.000000Z"
T4 = "2019-04-10T19:11:00.000000Z"


@pytest.fixture
def split_run_events():
    """Five events whose middle run of three shares a timestamp"""
    return [
        index_event("example.com/a", "v1.0.0", T1),
        index_event("example.com/b", "v1.0.0", T2),
        index_event("example.com/c", "v1.0.0", T2),
        index_event("example.com/d", "v1.0.0", T2),
        index_event("example.com/e", "v1.0.0", T3),
    ]


async def drain(cursor):
    return [e async for e in cursor.events()]


class TestReadFeedPage:
    """Test read_feed_page"""

    @pytest.mark.asyncio
    async def test_parses_events(self, upstream, client):
        """Should decode newline-delimited JSON events"""
        upstream.index_events = [index_event("example.com/a", "v1.0.0", T1)]

        page = await read_feed_page(client, index_url=INDEX_URL)

        assert len(page) == 1
        assert page[0].path == "example.com/a"
        assert page[0].version == "v1.0.0"
        assert page[0].timestamp == T1
        assert str(upstream.requests[0].url) == INDEX_URL

    @pytest.mark.asyncio
    async def test_sends_since_and_limit(self, upstream, client):
        """Should pass the watermark and page size as query parameters"""
        await read_feed_page(client, since=T2, limit=7, index_url=INDEX_URL)

        params = upstream.requests[0].url.params
        assert params["since"] == T2
        assert params["limit"] == "7"

    @pytest.mark.asyncio
    async def test_bad_line(self, fast_config):
        """Should raise FeedDecodeError naming the line"""
        def handler(request):
            body = b'{"Path": "example.com/a", "Version": "v1.0.0", "Timestamp": "x"}\nnot json\n'
            return httpx.Response(200, content=body)

        client = FetchClient(fast_config, transport=httpx.MockTransport(handler))
        with pytest.raises(FeedDecodeError) as exc_info:
            await read_feed_page(client, index_url=INDEX_URL)
        assert exc_info.value.details["line"] == 2
        await client.aclose()


class TestFeedCursor:
    """Test FeedCursor"""

    @pytest.mark.asyncio
    async def test_page_boundary_inside_timestamp_run(self, upstream, client, split_run_events):
        """Should yield every event exactly once when a page splits a same-timestamp run"""
        upstream.index_events = split_run_events
        cursor = FeedCursor(client, limit=4, index_url=INDEX_URL)

        events = await drain(cursor)

        assert [e.path for e in events] == [
            "example.com/a", "example.com/b", "example.com/c", "example.com/d", "example.com/e",
        ]
        assert cursor.error() is None
        assert cursor.since == T3

    @pytest.mark.asyncio
    async def test_stops_when_page_has_nothing_new(self, upstream, client, split_run_events):
        """Should end once a page repeats only already-yielded events"""
        upstream.index_events = split_run_events
        cursor = FeedCursor(client, limit=4, index_url=INDEX_URL)

        await drain(cursor)

        # "" -> T2 -> T3, and the page at T3 is all boundary events.
        assert len(upstream.requests) == 3

    @pytest.mark.asyncio
    async def test_resumes_from_watermark(self, upstream, client, split_run_events):
        """Should start at the given watermark and skip the events already read there"""
        upstream.index_events = split_run_events
        boundary = [FeedEvent.model_validate(e) for e in split_run_events[1:3]]
        cursor = FeedCursor(client, since=T2, index_url=INDEX_URL, boundary=boundary)

        events = await drain(cursor)

        assert [e.path for e in events] == ["example.com/d", "example.com/e"]

    @pytest.mark.asyncio
    async def test_resume_without_boundary_rereads_run(self, upstream, client, split_run_events):
        """Should yield every event at the watermark when no boundary is given"""
        upstream.index_events = split_run_events
        cursor = FeedCursor(client, since=T3, index_url=INDEX_URL)

        assert [e.path for e in await drain(cursor)] == ["example.com/e"]

    @pytest.mark.asyncio
    async def test_second_drain_with_fresh_cursor(self, upstream, client, split_run_events):
        """Should never yield an event twice across two cursors sharing watermark and boundary"""
        upstream.index_events = split_run_events
        first = FeedCursor(client, limit=4, index_url=INDEX_URL)
        first_events = await drain(first)

        upstream.index_events.append(index_event("example.com/f", "v1.0.0", T3))
        upstream.index_events.append(index_event("example.com/g", "v1.0.0", T4))
        second = FeedCursor(
            client, since=first.since, limit=4, index_url=INDEX_URL, boundary=first.boundary
        )
        second_events = await drain(second)

        assert not set(first_events) & set(second_events)
        assert [e.path for e in second_events] == ["example.com/f", "example.com/g"]
        assert second.since == T4

    @pytest.mark.asyncio
    async def test_second_drain_with_same_cursor(self, upstream, client, split_run_events):
        """Should yield nothing new when the same cursor is drained again"""
        upstream.index_events = split_run_events
        cursor = FeedCursor(client, limit=4, index_url=INDEX_URL)

        await drain(cursor)

        assert await drain(cursor) == []
        assert cursor.since == T3
        assert [e.path for e in cursor.boundary] == ["example.com/e"]

    @pytest.mark.asyncio
    async def test_empty_feed(self, client):
        """Should yield nothing and record no error for an empty feed"""
        cursor = FeedCursor(client, index_url=INDEX_URL)
        assert await drain(cursor) == []
        assert cursor.error() is None
        assert cursor.since == ""

    @pytest.mark.asyncio
    async def test_fetch_failure_ends_iteration(self, upstream, client, split_run_events):
        """Should stop quietly and expose the failure through error()"""
        upstream.index_events = split_run_events
        upstream.resume_status = 500
        cursor = FeedCursor(client, limit=4, index_url=INDEX_URL)

        events = await drain(cursor)

        assert len(events) == 4
        assert isinstance(cursor.error(), UpstreamStatusError)
        assert cursor.error().status == 500
        assert cursor.since == T2


class TestBoundaryEncoding:
    """Test encode_boundary and decode_boundary"""

    def test_encoding_is_order_independent(self, split_run_events):
        """Should store the same text for the same events in any order"""
        events = [FeedEvent.model_validate(e) for e in split_run_events[1:4]]
        assert encode_boundary(events) == encode_boundary(reversed(events))
        assert set(decode_boundary(encode_boundary(events))) == set(events)

    def test_nothing_stored(self):
        """Should decode a missing or empty value as no events"""
        assert decode_boundary(None) == []
        assert decode_boundary("") == []
        assert decode_boundary("[]") == []

    @pytest.mark.parametrize("stored", ["not json", "{}", '[{"Path": "example.com/a"}]', "[1]"])
    def test_bad_stored_value(self, stored):
        """Should raise FeedDecodeError for a stored value that is not a list of events"""
        with pytest.raises(FeedDecodeError, match="stored index boundary"):
            decode_boundary(stored)
