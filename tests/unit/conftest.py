# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Test Fixtures for Unit Tests

Provides the canned upstream, fetch clients wired to it, and a temporary
registry.
"""

import httpx
import pytest
import pytest_asyncio

from ecoregistry.services.proxy.client import FetchClient, FetchClientConfig
from ecoregistry.services.proxy.module_proxy import ModuleProxy
from ecoregistry.services.registry.store import ModuleRegistry

from .fakes import PROXY_URL, FakeUpstream


@pytest.fixture
def upstream():
    """Empty canned upstream"""
    return FakeUpstream()


@pytest.fixture
def fast_config():
    """Client settings that never throttle the tests"""
    return FetchClientConfig(qps=10000, burst=10000, user_agent="ecoregistry-test")


@pytest.fixture
def client(upstream, fast_config):
    """Fetch client talking to the canned upstream"""
    return FetchClient(fast_config, transport=httpx.MockTransport(upstream.handler))


@pytest.fixture
def proxy(client):
    """Module proxy over the test client"""
    return ModuleProxy(client, PROXY_URL)


@pytest.fixture
def db_url(tmp_path):
    """URL of a fresh SQLite database file"""
    return f"sqlite+aiosqlite:///{tmp_path / 'db.sqlite'}"


@pytest_asyncio.fixture
async def registry(db_url):
    """Registry with its schema created"""
    store = ModuleRegistry(db_url)
    await store.create_schema()
    yield store
    await store.close()
