"""Pytest configuration and shared fixtures for freepbx-gql-client tests."""

from unittest.mock import patch

import pytest

from freepbx_gql_client.testing import MockFreepbxServer


@pytest.fixture(autouse=True)
def clear_env(monkeypatch):
    """Auto-cleanup: Clear FreePBX and test environment variables before each test.

    This prevents a developer's real settings (or a stray .env) from leaking
    into configuration tests.
    """
    import os

    test_prefixes = ("TEST_", "FREEPBX_")

    for key in list(os.environ.keys()):
        if any(key.startswith(prefix) for prefix in test_prefixes):
            monkeypatch.delenv(key, raising=False)

    yield


@pytest.fixture
def server():
    """A fresh fake FreePBX server."""
    return MockFreepbxServer()


@pytest.fixture
def sleeps():
    """Record asyncio.sleep delays instead of waiting."""
    delays = []

    async def capturing_sleep(delay, *args, **kwargs):
        delays.append(delay)

    with patch("asyncio.sleep", side_effect=capturing_sleep):
        yield delays
