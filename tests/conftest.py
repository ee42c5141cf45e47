"""Pytest configuration and shared fixtures for twitch-api-core tests."""

import pytest

from twitch_api_core.auth import StaticCredentialProvider
from twitch_api_core.config import ClientConfig
from twitch_api_core.engine import ExecutionEngine
from twitch_api_core.testing import ScriptedTransport, make_credential


@pytest.fixture(autouse=True)
def clear_env(monkeypatch):
    """Auto-cleanup: Clear Twitch and test environment variables before each test.

    This prevents test pollution when testing credential and config resolution.
    """
    import os

    test_prefixes = ("TEST_", "TWITCH_")

    for key in list(os.environ.keys()):
        if any(key.startswith(prefix) for prefix in test_prefixes):
            monkeypatch.delenv(key, raising=False)

    yield


@pytest.fixture
def transport():
    return ScriptedTransport()


@pytest.fixture
def credential():
    return make_credential(scopes=["moderation:read", "user:edit:broadcast"])


@pytest.fixture
def engine(transport, credential):
    return ExecutionEngine(transport, StaticCredentialProvider(credential), ClientConfig())
