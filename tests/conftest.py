"""Test configuration and fixtures for Dropbox relay tests."""

import asyncio
import os
from unittest.mock import patch

import httpx
import pytest
from fastapi.testclient import TestClient

from dropbox_relay.config import RelayConfig
from dropbox_relay.server import create_app
from dropbox_relay.upstream import UpstreamClient


class UpstreamRecorder:
    """Stand-in for the Dropbox token endpoint that records every request."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.status_code = 200
        self.body = b'{"access_token": "xyz"}'
        self.error: Exception | None = None
        self.delay = 0.0

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, content=self.body)


@pytest.fixture
def relay_config():
    """Relay configuration used by the test app."""
    return RelayConfig(
        client_id="test-client-id",
        client_secret="test-client-secret",
        redirect_uri="http://localhost:4200/callback",
    )


@pytest.fixture
def mock_env_vars():
    """Complete set of required environment variables."""
    env_vars = {
        "DROPBOX_CLIENT_ID": "env-client-id",
        "DROPBOX_CLIENT_SECRET": "env-client-secret",
        "DROPBOX_REDIRECT_URI": "https://app.example.com/callback",
    }

    with patch.dict(os.environ, env_vars, clear=False):
        yield env_vars


@pytest.fixture
def upstream():
    """Recorder standing in for the token endpoint."""
    return UpstreamRecorder()


@pytest.fixture
def client(relay_config, upstream):
    """Test client for the relay app wired to the recorder."""
    upstream_client = UpstreamClient(transport=httpx.MockTransport(upstream.handler))
    app = create_app(relay_config, upstream=upstream_client)
    with TestClient(app) as test_client:
        yield test_client
