"""
Pytest configuration and fixtures for relay tests.
"""

import asyncio
import json
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from relay_gateway.components.connection.registry import Connection, ConnectionState
from relay_gateway.connection_manager import ConnectionManager
from relay_gateway.main import create_app
from relay_shared.config.settings import Settings
from relay_shared.integrations.upload_auth import ImageKitUploadAuthorizer


class FakeWebSocket:
    """
    Stand-in for a Starlette WebSocket that records sent frames.

    Set ``fail_sends`` to make every send raise like a broken socket,
    or ``send_delay`` to simulate a slow client.
    """

    def __init__(self, fail_sends: bool = False, send_delay: float = 0.0):
        self.sent: list[str | bytes] = []
        self.binary_sent = 0
        self.fail_sends = fail_sends
        self.send_delay = send_delay
        self.accepted = False
        self.closed_with: int | None = None
        self.headers: dict[str, str] = {}
        self.client = None

    async def accept(self):
        self.accepted = True

    async def _record(self, data: str | bytes):
        if self.send_delay:
            await asyncio.sleep(self.send_delay)
        if self.fail_sends:
            raise RuntimeError("Cannot call 'send' once a close message has been sent.")
        self.sent.append(data)

    async def send_text(self, data: str):
        await self._record(data)

    async def send_bytes(self, data: bytes):
        await self._record(data)
        self.binary_sent += 1

    async def close(self, code: int = 1000, reason: str | None = None):
        self.closed_with = code

    @property
    def frames(self) -> list[dict]:
        return [json.loads(f) for f in self.sent]


def make_connection(websocket: FakeWebSocket | None = None, connection_id: str | None = None,
                    send_timeout: float = 1.0) -> Connection:
    """An open Connection around a FakeWebSocket."""
    connection = Connection(websocket or FakeWebSocket(), connection_id=connection_id,
                            send_timeout=send_timeout)
    connection.state = ConnectionState.OPEN
    return connection


@pytest.fixture
def test_settings():
    """Settings isolated from the environment."""
    return Settings(
        _env_file=None,
        environment="test",
        debug=False,
        ws_send_timeout=0.5,
        upload_public_key="public_test_key",
        upload_private_key="private_test_key",
        upload_url_endpoint="https://uploads.example.com/chat",
    )


@pytest.fixture
def manager(test_settings):
    return ConnectionManager(test_settings)


@pytest.fixture
def imagekit_client():
    """ImageKit SDK client that signs without network or real keys."""
    client = MagicMock(name="ImageKit")
    client.get_authentication_parameters.return_value = {
        "token": "3f2c9a4e-token",
        "expire": 1760001800,
        "signature": "a1b2c3d4e5",
    }
    return client


@pytest.fixture
def upload_authorizer(test_settings, imagekit_client):
    return ImageKitUploadAuthorizer.from_settings(test_settings, client=imagekit_client)


@pytest.fixture
def app(test_settings, manager, upload_authorizer):
    return create_app(settings=test_settings, manager=manager, upload_authorizer=upload_authorizer)


@pytest.fixture
def client(app):
    """Test client running the app lifespan."""
    with TestClient(app) as test_client:
        yield test_client
