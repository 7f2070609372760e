"""Shared fixtures: fake credential provider, mock destination, recording logger."""

import httpx
import pytest
from fastapi.testclient import TestClient

from app import create_app
from auth import IdTokenAuth
from core.config import Config
from core.exceptions import CredentialAcquisitionError


class FakeProvider:
    """Credential provider that mints predictable tokens per audience."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.audiences: list[str] = []

    async def acquire(self, audience: str) -> httpx.Auth:
        self.audiences.append(audience)
        if self.fail:
            raise CredentialAcquisitionError("no ambient credentials", audience=audience)
        return IdTokenAuth(f"token-for-{audience}")


class RecordingLogger:
    def __init__(self):
        self.requests: list[tuple[str, str, str]] = []
        self.forwards: list[tuple[str, int]] = []
        self.errors: list[tuple[str, int, str]] = []

    def log_request(self, method: str, path: str, destination: str) -> None:
        self.requests.append((method, path, destination))

    def log_forward(self, destination: str, status: int) -> None:
        self.forwards.append((destination, status))

    def log_error(self, destination: str, status: int, message: str) -> None:
        self.errors.append((destination, status, message))


class ChunkedStream(httpx.AsyncByteStream):
    """Response body delivered in several chunks, optionally breaking midway."""

    def __init__(self, chunks: list[bytes], error: Exception | None = None):
        self.chunks = chunks
        self.error = error
        self.closed = False

    async def __aiter__(self):
        for chunk in self.chunks:
            yield chunk
        if self.error is not None:
            raise self.error

    async def aclose(self) -> None:
        self.closed = True


class Destination:
    """Mock destination; records each request and the body it received."""

    def __init__(self, respond=None):
        self.received: list[tuple[httpx.Request, bytes]] = []
        self._respond = respond

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        body = await request.aread()
        self.received.append((request, body))
        if self._respond is not None:
            return self._respond(request)
        return httpx.Response(200, stream=ChunkedStream([b'{"ok":true}']))


@pytest.fixture
def config():
    return Config()


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def logger():
    return RecordingLogger()


@pytest.fixture
def destination():
    return Destination()


@pytest.fixture
def make_client(config, provider, logger):
    """Build a TestClient around a given destination (lifespan included)."""
    clients = []

    def _make(destination, provider=provider, config=config):
        app = create_app(config, logger, provider=provider, transport=httpx.MockTransport(destination))
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(make_client, destination):
    return make_client(destination)
