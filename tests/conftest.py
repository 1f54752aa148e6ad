"""Shared fixtures: a fake upstream behind httpx.MockTransport."""

from collections.abc import Callable

import httpx
import pytest
from fastapi.testclient import TestClient

from app import create_app
from core.config import Config, parse_config

UPSTREAM = "https://api.example.com"


class RecordingLogger:
    """In-memory RequestLogger."""

    def __init__(self) -> None:
        self.relayed: list[tuple[str, str]] = []
        self.preflights: list[str] = []
        self.responses: list[tuple[str, str, int]] = []
        self.errors: list[tuple[str, int, str]] = []

    def log_relay(self, method, url, headers, *, path):
        self.relayed.append((method, url))

    def log_preflight(self, path):
        self.preflights.append(path)

    def log_response(self, method, path, status, elapsed):
        self.responses.append((method, path, status))

    def log_error(self, kind, status, message):
        self.errors.append((kind, status, message))


class UpstreamStream(httpx.AsyncByteStream):
    """Unread response body, as a real network stream would be."""

    def __init__(self, content: bytes) -> None:
        self._content = content
        self.closed = False

    async def __aiter__(self):
        if self._content:
            yield self._content

    async def aclose(self) -> None:
        self.closed = True


class FakeUpstream:
    """Records every request and answers with ``handler``."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.streams: list[UpstreamStream] = []
        self.handler: Callable[[httpx.Request], httpx.Response] = lambda request: self.response(
            200, content=b"ok"
        )

    def response(self, status: int, headers=None, content: bytes = b"") -> httpx.Response:
        """Build a response whose body is still unread when the relay gets it."""
        stream = UpstreamStream(content)
        self.streams.append(stream)
        return httpx.Response(status, headers=headers, stream=stream)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


def make_config(base_url: str = UPSTREAM) -> Config:
    return parse_config({"upstream": {"base_url": base_url}, "proxy": {"dashboard": False}})


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def make_client(upstream, logger):
    clients = []

    def factory(base_url: str = UPSTREAM) -> TestClient:
        app = create_app(make_config(base_url), logger, transport=httpx.MockTransport(upstream))
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield factory
    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(make_client) -> TestClient:
    return make_client()
