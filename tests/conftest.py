"""Shared test fixtures for the caching proxy.

Provides a scriptable fake origin (served through httpx.MockTransport),
isolated cache directories and ready-made settings.
"""

import asyncio
from pathlib import Path

import httpx
import pytest

from caching_proxy.config import Settings
from caching_proxy.repositories import FileCacheRepository, HttpxOriginClient

ORIGIN_URL = "http://origin.test"


class FakeOrigin:
    """Origin server double.

    Answers every request with ``"<METHOD> <target>"`` unless a body is
    registered for the path, and records every request it sees. HEAD gets
    the length of the GET body and no payload. Bodies are streamed, so the
    client reads them the way it reads a real socket.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.bodies: dict[str, bytes] = {}
        self.status = 200
        self.extra_headers: list[tuple[str, str]] = []
        self.error: Exception | None = None
        self.delay = 0.0

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error

        target = request.url.raw_path.decode("ascii")
        method = "GET" if request.method == "HEAD" else request.method
        body = self.bodies.get(request.url.path, f"{method} {target}".encode())
        headers = [
            ("Content-Type", "text/plain"),
            ("Content-Length", str(len(body))),
            ("Set-Cookie", "session=abc"),
            ("Set-Cookie", "theme=dark"),
            ("X-Origin", "fake"),
            *self.extra_headers,
        ]
        if request.method == "HEAD":
            body = b""
        return httpx.Response(self.status, headers=headers, stream=httpx.ByteStream(body))

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def count(self, method: str | None = None) -> int:
        """Number of requests received, optionally for one method."""
        if method is None:
            return len(self.requests)
        return sum(1 for request in self.requests if request.method == method)


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    """An isolated, not yet existing cache directory."""
    return tmp_path / "cache"


@pytest.fixture
def fake_origin() -> FakeOrigin:
    return FakeOrigin()


@pytest.fixture
def repository(cache_dir: Path) -> FileCacheRepository:
    """Repository without expiration."""
    return FileCacheRepository(cache_dir)


@pytest.fixture
def origin_client(fake_origin: FakeOrigin) -> HttpxOriginClient:
    return HttpxOriginClient(ORIGIN_URL, transport=fake_origin.transport)


@pytest.fixture
def settings(cache_dir: Path) -> Settings:
    return Settings(
        host="127.0.0.1",
        port=3000,
        origin=ORIGIN_URL,
        unique_by_user=False,
        admin_prefix="/__cache__",
        cache_dir=str(cache_dir),
        cache_ttl=0.0,
        cache_sweep_interval=None,
        origin_timeout=None,
        log_level="info",
        log_format="console",
    )
