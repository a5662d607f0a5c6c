"""
Shared fixtures: in-process stand-ins for the exchange's HTTP surfaces.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Mapping, Optional

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from polynuts.clients.polymarket_client import PolymarketClient
from polynuts.config import Credentials, LogConfig, ServerConfig, Settings


@dataclass
class RecordedRequest:
    """A request as seen by the stub upstream."""
    method: str
    path_qs: str
    headers: Mapping[str, str]
    body: str


@dataclass
class StubRoute:
    status: int = 200
    json: Any = None
    text: Optional[str] = None
    delay: float = 0.0


class StubUpstream:
    """
    aiohttp application answering canned responses per (method, path).

    Unregistered paths answer 404. Every request is recorded in arrival order.
    """

    def __init__(self):
        self.routes: dict[tuple[str, str], StubRoute] = {}
        self.requests: list[RecordedRequest] = []
        app = web.Application()
        app.router.add_route("*", "/{tail:.*}", self._dispatch)
        self.server = TestServer(app)

    async def start(self) -> None:
        await self.server.start_server()

    async def close(self) -> None:
        await self.server.close()

    @property
    def url(self) -> str:
        return str(self.server.make_url("/")).rstrip("/")

    @property
    def paths(self) -> list[str]:
        return [r.path_qs for r in self.requests]

    def add(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        status: int = 200,
        text: Optional[str] = None,
        delay: float = 0.0,
    ) -> None:
        self.routes[(method.upper(), path)] = StubRoute(status=status, json=json, text=text, delay=delay)

    async def _dispatch(self, request: web.Request) -> web.Response:
        self.requests.append(
            RecordedRequest(
                method=request.method,
                path_qs=request.path_qs,
                headers=request.headers.copy(),
                body=await request.text(),
            )
        )
        route = self.routes.get((request.method, request.path))
        if route is None:
            return web.json_response({"message": "not found"}, status=404)
        if route.delay:
            await asyncio.sleep(route.delay)
        if route.text is not None:
            return web.Response(status=route.status, text=route.text)
        return web.json_response(route.json, status=route.status)


@pytest_asyncio.fixture
async def clob():
    """Stub for the authenticated trading surface."""
    stub = StubUpstream()
    await stub.start()
    yield stub
    await stub.close()


@pytest_asyncio.fixture
async def data_api():
    """Stub for the public data surface."""
    stub = StubUpstream()
    await stub.start()
    yield stub
    await stub.close()


@pytest.fixture
def credentials(clob):
    """Credentials pointed at the CLOB stub, without a wallet address."""
    return Credentials(
        api_key="key-123",
        secret="s3cret",
        passphrase="pass-phrase",
        base_url=clob.url,
    )


@pytest_asyncio.fixture
async def client(credentials, data_api):
    """Exchange client wired to both stubs."""
    c = PolymarketClient(credentials, data_base_url=data_api.url, timeout=5.0)
    yield c
    await c.close()


@pytest.fixture
def make_settings():
    """Factory for Settings that never read the environment."""
    def _make(credentials: Optional[Credentials] = None, development: bool = False) -> Settings:
        return Settings(
            logging=LogConfig(log_level="INFO", json_logging=False),
            server=ServerConfig(host="127.0.0.1", port=8000, development=development),
            credentials=credentials,
        )
    return _make
