"""Shared test fixtures."""

import inspect
from collections.abc import Awaitable, Callable

import httpx
import pytest

from ltcms_client.api import CmsApi
from ltcms_client.session import SessionToken
from ltcms_client.transport import TransportGateway

BASE_URL = "http://cms.test/api"

Handler = Callable[[httpx.Request], httpx.Response | Awaitable[httpx.Response]]


class FakeApi:
    """Routes requests to per-endpoint handlers and records them."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Handler] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, handler: Handler | httpx.Response) -> None:
        """Register a handler (or fixed response) for METHOD /api<path>."""
        if isinstance(handler, httpx.Response):
            fixed = handler
            self.routes[(method, f"/api{path}")] = lambda request: httpx.Response(
                fixed.status_code, headers=fixed.headers, content=fixed.content
            )
        else:
            self.routes[(method, f"/api{path}")] = handler

    def calls(self, method: str, path: str) -> int:
        """Number of requests received for METHOD /api<path>."""
        return sum(
            1
            for r in self.requests
            if r.method == method and r.url.path == f"/api{path}"
        )

    async def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            raw_path = request.url.raw_path.split(b"?", 1)[0].decode("ascii")
            handler = self.routes.get((request.method, raw_path))
        if handler is None:
            return httpx.Response(404, json={"error": "Not found"})
        result = handler(request)
        if inspect.isawaitable(result):
            result = await result
        return result


@pytest.fixture
def fake_api() -> FakeApi:
    return FakeApi()


@pytest.fixture
def http_client(fake_api: FakeApi) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(fake_api.handle))


@pytest.fixture
def session() -> SessionToken:
    return SessionToken()


@pytest.fixture
def gateway(http_client: httpx.AsyncClient, session: SessionToken) -> TransportGateway:
    return TransportGateway(http_client, session=session, base_url=BASE_URL, timeout=2.0)


@pytest.fixture
def api(gateway: TransportGateway) -> CmsApi:
    return CmsApi(gateway)
