import json
from pathlib import Path
from typing import Any

import httpx
import pytest

import pandorakit

BASE = "https://pandora.test"
ROOT = f"{BASE}/"
LOGIN_URL = f"{BASE}/api/v1/auth/login"


@pytest.fixture
def fixture_dir() -> Path:
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def load_fixture(fixture_dir):
    def _loader(name: str) -> Any:
        with open(fixture_dir / name, "r", encoding="utf-8") as f:
            return json.load(f)
    return _loader


@pytest.fixture
def login_fixture(load_fixture):
    return load_fixture("login_result.json")


class MockPandora:
    """Route table keyed by (METHOD, url-without-query); records every request.

    A route value may be an ``httpx.Response``, an exception instance to raise,
    or a callable building the response (for streamed bodies).
    """

    def __init__(self, routes: dict[tuple[str, str], Any] | None = None):
        self.routes = routes or {}
        self.requests: list[httpx.Request] = []
        self.transport = httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = f"{request.url.scheme}://{request.url.host}{request.url.path}"
        route = self.routes.get((request.method, url))
        if isinstance(route, Exception):
            raise route
        if callable(route):
            return route(request)
        if route is None:
            return httpx.Response(404, json={})
        # Fresh copy so one route can answer several requests.
        return httpx.Response(route.status_code, headers=route.headers.multi_items(), content=route.content)

    def gateway(self, jar=None) -> pandorakit.ApiGateway:
        return pandorakit.ApiGateway(jar=jar, base_url=BASE, transport=self.transport)

    def async_gateway(self, jar=None) -> pandorakit.AsyncApiGateway:
        return pandorakit.AsyncApiGateway(jar=jar, base_url=BASE, transport=self.transport)

    def paths(self) -> list[str]:
        return [request.url.path for request in self.requests]


@pytest.fixture
def mock_pandora():
    def _factory(routes=None) -> MockPandora:
        return MockPandora(routes=routes)
    return _factory


@pytest.fixture
def set_cookie_response():
    def _make(*cookies: str, status: int = 200, **kwargs) -> httpx.Response:
        headers = [("Set-Cookie", c) for c in cookies]
        return httpx.Response(status, headers=headers, **kwargs)
    return _make
