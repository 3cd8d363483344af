# === NAVMAP v1 ===
# {
#   "module": "tests.fixtures.http_mocking",
#   "purpose": "HTTP mocking fixtures for hermetic probe and engine testing",
#   "sections": [
#     {"id": "mock-response-builder", "name": "MockResponseBuilder", "anchor": "class-mock-response-builder", "kind": "class"},
#     {"id": "mock-routes", "name": "MockRoutes", "anchor": "class-mock-routes", "kind": "class"},
#     {"id": "http-routes-fixture", "name": "http_routes", "anchor": "fixture-http-routes", "kind": "fixture"},
#     {"id": "http-client-fixture", "name": "http_client", "anchor": "fixture-http-client", "kind": "fixture"}
#   ]
# }
# === /NAVMAP ===

"""
HTTP mocking fixtures for hermetic network testing.

Provides an HTTPX ``MockTransport`` driven by a route table so probes and the
resolution engine can be exercised without real network access. Every request
is recorded, which lets tests assert that a code path made no network calls.
"""

from __future__ import annotations

import json
from typing import Any, AsyncIterator, Awaitable, Callable, Optional, Union

import httpx
import pytest
import pytest_asyncio

from ContentRouter.network.client import create_http_client

Handler = Callable[[httpx.Request], Union[httpx.Response, Awaitable[httpx.Response]]]


class MockResponseBuilder:
    """Builder for constructing mock HTTP responses with fluent API."""

    def __init__(self, status_code: int = 200, content: bytes = b""):
        self.status_code = status_code
        self.content = content
        self.headers: dict[str, str] = {}

    def with_json(self, data: Any) -> MockResponseBuilder:
        """Set response content as JSON."""
        self.content = json.dumps(data).encode("utf-8")
        self.headers["content-type"] = "application/json"
        return self

    def with_location(self, location: str) -> MockResponseBuilder:
        self.headers["location"] = location
        return self

    def build(self) -> httpx.Response:
        return httpx.Response(
            status_code=self.status_code,
            content=self.content,
            headers=self.headers,
        )


class MockRoutes:
    """Route table backing an ``httpx.MockTransport``.

    Routes match on the full URL string and, optionally, the method.
    Unmatched requests get a 404.
    """

    def __init__(self) -> None:
        self._routes: dict[tuple[Optional[str], str], Handler] = {}
        self.requests: list[httpx.Request] = []
        self.transport = httpx.MockTransport(self._dispatch)

    async def _dispatch(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)
        handler = self._routes.get((request.method, url)) or self._routes.get((None, url))
        if handler is None:
            return httpx.Response(404, content=b"not mocked")
        result = handler(request)
        if isinstance(result, httpx.Response):
            return result
        return await result

    def add(self, url: str, handler: Handler, *, method: Optional[str] = None) -> None:
        self._routes[(method, url)] = handler

    def respond(
        self,
        url: str,
        status_code: int = 200,
        *,
        json_body: Any = None,
        content: bytes = b"",
        method: Optional[str] = None,
    ) -> None:
        builder = MockResponseBuilder(status_code, content)
        if json_body is not None:
            builder.with_json(json_body)
        self.add(url, lambda request: builder.build(), method=method)

    def redirect(
        self, url: str, location: str, status_code: int = 301, *, method: Optional[str] = None
    ) -> None:
        builder = MockResponseBuilder(status_code).with_location(location)
        self.add(url, lambda request: builder.build(), method=method)

    def fail(self, url: str, *, method: Optional[str] = None) -> None:
        def _raise(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        self.add(url, _raise, method=method)

    def calls(self, method: Optional[str] = None) -> list[str]:
        return [
            str(request.url)
            for request in self.requests
            if method is None or request.method == method
        ]


@pytest.fixture
def http_routes() -> MockRoutes:
    """Provide an empty route table; register routes before issuing requests."""
    return MockRoutes()


@pytest_asyncio.fixture
async def http_client(http_routes: MockRoutes) -> AsyncIterator[httpx.AsyncClient]:
    """Provide a router-configured async client wired to ``http_routes``."""
    async with create_http_client(timeout_s=5.0, transport=http_routes.transport) as client:
        yield client
