"""Shared fixtures for the HTTP API tests.

The app under test never touches the network: ``get_feed_client`` is
overridden with a ``FeedClient`` whose transport is an ``httpx.MockTransport``
driven by ``FakeUpstream``.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

import httpx
import pytest
from fastapi import FastAPI

from ical_filter.api.app import create_app
from ical_filter.api.deps import get_feed_client
from ical_filter.upstream import FeedClient

FEED_URL = "https://calendar.example.com/team.ics"


class FakeUpstream:
    """Serves canned feed bodies by URL and records every request."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._responses: dict[str, httpx.Response] = {}

    def serve(self, body: str, *, url: str = FEED_URL, status: int = 200) -> None:
        self._responses[url] = httpx.Response(status, text=body)

    def fail(self, exc_type: type[httpx.TransportError], *, url: str = FEED_URL) -> None:
        self._responses[url] = exc_type  # type: ignore[assignment]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self._responses.get(str(request.url))
        if response is None:
            return httpx.Response(404, text="no such feed")
        if isinstance(response, type):
            raise response("upstream unavailable", request=request)
        return response


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
async def feed_http_client(upstream: FakeUpstream) -> AsyncIterator[httpx.AsyncClient]:
    """The upstream-facing client; closed when the test finishes."""
    async with httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler)) as http_client:
        yield http_client


@pytest.fixture
async def app(feed_http_client: httpx.AsyncClient) -> AsyncIterator[FastAPI]:
    app = create_app()
    feed_client = FeedClient(feed_http_client)
    app.dependency_overrides[get_feed_client] = lambda: feed_client
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client
