"""Upstream feed client.

Fetching the feed is the only suspension point of a request: one GET, then
the body is handed to the reader and everything after that is synchronous.
There are no retries and no caching; a failed fetch surfaces as
``UpstreamFailureError``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

import httpx

from ical_filter.core.telemetry import feed_span, inject_trace_context
from ical_filter.errors import CalendarParseError, UpstreamFailureError
from ical_filter.models import RawCalendar
from ical_filter.reader import read_calendars

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "ical-filter"
DEFAULT_TIMEOUT_SECONDS = 20.0
_CONNECT_TIMEOUT_SECONDS = 10.0


class FeedClient:
    """Fetches calendar feeds over HTTP.

    Owns its ``httpx.AsyncClient`` unless one is injected (tests inject a
    client backed by ``httpx.MockTransport``). Safe to share across
    concurrent requests.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self._user_agent = user_agent
        self._owns_http_client = http_client is None
        self._http_client = (
            http_client
            if http_client is not None
            else httpx.AsyncClient(
                timeout=httpx.Timeout(timeout, connect=min(timeout, _CONNECT_TIMEOUT_SECONDS)),
                follow_redirects=True,
            )
        )

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self._http_client.aclose()

    async def fetch(self, url: str) -> str:
        """Return the body of *url* as text.

        Raises
        ------
        UpstreamFailureError
            Transport failure, invalid URL, or a non-2xx response.
        """
        with feed_span("fetch", url=url):
            headers = {"User-Agent": self._user_agent, **inject_trace_context()}
            try:
                response = await self._http_client.get(url, headers=headers)
            except (httpx.HTTPError, httpx.InvalidURL) as exc:
                logger.warning("Feed fetch failed for %s: %s", url, exc)
                raise UpstreamFailureError(
                    f"failed to fetch calendar feed: {exc}",
                    details={"url": url},
                ) from exc

            if response.status_code < 200 or response.status_code >= 300:
                logger.warning("Feed %s answered HTTP %d", url, response.status_code)
                raise UpstreamFailureError(
                    f"calendar feed answered HTTP {response.status_code}",
                    details={"url": url, "status": response.status_code},
                )

            logger.debug("Fetched %d bytes from %s", len(response.content), url)
            return response.text

    async def get_calendars(self, url: str) -> Iterator[RawCalendar | CalendarParseError]:
        """Fetch *url* and return a lazy sequence of its calendar blocks."""
        body = await self.fetch(url)
        return read_calendars(body)
