"""Feed endpoints: fetch a calendar feed, normalize and filter its events.

Provides a single router mounted at ``/v1``:

- ``GET /v1/json``: accepted events as JSON records.
- ``GET /v1/ical``: accepted events as an iCalendar document.

Both take ``url`` (required) and ``filter`` (repeatable; each value may hold
several ``~``-joined filter specs). Filters are parsed before the feed is
fetched, so a malformed filter never reaches upstream. The pipeline is run
with the stop-at-first-error policy: one malformed event fails the request.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from ical_filter.api.deps import get_feed_client
from ical_filter.api.models import ApiMeta, ApiResponse
from ical_filter.api.models.events import EventRecord
from ical_filter.core.telemetry import feed_span
from ical_filter.filters import parse_filter_params
from ical_filter.models import NormalizedEvent
from ical_filter.pipeline import collect_events, run_pipeline
from ical_filter.render import ICAL_CONTENT_TYPE, render_calendar
from ical_filter.upstream import FeedClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["feeds"])


async def _filtered_events(
    url: str,
    filter_values: list[str],
    client: FeedClient,
) -> list[NormalizedEvent]:
    filters = parse_filter_params(filter_values)
    calendars = await client.get_calendars(url)
    with feed_span("pipeline", url=url, filters=len(filters)):
        events = collect_events(run_pipeline(calendars, filters))
    logger.info("Selected %d event(s) from %s", len(events), url)
    return events


@router.get("/json")
async def get_json(
    url: str = Query(description="Location of the calendar feed"),
    filter_values: list[str] = Query(default=[], alias="filter"),
    client: FeedClient = Depends(get_feed_client),
) -> ApiResponse[list[EventRecord]]:
    """Return the accepted events as JSON records."""
    events = await _filtered_events(url, filter_values, client)
    return ApiResponse(
        data=[EventRecord.from_event(e) for e in events],
        meta=ApiMeta(count=len(events)),
    )


@router.get("/ical", response_class=Response)
async def get_ical(
    url: str = Query(description="Location of the calendar feed"),
    filter_values: list[str] = Query(default=[], alias="filter"),
    client: FeedClient = Depends(get_feed_client),
) -> Response:
    """Return the accepted events as an iCalendar document."""
    events = await _filtered_events(url, filter_values, client)
    return Response(content=render_calendar(events), media_type=ICAL_CONTENT_TYPE)
