"""Calendar pipeline: flatten a feed into normalized events or error items.

``run_pipeline`` is a generator. It is pull-driven, single-pass and keeps
source order (calendar order, then event order within a calendar). It never
stops on a bad item: a calendar block that failed to parse and an event whose
timestamps are malformed each become one error item in the output, and the
next item is processed as usual.

Stopping at the first error is a caller policy, not something the pipeline
does. ``collect_events`` implements that policy and is what the HTTP layer
uses, so one malformed event fails the whole request while events that merely
lack a mandatory field are dropped silently.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Sequence

from ical_filter.errors import (
    CalendarParseError,
    DateParseError,
    IcalFilterError,
    InconsistencyError,
)
from ical_filter.events import extract_event
from ical_filter.filters import Filter
from ical_filter.models import NormalizedEvent, RawCalendar

logger = logging.getLogger(__name__)

PipelineItem = NormalizedEvent | IcalFilterError


def run_pipeline(
    calendars: Iterable[RawCalendar | CalendarParseError],
    filters: Sequence[Filter],
) -> Iterator[PipelineItem]:
    """Yield accepted events and per-item errors in source order."""
    for calendar in calendars:
        if isinstance(calendar, CalendarParseError):
            yield calendar
            continue

        for raw_event in calendar.events:
            try:
                event = extract_event(raw_event, filters)
            except DateParseError as exc:
                error = InconsistencyError(
                    f"malformed event timestamp: {exc}",
                    details={"value": exc.value, "tzid": exc.tzid},
                )
                error.__cause__ = exc
                yield error
                continue

            if event is not None:
                yield event


def collect_events(items: Iterable[PipelineItem]) -> list[NormalizedEvent]:
    """Drain *items*, raising the first error item encountered."""
    events: list[NormalizedEvent] = []
    for item in items:
        if isinstance(item, IcalFilterError):
            logger.info("Aborting after %d event(s): %s", len(events), item)
            raise item
        events.append(item)
    return events
