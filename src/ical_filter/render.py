"""Calendar-document rendering of normalized events."""

from __future__ import annotations

from collections.abc import Iterable

from icalendar import Calendar, Event

from ical_filter.models import NormalizedEvent

PRODID = "-//ical-filter//EN"
ICAL_CONTENT_TYPE = "text/calendar; charset=utf-8"


def to_ical_event(event: NormalizedEvent) -> Event:
    """Build a VEVENT; instants are UTC so they render as ``YYYYMMDDTHHMMSSZ``."""
    component = Event()
    component.add("uid", event.uid)
    component.add("dtstamp", event.stamp)
    component.add("summary", event.summary)
    if event.start is not None:
        component.add("dtstart", event.start)
    if event.end is not None:
        component.add("dtend", event.end)
    if event.created is not None:
        component.add("created", event.created)
    return component


def render_calendar(events: Iterable[NormalizedEvent]) -> bytes:
    calendar = Calendar()
    calendar.add("prodid", PRODID)
    calendar.add("version", "2.0")
    for event in events:
        calendar.add_component(to_ical_event(event))
    return calendar.to_ical()
