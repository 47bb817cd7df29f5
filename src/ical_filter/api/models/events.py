"""Event API models."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from ical_filter.models import NormalizedEvent


class EventRecord(BaseModel):
    """A normalized event as returned by ``/v1/json``.

    Instants serialize as ISO-8601 UTC text, e.g. ``1970-01-01T00:00:00Z``.
    """

    uid: str
    summary: str
    stamp: datetime
    created: datetime | None = None
    start: datetime | None = None
    end: datetime | None = None

    @classmethod
    def from_event(cls, event: NormalizedEvent) -> EventRecord:
        return cls(
            uid=event.uid,
            summary=event.summary,
            stamp=event.stamp,
            created=event.created,
            start=event.start,
            end=event.end,
        )
