"""Event extraction: one raw VEVENT to a ``NormalizedEvent``.

Rules:
- Recognized property names are UID, SUMMARY, DTSTAMP, DTSTART, DTEND and
  CREATED (case-sensitive). Everything else is ignored.
- A repeated property overwrites the earlier one.
- Missing UID, SUMMARY or DTSTAMP drops the event without an error.
- A DTSTAMP that cannot be parsed raises ``DateParseError``, even when the
  event would otherwise be dropped or filtered out.
- UID and SUMMARY are TEXT values and are unescaped; only SUMMARY is
  matched against the filters.
- DTSTART, DTEND and CREATED are parsed only once the event is accepted; the
  first failure raises.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from icalendar.prop import vText

from ical_filter.filters import Filter, matches_all
from ical_filter.models import NormalizedEvent, RawEvent, RawProperty
from ical_filter.timestamps import resolve


def _decode_text(value: str | None) -> str | None:
    """Undo iCalendar TEXT escaping of commas, semicolons and backslashes."""
    if value is None:
        return None
    return str(vText.from_ical(value))


def _resolve_optional(prop: RawProperty | None) -> datetime | None:
    if prop is None or prop.value is None:
        return None
    return resolve(prop.value, prop.params)


def extract_event(raw_event: RawEvent, filters: Sequence[Filter]) -> NormalizedEvent | None:
    """Build a ``NormalizedEvent`` from *raw_event*, or ``None`` if it is dropped.

    Raises
    ------
    DateParseError
        DTSTAMP, or DTSTART/DTEND/CREATED of an accepted event, is malformed.
    """
    uid: str | None = None
    summary: str | None = None
    stamp: datetime | None = None
    start: RawProperty | None = None
    end: RawProperty | None = None
    created: RawProperty | None = None

    for prop in raw_event.properties:
        match prop.name:
            case "UID":
                uid = _decode_text(prop.value)
            case "SUMMARY":
                summary = _decode_text(prop.value)
            case "DTSTAMP":
                stamp = None if prop.value is None else resolve(prop.value, prop.params)
            case "DTSTART":
                start = prop
            case "DTEND":
                end = prop
            case "CREATED":
                created = prop
            case _:
                pass

    if uid is None or summary is None or stamp is None:
        return None

    if not matches_all(filters, summary):
        return None

    return NormalizedEvent(
        uid=uid,
        summary=summary,
        stamp=stamp,
        start=_resolve_optional(start),
        end=_resolve_optional(end),
        created=_resolve_optional(created),
    )
