"""Raw iCalendar reader.

Turns the body of a feed into a lazy sequence of ``RawCalendar`` blocks, or a
``CalendarParseError`` for each block that could not be read. Content lines
are unfolded and split into name, parameters and value by ``icalendar``'s
content-line parser; values are kept as text so that timestamps can be
normalized with explicit rules later on.

Only top-level VEVENT components of a VCALENDAR become ``RawEvent`` objects.
Nested components (a VALARM inside a VEVENT, VTIMEZONE, VTODO, ...) are
skipped and never contribute properties to an event.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from typing import Any

from icalendar.parser import Contentlines

from ical_filter.errors import CalendarParseError
from ical_filter.models import RawCalendar, RawEvent, RawProperty

logger = logging.getLogger(__name__)

VCALENDAR = "VCALENDAR"
VEVENT = "VEVENT"


def _normalize_params(params: Mapping[str, Any]) -> dict[str, list[str]]:
    """Parameter names upper-cased, every value a list of strings."""
    normalized: dict[str, list[str]] = {}
    for key, value in params.items():
        if isinstance(value, str):
            normalized[key.upper()] = [value]
        else:
            normalized[key.upper()] = [str(v) for v in value]
    return normalized


class _CalendarBlock:
    """Accumulates one BEGIN:VCALENDAR ... END:VCALENDAR block."""

    def __init__(self, lineno: int) -> None:
        self.lineno = lineno
        self.calendar = RawCalendar()
        self.stack: list[str] = []
        self.event: RawEvent | None = None
        self.error: CalendarParseError | None = None

    def fail(self, message: str, lineno: int) -> None:
        # Keep the first problem; later ones are usually fallout from it.
        if self.error is None:
            self.error = CalendarParseError(
                f"line {lineno}: {message}",
                details={"line": lineno, "calendar_line": self.lineno},
            )

    def begin(self, component: str) -> None:
        if component == VEVENT and not self.stack:
            self.event = RawEvent()
        self.stack.append(component)

    def end(self, component: str, lineno: int) -> None:
        if not self.stack:
            self.fail(f"END:{component} without matching BEGIN", lineno)
            return

        opened = self.stack.pop()
        if opened != component:
            self.fail(f"END:{component} closes BEGIN:{opened}", lineno)

        if opened == VEVENT and not self.stack and self.event is not None:
            self.calendar.events.append(self.event)
            self.event = None

    def add(self, name: str, value: str, params: Mapping[str, Any]) -> None:
        if self.event is not None and len(self.stack) == 1:
            self.event.properties.append(
                RawProperty(name=name, value=value, params=_normalize_params(params))
            )

    def close(self, lineno: int) -> RawCalendar | CalendarParseError:
        if self.stack:
            self.fail(f"END:{VCALENDAR} while BEGIN:{self.stack[-1]} is still open", lineno)
        return self.error if self.error is not None else self.calendar


def read_calendars(text: str) -> Iterator[RawCalendar | CalendarParseError]:
    """Yield each calendar block of *text* in document order.

    A run of content outside any VCALENDAR block yields a single error.
    """
    block: _CalendarBlock | None = None
    stray = False
    lineno = 0

    for lineno, line in enumerate(Contentlines.from_ical(text.lstrip("\ufeff")), start=1):
        if not line:
            continue

        try:
            name, params, value = line.parts()
        except ValueError as exc:
            if block is not None:
                block.fail(str(exc), lineno)
            elif not stray:
                stray = True
                yield CalendarParseError(f"line {lineno}: {exc}", details={"line": lineno})
            continue

        keyword = name.upper()
        component = value.upper()

        if block is None:
            if keyword == "BEGIN" and component == VCALENDAR:
                block = _CalendarBlock(lineno)
                stray = False
            elif not stray:
                stray = True
                yield CalendarParseError(
                    f"line {lineno}: expected BEGIN:{VCALENDAR}, found {name}",
                    details={"line": lineno},
                )
            continue

        if keyword == "BEGIN":
            block.begin(component)
        elif keyword == "END" and component == VCALENDAR:
            item = block.close(lineno)
            if isinstance(item, CalendarParseError):
                logger.debug("Calendar block at line %d is unreadable: %s", block.lineno, item)
            yield item
            block = None
        elif keyword == "END":
            block.end(component, lineno)
        else:
            block.add(name, value, params)

    if block is not None:
        block.fail(f"unexpected end of input inside {VCALENDAR}", lineno)
        yield block.error  # type: ignore[misc]
