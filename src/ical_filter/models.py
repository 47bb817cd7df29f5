"""Data models shared by the reader, the extractor and the renderers.

Raw types mirror what the feed reader produces for one calendar block and are
consumed once by the extractor. ``NormalizedEvent`` is what survives
extraction: the guaranteed subset of event fields with every timestamp turned
into a UTC instant.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class RawProperty:
    """One content line of an event: name, optional value and parameters."""

    name: str
    value: str | None = None
    params: Mapping[str, Sequence[str]] = field(default_factory=dict)


@dataclass
class RawEvent:
    properties: list[RawProperty] = field(default_factory=list)


@dataclass
class RawCalendar:
    events: list[RawEvent] = field(default_factory=list)


@dataclass(frozen=True)
class NormalizedEvent:
    """An accepted event. ``uid``, ``summary`` and ``stamp`` are always set."""

    uid: str
    summary: str
    stamp: datetime
    created: datetime | None = None
    start: datetime | None = None
    end: datetime | None = None
