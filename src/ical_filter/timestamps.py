"""Timestamp normalization: raw DATE-TIME values to UTC instants.

A raw value is resolved in two attempts:

1. If the property carries exactly one ``TZID`` parameter value naming a zone
   known to ``zoneinfo``, the value is read as local ``YYYYMMDDTHHMMSS`` in
   that zone and converted to UTC.
2. Otherwise, or if the zoned read fails, the value is read as
   ``YYYYMMDDTHHMMSSZ`` in ``DEFAULT_ZONE``.

An unknown zone is treated as "no zone" and never aborts normalization; only a
value that fits neither form raises ``DateParseError``.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ical_filter.errors import DateParseError

logger = logging.getLogger(__name__)

# Zone used when no TZID resolves. Values in this zone must carry the Z suffix.
DEFAULT_ZONE: tzinfo = UTC

TZID_PARAM = "TZID"

LOCAL_FORMAT = "%Y%m%dT%H%M%S"
UTC_FORMAT = "%Y%m%dT%H%M%SZ"

# strptime accepts single-digit fields; these pin the exact widths.
_LOCAL_PATTERN = re.compile(r"\d{8}T\d{6}", re.ASCII)
_UTC_PATTERN = re.compile(r"\d{8}T\d{6}Z", re.ASCII)


def resolve_zone(params: Mapping[str, Sequence[str]]) -> ZoneInfo | None:
    """Return the zone named by a single-valued ``TZID`` parameter, if any."""
    values = params.get(TZID_PARAM)
    if not values or len(values) != 1:
        return None

    tzid = values[0]
    try:
        return ZoneInfo(tzid)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        logger.debug("Unresolvable TZID %r; falling back to %s", tzid, DEFAULT_ZONE)
        return None


def _parse_local(value: str, zone: ZoneInfo) -> datetime | None:
    if not _LOCAL_PATTERN.fullmatch(value):
        return None
    try:
        naive = datetime.strptime(value, LOCAL_FORMAT)
    except ValueError:
        return None

    local = naive.replace(tzinfo=zone)
    instant = local.astimezone(UTC)
    # Wall times skipped by a DST transition do not round-trip.
    if instant.astimezone(zone).replace(tzinfo=None) != naive:
        return None
    return instant


def _parse_default(value: str) -> datetime | None:
    if not _UTC_PATTERN.fullmatch(value):
        return None
    try:
        naive = datetime.strptime(value, UTC_FORMAT)
    except ValueError:
        return None
    return naive.replace(tzinfo=DEFAULT_ZONE).astimezone(UTC)


def resolve(value: str, params: Mapping[str, Sequence[str]] | None = None) -> datetime:
    """Resolve a raw DATE-TIME *value* and its *params* into a UTC instant.

    Raises
    ------
    DateParseError
        The value matches neither the zoned nor the ``Z``-suffixed form.
    """
    params = params or {}
    zone = resolve_zone(params)
    if zone is not None:
        instant = _parse_local(value, zone)
        if instant is not None:
            return instant

    instant = _parse_default(value)
    if instant is not None:
        return instant

    tzid_values = params.get(TZID_PARAM)
    tzid = ",".join(tzid_values) if tzid_values else None
    raise DateParseError(value, tzid)
