"""Error taxonomy for ical-filter.

Every user-visible failure derives from ``IcalFilterError`` and carries a
stable ``code`` plus the HTTP ``status_code`` the API boundary maps it to:

- ``BadRequestError`` (400): caller-supplied input is malformed. Filter parse
  failures live here and are never retried.
- ``UpstreamFailureError`` (503): the feed could not be fetched.
- ``InconsistencyError`` (500): the feed itself is malformed, including fatal
  timestamp parse failures found while normalizing an event.

``DateParseError`` is deliberately *not* an ``IcalFilterError``: it is raised
by the timestamp normalizer and the calendar pipeline wraps it into an
``InconsistencyError`` item.
"""

from __future__ import annotations

import enum


class FilterErrorKind(enum.StrEnum):
    """Why a filter specification was rejected."""

    MISSING_COLON = "MissingColon"
    UNKNOWN_OPERATOR = "UnknownOperator"
    INVALID_REGEX = "InvalidRegex"


class IcalFilterError(Exception):
    """Base class for errors surfaced to callers."""

    code: str = "INTERNAL_ERROR"
    status_code: int = 500

    def __init__(self, message: str, *, details: dict | None = None) -> None:
        self.message = message
        self.details = details
        super().__init__(message)


class BadRequestError(IcalFilterError):
    """Raised when the caller sent a malformed request."""

    code = "BAD_REQUEST"
    status_code = 400


class FilterParseError(BadRequestError):
    """Raised when a filter specification cannot be parsed."""

    code = "FILTER_PARSE_ERROR"
    kind: FilterErrorKind

    def __init__(self, spec: str, message: str) -> None:
        self.spec = spec
        super().__init__(message, details={"kind": str(self.kind), "filter": spec})


class MissingColonError(FilterParseError):
    kind = FilterErrorKind.MISSING_COLON

    def __init__(self, spec: str) -> None:
        super().__init__(spec, f"filter {spec!r} is missing ':' between operator and content")


class UnknownOperatorError(FilterParseError):
    kind = FilterErrorKind.UNKNOWN_OPERATOR

    def __init__(self, spec: str, operator: str, valid: tuple[str, ...]) -> None:
        self.operator = operator
        super().__init__(
            spec,
            f"unknown filter operator {operator!r}; options are {', '.join(valid)}",
        )


class InvalidRegexError(FilterParseError):
    kind = FilterErrorKind.INVALID_REGEX

    def __init__(self, spec: str, pattern: str, cause: Exception) -> None:
        self.pattern = pattern
        self.cause = cause
        super().__init__(spec, f"invalid regex {pattern!r}: {cause}")


class UpstreamFailureError(IcalFilterError):
    """Raised when the calendar feed cannot be retrieved."""

    code = "UPSTREAM_FAILURE"
    status_code = 503


class InconsistencyError(IcalFilterError):
    """Raised (or emitted as a pipeline item) when feed data is malformed."""

    code = "INCONSISTENCY"
    status_code = 500


class CalendarParseError(InconsistencyError):
    """A single calendar block of the feed could not be parsed."""

    code = "CALENDAR_PARSE_ERROR"


class DateParseError(ValueError):
    """Raised when a timestamp matches neither the zoned nor the UTC form."""

    kind = "UnparsableTimestamp"

    def __init__(self, value: str, tzid: str | None = None) -> None:
        self.value = value
        self.tzid = tzid
        msg = f"unparsable timestamp {value!r}"
        if tzid:
            msg += f" (TZID={tzid})"
        super().__init__(msg)
