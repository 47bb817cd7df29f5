"""Filter predicates over event summaries.

A filter specification is ``[!]operator:content``. The operator and content
are split at the first colon, so the content may itself contain colons. A
leading ``!`` inverts the result. Several specifications can be joined with
``~``; a list of filters is combined with logical AND and an empty list
accepts everything.

Operators::

    equals:X       candidate == X
    startsWith:X   candidate starts with X
    endsWith:X     candidate ends with X
    contains:X     X occurs in candidate
    true:<any>     always matches (content ignored)
    regex:X        re.search(X, candidate) finds a match

Regex content is compiled when the filter is parsed, so an invalid pattern is
reported before any event is looked at.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import assert_never

from ical_filter.errors import InvalidRegexError, MissingColonError, UnknownOperatorError

FILTER_SEPARATOR = "~"
INVERT_PREFIX = "!"


@dataclass(frozen=True)
class Equals:
    text: str


@dataclass(frozen=True)
class StartsWith:
    text: str


@dataclass(frozen=True)
class EndsWith:
    text: str


@dataclass(frozen=True)
class Contains:
    text: str


@dataclass(frozen=True)
class AlwaysTrue:
    pass


@dataclass(frozen=True)
class Regex:
    pattern: re.Pattern[str]


FilterOperator = Equals | StartsWith | EndsWith | Contains | AlwaysTrue | Regex

# Listed in this order in UnknownOperatorError messages.
OPERATOR_NAMES: tuple[str, ...] = (
    "equals",
    "startsWith",
    "endsWith",
    "contains",
    "true",
    "regex",
)


def _build_operator(spec: str, name: str, content: str) -> FilterOperator:
    match name:
        case "equals":
            return Equals(content)
        case "startsWith":
            return StartsWith(content)
        case "endsWith":
            return EndsWith(content)
        case "contains":
            return Contains(content)
        case "true":
            return AlwaysTrue()
        case "regex":
            try:
                return Regex(re.compile(content))
            except re.error as exc:
                raise InvalidRegexError(spec, content, exc) from exc
        case _:
            raise UnknownOperatorError(spec, name, OPERATOR_NAMES)


def _evaluate(operator: FilterOperator, candidate: str) -> bool:
    match operator:
        case Equals(text):
            return candidate == text
        case StartsWith(text):
            return candidate.startswith(text)
        case EndsWith(text):
            return candidate.endswith(text)
        case Contains(text):
            return text in candidate
        case AlwaysTrue():
            return True
        case Regex(pattern):
            return pattern.search(candidate) is not None
        case _:
            assert_never(operator)


@dataclass(frozen=True)
class Filter:
    """A single parsed filter: one operator, optionally inverted."""

    operator: FilterOperator
    invert: bool = False

    def matches(self, candidate: str) -> bool:
        result = _evaluate(self.operator, candidate)
        return not result if self.invert else result


def parse_filter(spec: str) -> Filter:
    """Parse one ``[!]operator:content`` specification.

    Raises
    ------
    MissingColonError
        No colon separates operator and content.
    UnknownOperatorError
        The operator is not one of ``OPERATOR_NAMES``.
    InvalidRegexError
        A ``regex`` filter's content does not compile.
    """
    invert = spec.startswith(INVERT_PREFIX)
    body = spec[len(INVERT_PREFIX) :] if invert else spec

    name, colon, content = body.partition(":")
    if not colon:
        raise MissingColonError(spec)

    return Filter(operator=_build_operator(spec, name, content), invert=invert)


def parse_filter_list(spec: str) -> list[Filter]:
    """Parse ``~``-separated specifications; the first bad one aborts the list."""
    if not spec:
        return []
    return [parse_filter(part) for part in spec.split(FILTER_SEPARATOR)]


def parse_filter_params(values: Iterable[str]) -> list[Filter]:
    """Parse a repeated ``filter`` parameter into one combined list.

    Each value may itself hold several ``~``-joined specifications; all
    filters are kept in the order they were given.
    """
    filters: list[Filter] = []
    for value in values:
        filters.extend(parse_filter_list(value))
    return filters


def matches_all(filters: Sequence[Filter], candidate: str) -> bool:
    """AND over *filters*; an empty sequence accepts every candidate."""
    return all(f.matches(candidate) for f in filters)
