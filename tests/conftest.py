"""Shared fixtures for the ical-filter test suite."""

from __future__ import annotations

import pytest

from ical_filter.filters import Filter, parse_filter


@pytest.fixture
def standup_filter() -> list[Filter]:
    return [parse_filter("equals:Standup")]
