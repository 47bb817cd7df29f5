"""Tests for event extraction."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from _test_helpers import prop, raw_event

from ical_filter.errors import DateParseError
from ical_filter.events import extract_event
from ical_filter.filters import parse_filter_list
from ical_filter.models import NormalizedEvent, RawEvent

pytestmark = pytest.mark.unit

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


class TestAcceptedEvents:
    def test_minimal_event(self):
        event = extract_event(raw_event(), [])
        assert event == NormalizedEvent(uid="evt-1", summary="Standup", stamp=EPOCH)
        assert event.start is None
        assert event.end is None
        assert event.created is None

    def test_all_timestamps(self):
        raw = raw_event(
            "evt-1",
            "Standup",
            "19700101T000000Z",
            prop("DTSTART", "19700101T000000", TZID="America/New_York"),
            prop("DTEND", "19700101T010000Z"),
            prop("CREATED", "19691231T120000Z"),
        )
        event = extract_event(raw, [])
        assert event.start == datetime(1970, 1, 1, 5, 0, tzinfo=UTC)
        assert event.end == datetime(1970, 1, 1, 1, 0, tzinfo=UTC)
        assert event.created == datetime(1969, 12, 31, 12, 0, tzinfo=UTC)

    def test_dtstamp_uses_its_own_params(self):
        raw = RawEvent(
            properties=[
                prop("UID", "evt-1"),
                prop("SUMMARY", "Standup"),
                prop("DTSTAMP", "19700101T000000", TZID="Europe/Amsterdam"),
            ]
        )
        assert extract_event(raw, []).stamp == datetime(1969, 12, 31, 23, 0, tzinfo=UTC)

    def test_unrecognized_properties_are_ignored(self):
        raw = raw_event(
            "evt-1",
            "Standup",
            "19700101T000000Z",
            prop("LOCATION", "Room 1"),
            prop("DTSTART", "19700101T000000Z", VALUE="DATE-TIME"),
            prop("X-CUSTOM", "whatever"),
        )
        event = extract_event(raw, [])
        assert event.start == EPOCH

    def test_names_are_case_sensitive(self):
        raw = RawEvent(
            properties=[
                prop("UID", "evt-1"),
                prop("summary", "Standup"),
                prop("DTSTAMP", "19700101T000000Z"),
            ]
        )
        assert extract_event(raw, []) is None

    def test_duplicates_last_write_wins(self):
        raw = raw_event(
            "evt-1",
            "First",
            "19700101T000000Z",
            prop("SUMMARY", "Second"),
            prop("DTSTART", "19700101T000000Z"),
            prop("DTSTART", "19700102T000000Z"),
        )
        event = extract_event(raw, [])
        assert event.summary == "Second"
        assert event.start == datetime(1970, 1, 2, tzinfo=UTC)

    def test_text_values_are_unescaped(self):
        raw = raw_event("evt\\,1", "Standup\\, planning\\; retro", "19700101T000000Z")
        event = extract_event(raw, [])
        assert event.uid == "evt,1"
        assert event.summary == "Standup, planning; retro"

    def test_empty_summary_is_still_observed(self):
        event = extract_event(raw_event(summary=""), [])
        assert event is not None
        assert event.summary == ""

    def test_valueless_optional_property_is_absent(self):
        raw = raw_event("evt-1", "Standup", "19700101T000000Z", prop("DTSTART", None))
        assert extract_event(raw, []).start is None


class TestDroppedEvents:
    @pytest.mark.parametrize(
        "kwargs",
        [{"uid": None}, {"summary": None}, {"stamp": None}],
        ids=["no-uid", "no-summary", "no-dtstamp"],
    )
    def test_missing_mandatory_field(self, kwargs):
        assert extract_event(raw_event(**kwargs), []) is None

    def test_valueless_later_uid_overwrites_earlier(self):
        raw = raw_event("evt-1", "Standup", "19700101T000000Z", prop("UID", None))
        assert extract_event(raw, []) is None

    def test_rejected_by_filter(self):
        filters = parse_filter_list("equals:Retro")
        assert extract_event(raw_event(), filters) is None

    def test_filters_only_look_at_summary(self):
        filters = parse_filter_list("contains:evt")
        assert extract_event(raw_event(uid="evt-1", summary="Standup"), filters) is None

    def test_all_filters_must_match(self):
        filters = parse_filter_list("startsWith:Stand~endsWith:Retro")
        assert extract_event(raw_event(), filters) is None

    def test_rejected_event_skips_optional_timestamps(self):
        raw = raw_event("evt-1", "Standup", "19700101T000000Z", prop("DTSTART", "garbage"))
        assert extract_event(raw, parse_filter_list("equals:Retro")) is None


class TestMalformedTimestamps:
    def test_malformed_dtstamp_raises(self):
        with pytest.raises(DateParseError):
            extract_event(raw_event(stamp="1970-01-01"), [])

    def test_malformed_dtstamp_raises_even_when_filtered_out(self):
        with pytest.raises(DateParseError):
            extract_event(raw_event(stamp="garbage"), parse_filter_list("equals:Retro"))

    def test_malformed_dtstamp_raises_even_without_uid(self):
        with pytest.raises(DateParseError):
            extract_event(raw_event(uid=None, stamp="garbage"), [])

    @pytest.mark.parametrize("name", ["DTSTART", "DTEND", "CREATED"])
    def test_malformed_optional_timestamp_of_accepted_event_raises(self, name):
        raw = raw_event("evt-1", "Standup", "19700101T000000Z", prop(name, "garbage"))
        with pytest.raises(DateParseError) as exc_info:
            extract_event(raw, [])
        assert exc_info.value.value == "garbage"

    def test_first_failure_is_reported_in_start_end_created_order(self):
        raw = raw_event(
            "evt-1",
            "Standup",
            "19700101T000000Z",
            prop("CREATED", "bad-created"),
            prop("DTEND", "bad-end"),
            prop("DTSTART", "bad-start"),
        )
        with pytest.raises(DateParseError) as exc_info:
            extract_event(raw, [])
        assert exc_info.value.value == "bad-start"
