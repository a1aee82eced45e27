"""Unit tests for rsvp_sheet.normalize."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from rsvp_sheet.normalize import (
    display_timestamp,
    iso_timestamp,
    or_default,
    parse_count,
)


# ---------------------------------------------------------------------------
# or_default
# ---------------------------------------------------------------------------

class TestOrDefault:
    def test_none_uses_default(self):
        assert or_default(None, "No") == "No"

    def test_empty_string_uses_default(self):
        assert or_default("", "0") == "0"

    def test_value_kept_verbatim(self):
        assert or_default("  Ana ", "") == "  Ana "

    def test_whitespace_is_not_missing(self):
        assert or_default(" ", "x") == " "

    def test_zero_string_is_kept(self):
        assert or_default("0", "5") == "0"


# ---------------------------------------------------------------------------
# parse_count
# ---------------------------------------------------------------------------

class TestParseCount:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("1", 1),
            ("12", 12),
            (" 4", 4),
            ("5.0", 5),
            ("3abc", 3),
            (7, 7),
            (2.0, 2),
        ],
    )
    def test_numeric(self, raw, expected):
        assert parse_count(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "abc", "   ", float("nan"), True])
    def test_non_numeric_reads_as_zero(self, raw):
        assert parse_count(raw) == 0


# ---------------------------------------------------------------------------
# timestamps
# ---------------------------------------------------------------------------

class TestIsoTimestamp:
    def test_utc_millis_with_z(self):
        moment = datetime(2026, 6, 1, 14, 30, 5, 123456, tzinfo=timezone.utc)
        assert iso_timestamp(moment) == "2026-06-01T14:30:05.123Z"

    def test_converts_offset_to_utc(self):
        moment = datetime(2026, 6, 1, 10, 0, 0, tzinfo=timezone(timedelta(hours=-4)))
        assert iso_timestamp(moment) == "2026-06-01T14:00:00.000Z"


class TestDisplayTimestamp:
    def test_formats_in_given_zone(self):
        moment = datetime(2026, 6, 1, 14, 30, 5, tzinfo=timezone.utc)
        assert display_timestamp(moment, timezone.utc) == "06/01/2026, 02:30:05 PM"

    def test_shifts_zone(self):
        moment = datetime(2026, 6, 1, 14, 30, 5, tzinfo=timezone.utc)
        tz = timezone(timedelta(hours=2))
        assert display_timestamp(moment, tz) == "06/01/2026, 04:30:05 PM"
