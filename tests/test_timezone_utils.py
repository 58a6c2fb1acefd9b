"""
Tests for wall-clock helpers and legacy id encoding.
"""

from datetime import datetime

import pytest

from utils.timezone_utils import (
    format_chart_label,
    make_legacy_id,
    parse_legacy_id,
    parse_timezone_offset,
    to_wall_clock,
)


@pytest.mark.parametrize(
    "raw, expected",
    [(None, 0), ("", 0), ("300", 300), ("-480", -480), ("+05:30", 330), ("-08:00", -480), ("bogus", 0)],
)
def test_parse_timezone_offset(raw, expected):
    assert parse_timezone_offset(raw) == expected


def test_legacy_id_encoding_matches_stored_format():
    assert make_legacy_id(datetime(2024, 3, 2, 14, 30, 45)) == "2024-03-02T14_30_00-000"
    assert parse_legacy_id("2024-03-02T14_30_00-000") == datetime(2024, 3, 2, 14, 30)


@pytest.mark.parametrize("record_id", [None, "", "2024-03-02", "2024-02-30T10_00_00-000", "2024-03-02T25_00_00-000"])
def test_parse_legacy_id_rejects_bad_ids(record_id):
    assert parse_legacy_id(record_id) is None


def test_to_wall_clock_drops_offset():
    assert to_wall_clock("2024-03-02T23:30:00Z") == datetime(2024, 3, 2, 23, 30)
    assert to_wall_clock("not a date") is None
    assert to_wall_clock(12345) is None


def test_chart_label_is_locale_independent():
    assert format_chart_label(datetime(2024, 12, 5, 9, 7)) == "Dec 05, 09:07"
