"""
Unit tests for duration parsing and formatting.
"""

from datetime import timedelta

import pytest

from rawh.errors import DurationParseError
from rawh.util.durations import format_duration, parse_duration


class TestParseDuration:
    """Tests for parse_duration()."""

    @pytest.mark.parametrize("text,expected", [
        ("0", timedelta(0)),
        ("10ms", timedelta(milliseconds=10)),
        ("1s", timedelta(seconds=1)),
        ("1.5s", timedelta(milliseconds=1500)),
        ("1m30s", timedelta(seconds=90)),
        ("2h45m", timedelta(hours=2, minutes=45)),
        ("250us", timedelta(microseconds=250)),
        ("250µs", timedelta(microseconds=250)),
        ("250μs", timedelta(microseconds=250)),
        (".5s", timedelta(milliseconds=500)),
        ("+3s", timedelta(seconds=3)),
        ("-1.5h", -timedelta(minutes=90)),
    ])
    def test_valid(self, text, expected):
        assert parse_duration(text) == expected

    def test_nanoseconds_round_to_microseconds(self):
        assert parse_duration("1500ns") == timedelta(microseconds=1.5)

    @pytest.mark.parametrize("text", ["", "10", "ms", "10x", "1.5", "-", "abc", "1s2"])
    def test_invalid(self, text):
        with pytest.raises(DurationParseError):
            parse_duration(text)

    @pytest.mark.parametrize("text", [
        "99999999999999h",
        "2562048h",
        "9223372036854775808ns",
        "-9999999999999999999999s",
        "1" + "0" * 5000 + "s",
    ])
    def test_out_of_range(self, text):
        with pytest.raises(DurationParseError, match="out of range"):
            parse_duration(text)

    def test_largest_duration(self):
        assert parse_duration("2562047h") == timedelta(hours=2562047)

    def test_long_fraction(self):
        assert parse_duration("1." + "5" * 5000 + "s") == parse_duration("1.555555555555555555s")

    def test_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_duration("later")


class TestFormatDuration:
    """Tests for format_duration()."""

    @pytest.mark.parametrize("duration,expected", [
        (timedelta(0), "0s"),
        (timedelta(milliseconds=10), "10ms"),
        (timedelta(microseconds=1500), "1.5ms"),
        (timedelta(microseconds=250), "250µs"),
        (timedelta(milliseconds=1500), "1.5s"),
        (timedelta(seconds=90), "1m30s"),
        (timedelta(hours=1), "1h0m0s"),
        (timedelta(hours=2, minutes=45), "2h45m0s"),
        (-timedelta(seconds=2), "-2s"),
    ])
    def test_format(self, duration, expected):
        assert format_duration(duration) == expected

    @pytest.mark.parametrize("text", ["10ms", "1.5s", "1m30s", "1h0m0s"])
    def test_parse_accepts_formatted(self, text):
        assert format_duration(parse_duration(text)) == text
