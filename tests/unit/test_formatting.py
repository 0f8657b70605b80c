"""Tests for duration/time formatting and build time parsing."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from stagecomment.core.formatting import (
    format_duration,
    format_started_at,
    parse_build_time,
)


class TestFormatDuration:
    @pytest.mark.parametrize(
        ("seconds", "expected"),
        [(0, "0m 0s"), (5, "0m 5s"), (62, "1m 2s"), (600, "10m 0s"), (3725, "62m 5s")],
    )
    def test_values(self, seconds, expected):
        assert format_duration(seconds) == expected

    def test_fraction_truncated(self):
        assert format_duration(61.9) == "1m 1s"

    def test_negative(self):
        with pytest.raises(ValueError):
            format_duration(-1)


class TestFormatStartedAt:
    def test_afternoon(self):
        moment = datetime(2026, 10, 18, 15, 4, 5, tzinfo=timezone.utc)
        assert format_started_at(moment) == "Oct 18 at 3:04:05 PM"

    def test_midnight_and_noon(self):
        assert format_started_at(datetime(2026, 1, 2, 0, 0, 9, tzinfo=timezone.utc)) == (
            "Jan 2 at 12:00:09 AM"
        )
        assert format_started_at(datetime(2026, 1, 2, 12, 30, 0, tzinfo=timezone.utc)) == (
            "Jan 2 at 12:30:00 PM"
        )

    def test_naive_is_utc(self):
        assert format_started_at(datetime(2026, 3, 4, 9, 8, 7)) == "Mar 4 at 9:08:07 AM"

    def test_display_timezone(self):
        moment = datetime(2026, 10, 18, 15, 4, 5, tzinfo=timezone.utc)
        assert format_started_at(moment, "Asia/Tokyo") == "Oct 19 at 12:04:05 AM"

    def test_offset_input(self):
        moment = datetime(2026, 10, 18, 10, 4, 5, tzinfo=timezone(timedelta(hours=-5)))
        assert format_started_at(moment) == "Oct 18 at 3:04:05 PM"


class TestParseBuildTime:
    def test_epoch_seconds(self):
        assert parse_build_time("0") == datetime(1970, 1, 1, tzinfo=timezone.utc)

    def test_epoch_milliseconds(self):
        parsed = parse_build_time("1792335845000")
        assert parsed == datetime.fromtimestamp(1792335845, tz=timezone.utc)

    def test_iso_with_z(self):
        parsed = parse_build_time("2026-10-18T15:04:05Z")
        assert parsed == datetime(2026, 10, 18, 15, 4, 5, tzinfo=timezone.utc)

    def test_naive_iso_is_utc(self):
        assert parse_build_time("2026-10-18T15:04:05").tzinfo is not None

    @pytest.mark.parametrize("value", ["", "   ", "yesterday", "12:00"])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_build_time(value)
