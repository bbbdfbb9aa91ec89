"""Tests for focusflow/intake/dates.py"""

from datetime import datetime, timedelta, timezone

import pytest

from focusflow.intake.dates import resolve_due_date

# Wednesday
NOW = datetime(2026, 10, 21, 9, 0, tzinfo=timezone.utc)


def at(day, hour=17):
    return datetime(2026, 10, day, hour, 0, tzinfo=timezone.utc)


class TestResolveDueDate:
    """Relative phrases resolve against the caller's now."""

    @pytest.mark.parametrize(
        "phrase,expected",
        [
            ("today", at(21)),
            ("EOD", at(21)),
            ("tonight", at(21, 20)),
            ("tomorrow", at(22)),
            ("by Friday", at(23)),
            ("friday", at(23)),
            ("Wednesday", at(21)),
            ("next wednesday", at(28)),
            ("next Mon", at(26)),
            ("end of week", at(23)),
            ("in 3 days", at(24)),
            ("in 1 week", at(28)),
            ("2026-10-23", at(23)),
        ],
    )
    def test_phrases(self, phrase, expected):
        assert resolve_due_date(phrase, NOW) == expected

    @pytest.mark.parametrize("phrase", ["next week", "soon", "later", "", None, "null", "Not specified"])
    def test_vague_phrases_resolve_to_none(self, phrase):
        assert resolve_due_date(phrase, NOW) is None

    def test_in_hours_keeps_time(self):
        assert resolve_due_date("in 2 hours", NOW) == NOW + timedelta(hours=2)

    def test_iso_timestamp_with_z(self):
        assert resolve_due_date("2026-10-22T10:30:00Z", NOW) == datetime(2026, 10, 22, 10, 30, tzinfo=timezone.utc)

    def test_naive_timestamp_takes_now_timezone(self):
        result = resolve_due_date("2026-10-22T10:30:00", NOW)

        assert result.tzinfo == timezone.utc

    def test_month_day(self):
        assert resolve_due_date("Nov 3", NOW) == datetime(2026, 11, 3, 17, 0, tzinfo=timezone.utc)

    def test_past_month_day_rolls_to_next_year(self):
        assert resolve_due_date("March 1st", NOW) == datetime(2027, 3, 1, 17, 0, tzinfo=timezone.utc)

    def test_invalid_calendar_date(self):
        assert resolve_due_date("Feb 30", NOW) is None
        assert resolve_due_date("2026-02-30", NOW) is None

    def test_uses_now_timezone(self):
        sydney = timezone(timedelta(hours=11))
        now = datetime(2026, 10, 21, 9, 0, tzinfo=sydney)

        result = resolve_due_date("tomorrow", now)

        assert result == datetime(2026, 10, 22, 17, 0, tzinfo=sydney)
