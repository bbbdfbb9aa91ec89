"""
Due Date Resolution

Turns the due dates people write in notes ("by Friday", "tomorrow",
"end of week", "Nov 3") into absolute datetimes in the caller's timezone.
Date-only values mean 17:00 that day. Phrases with no anchor ("next
week", "soon") resolve to None rather than a guess.

Usage:
    from focusflow.intake.dates import resolve_due_date

    due = resolve_due_date("by Friday", now=datetime.now(timezone.utc))
"""

from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta

# Date-only deadlines mean "by end of the working day"
DEFAULT_DUE_TIME = time(17, 0)
TONIGHT_TIME = time(20, 0)

_WEEKDAYS = r"(monday|mon|tuesday|tues|tue|wednesday|wed|thursday|thurs|thur|thu|friday|fri|saturday|sat|sunday|sun)"
_MONTHS = (
    r"(jan|january|feb|february|mar|march|apr|april|may|jun|june|jul|july|aug|august"
    r"|sep|sept|september|oct|october|nov|november|dec|december)"
)
_PREFIX = re.compile(r"^(?:due\s+)?(?:by|on|before|this|until)\s+")
_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def resolve_due_date(value: str | None, now: datetime) -> datetime | None:
    """
    Resolve a due date value against the caller's "now".

    Accepts ISO dates/timestamps as well as the relative phrases people
    write in notes. Anything without a resolvable anchor ("next week",
    "soon", "later") resolves to None rather than a guess.

    Returns:
        datetime in now's timezone, or None
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=now.tzinfo)

    text = str(value).strip()
    if not text or text.lower() in ("null", "none", "n/a", "not specified"):
        return None

    parsed = _parse_iso(text, now)
    if parsed is not None:
        return parsed

    t = _PREFIX.sub("", text.lower()).strip(" .,!")
    today = now.date()

    if t in ("today", "eod", "end of day", "end of today"):
        return _at(today, DEFAULT_DUE_TIME, now)
    if t == "tonight":
        return _at(today, TONIGHT_TIME, now)
    if t == "tomorrow":
        return _at(today + timedelta(days=1), DEFAULT_DUE_TIME, now)
    if t in ("end of week", "end of the week", "eow"):
        return _at(_upcoming_weekday(today, 4), DEFAULT_DUE_TIME, now)

    m = re.fullmatch(r"next\s+" + _WEEKDAYS, t)
    if m:
        return _at(_next_weekday(today, _weekday_to_int(m.group(1))), DEFAULT_DUE_TIME, now)

    m = re.fullmatch(_WEEKDAYS, t)
    if m:
        return _at(_upcoming_weekday(today, _weekday_to_int(m.group(1))), DEFAULT_DUE_TIME, now)

    m = re.fullmatch(r"in\s+(\d+)\s+(hour|hours|day|days|week|weeks)", t)
    if m:
        amount = int(m.group(1))
        unit = m.group(2)
        if unit.startswith("hour"):
            return now + timedelta(hours=amount)
        days = amount * 7 if unit.startswith("week") else amount
        return _at(today + timedelta(days=days), DEFAULT_DUE_TIME, now)

    m = re.fullmatch(_MONTHS + r"\s+(\d{1,2})(?:st|nd|rd|th)?(?:,?\s*(\d{4}))?", t)
    if m:
        month = _month_to_int(m.group(1))
        day = int(m.group(2))
        try:
            candidate = date(int(m.group(3)) if m.group(3) else today.year, month, day)
        except ValueError:
            return None
        if m.group(3) is None and candidate < today:
            candidate = candidate.replace(year=today.year + 1)
        return _at(candidate, DEFAULT_DUE_TIME, now)

    return None


def _parse_iso(text: str, now: datetime) -> datetime | None:
    if _ISO_DATE.match(text):
        try:
            return _at(date.fromisoformat(text), DEFAULT_DUE_TIME, now)
        except ValueError:
            return None

    candidate = text[:-1] + "+00:00" if text.endswith("Z") else text
    try:
        dt = datetime.fromisoformat(candidate)
    except ValueError:
        return None
    return dt if dt.tzinfo else dt.replace(tzinfo=now.tzinfo)


def _at(d: date, at: time, now: datetime) -> datetime:
    return datetime.combine(d, at, tzinfo=now.tzinfo)


def _weekday_to_int(day: str) -> int:
    mapping = {"mon": 0, "tue": 1, "wed": 2, "thu": 3, "fri": 4, "sat": 5, "sun": 6}
    return mapping[day[:3]]


def _upcoming_weekday(d: date, target_weekday: int) -> date:
    """Nearest date on target_weekday, today included."""
    return d + timedelta(days=(target_weekday - d.weekday()) % 7)


def _next_weekday(d: date, target_weekday: int) -> date:
    """Nearest date on target_weekday strictly after today."""
    days_ahead = (target_weekday - d.weekday()) % 7
    if days_ahead == 0:
        days_ahead = 7
    return d + timedelta(days=days_ahead)


def _month_to_int(month_str: str) -> int:
    month_map = {
        "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
        "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
    }
    return month_map[month_str[:3]]
