"""Tests for focusflow/tasks/priority.py

The priority selector must be deterministic: the same task list and the
same "now" always produce the same single suggestion.
"""

from datetime import datetime, timedelta, timezone

import pytest

from focusflow.tasks.priority import (
    compute_wip_pressure,
    due_points,
    get_eisenhower_quadrant,
    get_priority_score,
    get_quadrant_label,
    get_wip_count,
    parse_timestamp,
    rank_tasks,
    select_next_task,
)

NOW = datetime(2026, 10, 21, 9, 0, tzinfo=timezone.utc)


def make_task(task_id, **fields):
    task = {
        "id": task_id,
        "title": f"task {task_id}",
        "status": "todo",
        "urgent": False,
        "important": False,
        "is_pinned": False,
        "due_date": None,
        "created_at": "2026-10-01T09:00:00+00:00",
    }
    task.update(fields)
    return task


# ─────────────────────────────────────────────────────────────────────────────
# Scoring Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestPriorityScore:
    """Tests for get_priority_score."""

    def test_urgent_important_overdue(self):
        """Overdue urgent+important work dominates everything."""
        task = make_task("a", urgent=True, important=True, due_date=(NOW - timedelta(days=1)).isoformat())

        assert get_priority_score(task, NOW) == 350

    def test_important_in_progress(self):
        task = make_task("b", important=True, status="in-progress")

        assert get_priority_score(task, NOW) == 80

    def test_plain_task_scores_zero(self):
        assert get_priority_score(make_task("c"), NOW) == 0

    def test_pinned_adds_points(self):
        assert get_priority_score(make_task("d", is_pinned=True), NOW) == 25

    def test_all_points_combine(self):
        task = make_task(
            "e", urgent=True, important=True, is_pinned=True, status="in-progress",
            due_date=(NOW + timedelta(hours=12)).isoformat(),
        )

        assert get_priority_score(task, NOW) == 100 + 50 + 25 + 30 + 75


class TestDuePoints:
    """Only the nearest due tier applies."""

    @pytest.mark.parametrize(
        "delta,expected",
        [
            (timedelta(seconds=-1), 200),
            (timedelta(days=-30), 200),
            (timedelta(0), 75),
            (timedelta(hours=24), 75),
            (timedelta(hours=25), 40),
            (timedelta(days=3), 40),
            (timedelta(days=5), 20),
            (timedelta(days=7), 20),
            (timedelta(days=8), 0),
        ],
    )
    def test_tiers(self, delta, expected):
        assert due_points((NOW + delta).isoformat(), NOW) == expected

    def test_no_due_date(self):
        assert due_points(None, NOW) == 0

    def test_unparsable_due_date(self):
        assert due_points("someday", NOW) == 0

    def test_naive_timestamps_are_utc(self):
        assert due_points("2026-10-21T08:00:00", NOW) == 200

    def test_z_suffix(self):
        assert due_points("2026-10-22T09:00:00Z", NOW) == 75


class TestParseTimestamp:
    def test_datetime_passthrough(self):
        assert parse_timestamp(NOW) == NOW

    def test_empty_values(self):
        assert parse_timestamp(None) is None
        assert parse_timestamp("") is None


# ─────────────────────────────────────────────────────────────────────────────
# Selection Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestSelectNextTask:
    """Tests for select_next_task."""

    def test_picks_highest_score(self):
        tasks = [
            make_task("plain"),
            make_task("progress", important=True, status="in-progress"),
            make_task("overdue", urgent=True, important=True, due_date=(NOW - timedelta(days=1)).isoformat()),
        ]

        assert select_next_task(tasks, NOW)["id"] == "overdue"

    def test_deterministic(self):
        tasks = [make_task(str(i), important=i % 2 == 0) for i in range(6)]

        picks = {select_next_task(tasks, NOW)["id"] for _ in range(5)}

        assert len(picks) == 1

    def test_tie_goes_to_earliest_created(self):
        tasks = [
            make_task("newer", important=True, created_at="2026-10-10T09:00:00+00:00"),
            make_task("older", important=True, created_at="2026-10-02T09:00:00+00:00"),
        ]

        assert select_next_task(tasks, NOW)["id"] == "older"

    def test_full_tie_goes_to_input_order(self):
        tasks = [make_task("first"), make_task("second")]

        assert select_next_task(tasks, NOW)["id"] == "first"

    def test_missing_created_at_sorts_last(self):
        tasks = [make_task("undated", created_at=None), make_task("dated")]

        assert select_next_task(tasks, NOW)["id"] == "dated"

    def test_done_tasks_never_selected(self):
        tasks = [make_task("done", urgent=True, status="done"), make_task("open")]

        assert select_next_task(tasks, NOW)["id"] == "open"

    def test_empty_returns_none(self):
        assert select_next_task([], NOW) is None
        assert select_next_task([make_task("x", status="done")], NOW) is None

    def test_rank_includes_scores(self):
        tasks = [make_task("plain"), make_task("important", important=True)]

        ranked = rank_tasks(tasks, NOW)

        assert [(r["task"]["id"], r["score"]) for r in ranked] == [("important", 50), ("plain", 0)]


# ─────────────────────────────────────────────────────────────────────────────
# WIP Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestWipPressure:
    """WIP pressure is advisory and only counts in-progress tasks."""

    def test_counts_in_progress_only(self):
        tasks = [make_task("a", status="in-progress"), make_task("b"), make_task("c", status="done")]

        assert get_wip_count(tasks) == 1

    def test_at_limit_is_not_exceeded(self):
        tasks = [make_task(str(i), status="in-progress") for i in range(3)]

        assert compute_wip_pressure(tasks, limit=3) == {"count": 3, "limit": 3, "exceeded": False}

    def test_over_limit_is_exceeded(self):
        tasks = [make_task(str(i), status="in-progress") for i in range(4)]

        assert compute_wip_pressure(tasks)["exceeded"] is True

    def test_custom_limit(self):
        tasks = [make_task("a", status="in-progress"), make_task("b", status="in-progress")]

        assert compute_wip_pressure(tasks, limit=1)["exceeded"] is True


# ─────────────────────────────────────────────────────────────────────────────
# Eisenhower Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestEisenhower:
    @pytest.mark.parametrize(
        "urgent,important,quadrant,label",
        [
            (True, True, "urgent-important", "Do First"),
            (True, False, "urgent-not-important", "Schedule"),
            (False, True, "not-urgent-important", "Plan"),
            (False, False, "not-urgent-not-important", "Eliminate"),
        ],
    )
    def test_quadrants(self, urgent, important, quadrant, label):
        task = make_task("q", urgent=urgent, important=important)

        assert get_eisenhower_quadrant(task) == quadrant
        assert get_quadrant_label(task) == label
