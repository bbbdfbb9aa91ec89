"""
Tool: Priority Selector
Purpose: Score open tasks and pick the single next action

Core ADHD Principle:
    Present ONE suggestion, not overwhelming lists. Everything here is a
    pure function of the task list and "now" so the same inputs always
    give the same answer.

Scoring:
    urgent +100, important +50, pinned +25, in-progress +30
    due date (nearest tier only): overdue +200, <=1 day +75,
    <=3 days +40, <=7 days +20

Ties go to the task created earliest, then to input order.

Usage:
    from focusflow.tasks.priority import select_next_task, compute_wip_pressure

    task = select_next_task(tasks, now=datetime.now(timezone.utc))
    pressure = compute_wip_pressure(tasks, limit=3)
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from . import DEFAULT_WIP_LIMIT

URGENT_POINTS = 100
IMPORTANT_POINTS = 50
PINNED_POINTS = 25
IN_PROGRESS_POINTS = 30

# (max days until due, points); first matching tier wins
DUE_TIERS = (
    (1.0, 75),
    (3.0, 40),
    (7.0, 20),
)
OVERDUE_POINTS = 200

QUADRANT_LABELS = {
    "urgent-important": "Do First",
    "urgent-not-important": "Schedule",
    "not-urgent-important": "Plan",
    "not-urgent-not-important": "Eliminate",
}

_FAR_FUTURE = datetime.max.replace(tzinfo=timezone.utc)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO timestamp (or datetime) into an aware UTC datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def due_points(due_date: Any, now: datetime) -> int:
    """Points for due-date proximity. Only one tier ever applies."""
    due = parse_timestamp(due_date)
    if due is None:
        return 0

    days_until_due = (due - parse_timestamp(now)).total_seconds() / 86400
    if days_until_due < 0:
        return OVERDUE_POINTS

    for max_days, points in DUE_TIERS:
        if days_until_due <= max_days:
            return points
    return 0


def get_priority_score(task: dict[str, Any], now: datetime | None = None) -> int:
    """Calculate priority score (higher = more important to do now)."""
    now = now or datetime.now(timezone.utc)

    score = 0
    if task.get("urgent"):
        score += URGENT_POINTS
    if task.get("important"):
        score += IMPORTANT_POINTS
    if task.get("is_pinned"):
        score += PINNED_POINTS
    if task.get("status") == "in-progress":
        score += IN_PROGRESS_POINTS

    score += due_points(task.get("due_date"), now)
    return score


def rank_tasks(tasks: list[dict[str, Any]], now: datetime | None = None) -> list[dict[str, Any]]:
    """
    Rank open tasks in selection order.

    Returns:
        List of {"task", "score"} dicts, best first. Done tasks are excluded.
    """
    now = now or datetime.now(timezone.utc)

    scored = [
        (index, task, get_priority_score(task, now))
        for index, task in enumerate(tasks)
        if task.get("status") != "done"
    ]
    scored.sort(key=lambda item: (
        -item[2],
        parse_timestamp(item[1].get("created_at")) or _FAR_FUTURE,
        item[0],
    ))

    return [{"task": task, "score": score} for _, task, score in scored]


def select_next_task(tasks: list[dict[str, Any]], now: datetime | None = None) -> dict[str, Any] | None:
    """Get the single recommended next task, or None when nothing is open."""
    ranked = rank_tasks(tasks, now)
    if not ranked:
        return None
    return ranked[0]["task"]


def get_wip_count(tasks: list[dict[str, Any]]) -> int:
    return sum(1 for t in tasks if t.get("status") == "in-progress")


def compute_wip_pressure(tasks: list[dict[str, Any]], limit: int = DEFAULT_WIP_LIMIT) -> dict[str, Any]:
    """
    Work-in-progress pressure.

    Advisory only: "exceeded" feeds a gentle warning, it never blocks
    starting something new.
    """
    count = get_wip_count(tasks)
    return {"count": count, "limit": limit, "exceeded": count > limit}


def get_eisenhower_quadrant(task: dict[str, Any]) -> str:
    urgent = bool(task.get("urgent"))
    important = bool(task.get("important"))
    if urgent and important:
        return "urgent-important"
    if urgent:
        return "urgent-not-important"
    if important:
        return "not-urgent-important"
    return "not-urgent-not-important"


def get_quadrant_label(task: dict[str, Any]) -> str:
    return QUADRANT_LABELS[get_eisenhower_quadrant(task)]
