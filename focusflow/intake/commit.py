"""
Commit Executor

Applies reviewed decisions to the task store, one draft at a time:

- CreateNew: insert a todo task seeded from the draft
- MergeInto: append a dated block to the target's notes, OR the flags,
  take the draft's due date when it has one
- Skip: nothing
- Pending: resolved first (best candidate -> merge, none -> create)

Each draft is its own unit. Any failure (merge target deleted meanwhile,
invalid target, database error, unreadable row) is recorded in the report
and the rest of the batch carries on. Nothing already applied is rolled back.

Usage:
    from focusflow.intake.commit import commit_decisions

    report = commit_decisions(items, owner_id="alice", session_id=meeting_id)
    if not report.ok:
        for r in report.failed:
            print(r.title, r.error)
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any

from focusflow.tasks import manager

from .errors import CommitPartialFailure, InvalidMergeTarget
from .extractor import TaskDraft
from .review import CreateNew, MergeInto, ReviewItem, Skip

logger = logging.getLogger(__name__)


@dataclass
class CommitResult:
    index: int
    title: str
    action: str
    success: bool
    task_id: str | None = None
    error: str | None = None


@dataclass
class CommitReport:
    results: list[CommitResult] = field(default_factory=list)

    @property
    def succeeded(self) -> list[CommitResult]:
        return [r for r in self.results if r.success]

    @property
    def failed(self) -> list[CommitResult]:
        return [r for r in self.results if not r.success]

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def created_ids(self) -> list[str]:
        return [r.task_id for r in self.succeeded if r.action == "create"]

    @property
    def merged_ids(self) -> list[str]:
        return [r.task_id for r in self.succeeded if r.action == "merge"]

    def raise_for_failures(self) -> None:
        if self.failed:
            raise CommitPartialFailure(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.ok,
            "data": {
                "results": [asdict(r) for r in self.results],
                "created": len(self.created_ids),
                "merged": len(self.merged_ids),
                "failed": len(self.failed),
            },
        }


def commit_decisions(
    items: list[ReviewItem],
    owner_id: str,
    session_id: str | None = None,
    now: datetime | None = None,
) -> CommitReport:
    """
    Apply every reviewed decision for one intake session.

    Args:
        items: Review items in draft order
        owner_id: User the tasks belong to
        session_id: Meeting the drafts came from, if any
        now: Timestamp for merge note blocks

    Returns:
        CommitReport with one result per created or merged draft
    """
    now = now or datetime.now(timezone.utc)
    report = CommitReport()

    for index, item in enumerate(items):
        decision = item.resolve()
        title = item.draft.title

        if isinstance(decision, Skip):
            logger.info(f"[{index}] Skipping {title!r}")
            continue

        action = "merge" if isinstance(decision, MergeInto) else "create"
        try:
            if isinstance(decision, MergeInto):
                if decision.target_task_id not in item.candidate_ids:
                    raise InvalidMergeTarget(decision.target_task_id, item.candidate_ids)
                result = apply_merge(decision.target_task_id, item.draft, now, session_id)
            else:
                result = apply_create(item.draft, owner_id, session_id)
        except InvalidMergeTarget as e:
            result = {"success": False, "error": str(e)}
        except Exception as e:
            result = {"success": False, "error": f"{type(e).__name__}: {e}"}

        if result["success"]:
            task_id = result["data"]["id"] if action == "merge" else result["data"]["task_id"]
            logger.info(f"[{index}] {action} {title!r} -> {task_id}")
            report.results.append(CommitResult(index, title, action, True, task_id=task_id))
        else:
            logger.warning(f"[{index}] {action} {title!r} failed: {result['error']}")
            target = decision.target_task_id if isinstance(decision, MergeInto) else None
            report.results.append(CommitResult(index, title, action, False, task_id=target, error=result["error"]))

    logger.info(
        f"Commit finished: {len(report.created_ids)} created, "
        f"{len(report.merged_ids)} merged, {len(report.failed)} failed"
    )
    return report


def apply_create(draft: TaskDraft, owner_id: str, session_id: str | None = None) -> dict[str, Any]:
    notes = draft.context or None
    if notes and session_id:
        notes = f"From meeting:\n{notes}"

    return manager.create_task(
        user_id=owner_id,
        title=draft.title,
        notes=notes,
        urgent=draft.urgent,
        important=draft.important,
        area=draft.area,
        estimated_minutes=draft.estimated_minutes,
        due_date=draft.due_date_iso,
        meeting_id=session_id,
        note_source="quick_note",
    )


def apply_merge(
    task_id: str,
    draft: TaskDraft,
    now: datetime,
    session_id: str | None = None,
) -> dict[str, Any]:
    """Fold a draft into an existing task in a single update."""
    current = manager.get_task(task_id)
    if not current["success"]:
        return current

    return manager.update_task(task_id, **merge_fields(current["data"], draft, now, session_id))


def merge_fields(
    task: dict[str, Any],
    draft: TaskDraft,
    now: datetime,
    session_id: str | None = None,
) -> dict[str, Any]:
    """
    Field updates for merging draft into task.

    Flags are OR-ed so nothing true ever becomes false. The draft's due
    date wins whenever it has one.
    """
    origin = "meeting" if session_id else "note"
    due_text = draft.due_date.strftime("%Y-%m-%d") if draft.due_date else "Not specified"
    block = f"[Added from {origin} {now.strftime('%Y-%m-%d %H:%M')}]\n{draft.context or draft.title}\nDue: {due_text}"

    existing_notes = task.get("notes") or ""
    notes = f"{existing_notes}\n\n{block}" if existing_notes else block

    fields: dict[str, Any] = {
        "notes": notes,
        "urgent": bool(task.get("urgent")) or draft.urgent,
        "important": bool(task.get("important")) or draft.important,
        "note_entry": {
            "added_at": now.isoformat(),
            "content": draft.context or draft.title,
            "source": "ai_merge",
        },
    }
    if draft.due_date is not None:
        fields["due_date"] = draft.due_date_iso
    if session_id:
        fields["meeting_id"] = session_id
    return fields
