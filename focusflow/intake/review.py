"""
Reconciliation Review

Each draft gets one decision before anything is written:

    Pending  -> CreateNew | MergeInto(task_id) | Skip

Drafts with no candidate matches start as CreateNew because there is
nothing to decide. Drafts with candidates start Pending and wait for the
user. A MergeInto can only be made through ReviewItem.merge(), which
checks the target is one of that draft's own candidates.

Whatever is still Pending at commit time resolves via resolve():
merge into the best candidate if there is one, otherwise create.

Usage:
    items = build_review(drafts, candidates_per_draft)
    items[0].merge(items[0].candidates[0].task_id)
    items[1].skip()
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Union

from focusflow.tasks.priority import parse_timestamp

from .errors import InvalidMergeTarget
from .extractor import TaskDraft
from .matcher import CandidateMatch

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class Pending:
    kind = "pending"


@dataclass(frozen=True)
class CreateNew:
    kind = "create"


@dataclass(frozen=True)
class MergeInto:
    target_task_id: str
    kind = "merge"


@dataclass(frozen=True)
class Skip:
    kind = "skip"


Decision = Union[Pending, CreateNew, MergeInto, Skip]


@dataclass
class ReviewItem:
    """One draft, its candidate matches and the current decision."""
    draft: TaskDraft
    candidates: list[CandidateMatch] = field(default_factory=list)
    decision: Decision = field(default_factory=Pending)

    def __post_init__(self):
        if isinstance(self.decision, MergeInto):
            self._check_target(self.decision.target_task_id)
        if isinstance(self.decision, Pending) and not self.candidates:
            self.decision = CreateNew()

    @property
    def candidate_ids(self) -> list[str]:
        return [c.task_id for c in self.candidates]

    @property
    def best_candidate(self) -> CandidateMatch | None:
        """Highest similarity; ties go to the most recently created task."""
        if not self.candidates:
            return None
        return max(
            self.candidates,
            key=lambda c: (c.similarity, parse_timestamp(c.task.get("created_at")) or _EPOCH),
        )

    @property
    def is_pending(self) -> bool:
        return isinstance(self.decision, Pending)

    def create(self) -> None:
        self.decision = CreateNew()

    def skip(self) -> None:
        self.decision = Skip()

    def merge(self, task_id: str) -> None:
        self._check_target(task_id)
        self.decision = MergeInto(target_task_id=task_id)

    def resolve(self) -> Decision:
        """The decision commit will act on, applying the Pending default."""
        if not isinstance(self.decision, Pending):
            return self.decision
        best = self.best_candidate
        if best is None:
            return CreateNew()
        return MergeInto(target_task_id=best.task_id)

    def _check_target(self, task_id: str) -> None:
        if task_id not in self.candidate_ids:
            raise InvalidMergeTarget(task_id, self.candidate_ids)


def build_review(
    drafts: list[TaskDraft],
    candidates_per_draft: list[list[CandidateMatch]],
) -> list[ReviewItem]:
    """Pair drafts with their candidates and starting decisions."""
    if len(drafts) != len(candidates_per_draft):
        raise ValueError("drafts and candidate lists must line up")
    return [
        ReviewItem(draft=draft, candidates=list(candidates))
        for draft, candidates in zip(drafts, candidates_per_draft)
    ]


def pending_count(items: list[ReviewItem]) -> int:
    return sum(1 for item in items if item.is_pending)
