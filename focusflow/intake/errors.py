"""Intake error taxonomy.

Only ExtractionFailure reaches the caller as a hard failure; the others are
either absorbed (MatchingDegraded), scoped to one decision
(InvalidMergeTarget) or raised on request from a commit report
(CommitPartialFailure).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .commit import CommitReport


class IntakeError(Exception):
    """Base class for intake pipeline errors."""


class ExtractionFailure(IntakeError):
    """The extraction response could not be turned into task drafts.

    The original note is kept on the exception so it can be retried or
    entered by hand.
    """

    def __init__(self, message: str, note: str = ""):
        super().__init__(message)
        self.note = note


class MatchingDegraded(IntakeError):
    """The comparison call failed; treated as "no duplicates found"."""


class InvalidMergeTarget(IntakeError):
    """A merge decision named a task that is not one of the draft's own candidates."""

    def __init__(self, task_id: str, candidate_ids: list[str]):
        super().__init__(
            f"Task {task_id} is not a candidate for this draft (candidates: {candidate_ids or 'none'})"
        )
        self.task_id = task_id
        self.candidate_ids = candidate_ids


class CommitPartialFailure(IntakeError):
    """One or more decisions failed to apply. Applied ones are kept."""

    def __init__(self, report: CommitReport):
        failed = report.failed
        super().__init__(
            f"{len(failed)} of {len(report.results)} decisions failed: "
            + "; ".join(f"#{r.index} {r.title!r}: {r.error}" for r in failed)
        )
        self.report = report
