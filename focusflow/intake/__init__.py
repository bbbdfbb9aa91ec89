"""
Task Intake Pipeline

Turns a note or meeting transcript into reviewed task changes:

    raw text -> extractor -> drafts -> matcher -> review -> commit

Nothing is written to the task store until commit runs, so an intake
session can be discarded at any point before then.

Components:
    llm.py: Text-understanding service and JSON response parsing
    dates.py: Relative due date resolution
    extractor.py: Note -> TaskDraft list
    matcher.py: Draft -> CandidateMatch list against open tasks
    review.py: Per-draft create/merge/skip decisions
    commit.py: Apply resolved decisions to the task store
    session.py: Orchestrates one intake session end to end
"""

from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent.parent
HARDPROMPTS_DIR = PROJECT_ROOT / "hardprompts" / "intake"

# Candidates below this similarity are never acted on
MATCH_THRESHOLD = 70

DEFAULT_INTAKE_MODEL = "claude-3-5-haiku-20241022"
