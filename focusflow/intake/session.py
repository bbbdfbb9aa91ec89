"""
Intake Session

One pass from raw text to a review batch, and from the reviewed batch to
the task store:

    session = await process_note(note, user_id="alice", service=service)
    session.items[0].skip()
    report = commit_session(session)

For transcripts the meeting record (with its summary) is stored at commit
time, so discarding a session before commit leaves no trace.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from focusflow.config_models import SummaryConfig, TaskEngineConfig, load_task_engine_config
from focusflow.tasks import manager

from .commit import CommitReport, commit_decisions
from .extractor import extract_tasks
from .llm import TextService, complete_with_timeout, load_prompt
from .matcher import match_drafts
from .review import ReviewItem, build_review

logger = logging.getLogger(__name__)

SUMMARY_PROMPT = """Summarize this meeting transcript in 2-3 concise paragraphs.
Focus on:
- Key decisions made
- Main discussion points
- Action items agreed upon
- Important context

Keep it brief but informative. Write in past tense.

Transcript:
{transcript}"""


@dataclass
class IntakeSession:
    """Everything produced for one note before it is committed."""
    user_id: str
    text: str
    items: list[ReviewItem] = field(default_factory=list)
    is_transcript: bool = False
    title: str | None = None
    summary: str = ""
    duration_seconds: int | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


async def process_note(
    note: str,
    user_id: str,
    service: TextService,
    now: datetime | None = None,
    config: TaskEngineConfig | None = None,
) -> IntakeSession:
    """
    Extract drafts from a note and match each against the user's open tasks.

    Raises:
        ExtractionFailure: extraction failed; nothing has been written
    """
    now = now or datetime.now(timezone.utc)
    config = config or load_task_engine_config()

    drafts = await extract_tasks(note, now, service, config.intake)
    items = await _review_items(drafts, user_id, service, config)

    return IntakeSession(user_id=user_id, text=note, items=items, created_at=now)


async def process_transcript(
    transcript: str,
    user_id: str,
    service: TextService,
    title: str | None = None,
    duration_seconds: int | None = None,
    now: datetime | None = None,
    config: TaskEngineConfig | None = None,
) -> IntakeSession:
    """Like process_note, plus a meeting summary generated alongside extraction."""
    now = now or datetime.now(timezone.utc)
    config = config or load_task_engine_config()

    summary, drafts = await asyncio.gather(
        summarize_transcript(transcript, service, config.summary, config.intake.timeout_seconds),
        extract_tasks(transcript, now, service, config.intake),
    )
    items = await _review_items(drafts, user_id, service, config)

    return IntakeSession(
        user_id=user_id,
        text=transcript,
        items=items,
        is_transcript=True,
        title=title,
        summary=summary,
        duration_seconds=duration_seconds,
        created_at=now,
    )


def commit_session(session: IntakeSession, now: datetime | None = None) -> CommitReport:
    """Store the meeting (for transcripts) and apply the session's decisions."""
    meeting_id = None
    if session.is_transcript:
        result = manager.create_meeting(
            user_id=session.user_id,
            transcript=session.text,
            title=session.title,
            summary=session.summary or None,
            duration_seconds=session.duration_seconds,
        )
        if result["success"]:
            meeting_id = result["data"]["id"]
        else:
            logger.warning(f"Could not store meeting record: {result['error']}")

    return commit_decisions(session.items, session.user_id, session_id=meeting_id, now=now)


async def summarize_transcript(
    transcript: str,
    service: TextService,
    config: SummaryConfig | None = None,
    timeout_seconds: float = 30.0,
) -> str:
    """Short meeting summary. Returns "" if the service is unavailable."""
    config = config or SummaryConfig()
    prompt = load_prompt("meeting_summary", SUMMARY_PROMPT).format(transcript=transcript)

    try:
        summary = await complete_with_timeout(
            service,
            prompt,
            max_tokens=config.max_tokens,
            temperature=0.3,
            timeout_seconds=timeout_seconds,
        )
    except Exception as e:
        logger.warning(f"Meeting summary failed: {e}")
        return ""
    return summary.strip()


async def _review_items(drafts, user_id: str, service: TextService, config: TaskEngineConfig) -> list[ReviewItem]:
    if not drafts:
        return []

    open_tasks = manager.list_open_tasks(user_id)["data"]["tasks"]
    candidates = await match_drafts(drafts, open_tasks, service, config.matching)
    return build_review(drafts, candidates)
