"""
Task Extractor

Turns a free-form note or meeting transcript into TaskDraft objects using
one call to the text-understanding service, then normalises what comes
back so the drafts follow the ADHD-friendly policy even when the model
drifts:

- urgency is conservative (explicit deadline within ~48h, or urgency words)
- importance is independent of urgency
- area is one of work/personal/health/social
- estimates are rounded UP, never down
- relative dates resolve against the caller's "now"; vague ones become None

Usage:
    from focusflow.intake.extractor import extract_tasks

    drafts = await extract_tasks(note, now=datetime.now(timezone.utc), service=service)
"""

from __future__ import annotations

import asyncio
import logging
import math
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from focusflow.config_models import IntakeConfig
from focusflow.tasks import TASK_AREAS

from .dates import resolve_due_date
from .errors import ExtractionFailure
from .llm import TextService, complete_with_timeout, extract_json, load_prompt

logger = logging.getLogger(__name__)

ESTIMATE_STEP_MINUTES = 15

_ESTIMATE_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*(m|min|mins|minute|minutes|h|hr|hrs|hour|hours)?")

# Deadlines this many calendar days out (or fewer) count as urgent
URGENT_WITHIN_DAYS = 2

# Checked in order; anything unmatched is personal
AREA_KEYWORDS = {
    "health": (
        "exercise", "workout", "gym", "run", "doctor", "dentist", "gp", "medication",
        "meds", "prescription", "therapy", "therapist", "blood test", "physio", "sleep",
        "mental health", "wellbeing", "yoga",
    ),
    "social": (
        "friend", "friends", "birthday", "party", "dinner with", "catch up", "catch-up",
        "wedding", "drinks", "invite", "rsvp", "hang out",
    ),
    "work": (
        "teaching", "teach", "student", "students", "lesson", "class", "school", "parents",
        "job", "project", "meeting", "client", "report", "deadline", "manager", "colleague",
        "presentation", "application", "excursion", "marking", "curriculum",
    ),
}

EXTRACTION_PROMPT = """You're helping someone with ADHD manage tasks. They wrote this note (it may be a meeting transcript):

\"\"\"
{note}
\"\"\"

Extract EVERY distinct action item as its own task. Pure commentary with no action items gives an empty list.

Follow these ADHD-friendly rules:

**Title:** clear and actionable, imperative form ("Email parents", not "We should email").

**Urgency (boolean):**
- true ONLY for an explicit deadline less than 48 hours away OR words like "ASAP", "urgent", "now", "today"
- Err on the side of LESS urgent to reduce overwhelm
- Examples: "by Friday" (if today is Wednesday) = urgent, "next week" = not urgent

**Importance (boolean):**
- true for significant consequences, high value or explicit importance
- Independent of urgency
- Examples: "job application" = important, "check email" = not important

**Area:** exactly one of
- work: teaching, students, lesson, school, job, project, meeting
- personal: home, family, errands, general life admin
- health: exercise, doctor, medication, mental health, wellbeing
- social: friends, events, calls, birthdays

**Time estimate (minutes):** be realistic - people with ADHD often underestimate.
Quick tasks 15-30, normal tasks 30-60, big tasks 60-120.

**Due date:**
- Today is {weekday} {today}
- Convert to YYYY-MM-DD ("by Friday" -> the actual date, "tomorrow" -> today + 1 day,
  "end of week" -> this Friday)
- "next week" with no day, or no date mentioned -> null

**Assigned to:** who will do it, if the note says ("Phill will...", "I need to...").

**Context:** quote the relevant part of the note (1-2 sentences max).

Respond ONLY with valid JSON (no markdown, no backticks):
{{
  "tasks": [
    {{
      "title": "Email parents about excursion",
      "urgent": true,
      "important": true,
      "area": "work",
      "estimated_minutes": 30,
      "due_date": "2024-11-15",
      "assigned_to": "Phill",
      "context": "Can you email all the parents by Friday with the details?",
      "reasoning": "Deadline in two days and parents need notice"
    }}
  ]
}}

CRITICAL DATA TYPES:
- urgent, important: boolean
- estimated_minutes: number or null
- due_date: null OR a YYYY-MM-DD string, never natural language"""


@dataclass
class TaskDraft:
    """A proposed task extracted from a note. Never persisted on its own."""
    title: str
    urgent: bool = False
    important: bool = False
    area: str = "personal"
    estimated_minutes: int | None = None
    due_date: datetime | None = None
    context: str = ""
    assigned_to: str | None = None
    reasoning: str | None = None

    @property
    def due_date_iso(self) -> str | None:
        return self.due_date.isoformat() if self.due_date else None


async def extract_tasks(
    note: str,
    now: datetime,
    service: TextService,
    config: IntakeConfig | None = None,
) -> list[TaskDraft]:
    """
    Extract task drafts from a note.

    Args:
        note: Free-form note or transcript text
        now: Current time, used to resolve relative dates
        service: Text-understanding service
        config: Intake settings (model limits, timeout, max note size)

    Returns:
        Drafts in note order (may be empty)

    Raises:
        ValueError: note is empty or too long
        ExtractionFailure: the service failed, timed out, or returned
            something that is not the expected JSON
    """
    config = config or IntakeConfig()

    if not note or not note.strip():
        raise ValueError("note is empty")
    if len(note) > config.max_note_chars:
        raise ValueError(f"note is longer than {config.max_note_chars} characters")

    prompt = load_prompt("extraction", EXTRACTION_PROMPT).format(
        note=note,
        today=now.date().isoformat(),
        weekday=now.strftime("%A"),
    )

    try:
        raw_output = await complete_with_timeout(
            service,
            prompt,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
            timeout_seconds=config.timeout_seconds,
        )
    except asyncio.TimeoutError as e:
        raise ExtractionFailure(
            f"Extraction timed out after {config.timeout_seconds}s", note=note
        ) from e
    except Exception as e:
        raise ExtractionFailure(f"Extraction call failed: {e}", note=note) from e

    drafts = parse_extraction_output(raw_output, now, note=note)
    logger.info(f"Extracted {len(drafts)} task draft(s) from {len(note)} chars")
    return drafts


def parse_extraction_output(raw_output: str, now: datetime, note: str = "") -> list[TaskDraft]:
    """
    Parse the extraction response into drafts.

    Accepts {"tasks": [...]} or a bare array.
    """
    try:
        payload = extract_json(raw_output)
    except ValueError as e:
        logger.warning(f"Unparsable extraction response: {e}")
        raise ExtractionFailure(f"Could not parse tasks from response: {e}", note=note) from e

    items = payload.get("tasks") if isinstance(payload, dict) else payload
    if not isinstance(items, list):
        raise ExtractionFailure("Extraction response has no task list", note=note)

    drafts = []
    for item in items:
        if not isinstance(item, dict):
            raise ExtractionFailure(f"Task entry is not an object: {item!r}", note=note)

        draft = build_draft(item, now)
        if draft is None:
            logger.debug(f"Dropping task entry without a title: {item!r}")
            continue
        drafts.append(draft)

    return drafts


def build_draft(item: dict[str, Any], now: datetime) -> TaskDraft | None:
    """Normalise one extracted item. Returns None if it has no title."""
    title = str(item.get("title") or "").strip()
    if not title:
        return None

    context = str(item.get("context") or item.get("notes") or "").strip()
    due_date = resolve_due_date(_first(item, "due_date", "dueDate"), now)

    area = str(item.get("area") or "").strip().lower()
    if area not in TASK_AREAS:
        area = infer_area(f"{title} {context}")

    urgent = coerce_bool(item.get("urgent")) or is_near_deadline(due_date, now)

    return TaskDraft(
        title=title,
        urgent=urgent,
        important=coerce_bool(item.get("important")),
        area=area,
        estimated_minutes=round_up_estimate(_first(item, "estimated_minutes", "estimatedMinutes")),
        due_date=due_date,
        context=context,
        assigned_to=_first(item, "assigned_to", "assignedTo") or None,
        reasoning=item.get("reasoning") or None,
    )


def coerce_bool(value: Any) -> bool:
    """Strict boolean coercion; anything unrecognised is False."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1")
    return False


def round_up_estimate(value: Any) -> int | None:
    """
    Round an estimate up to the next 15 minutes (minimum 15).

    Numbers are minutes. Strings may carry a minute or hour unit
    ("45 mins", "1.5 hours"); any other unit gives None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        minutes = float(value)
    else:
        m = _ESTIMATE_PATTERN.fullmatch(str(value).strip().lower())
        if not m:
            return None
        minutes = float(m.group(1))
        if m.group(2) and m.group(2).startswith("h"):
            minutes *= 60
    if minutes <= 0:
        return None
    return max(ESTIMATE_STEP_MINUTES, math.ceil(minutes / ESTIMATE_STEP_MINUTES) * ESTIMATE_STEP_MINUTES)


def is_near_deadline(due_date: datetime | None, now: datetime) -> bool:
    if due_date is None:
        return False
    return (due_date.date() - now.date()).days <= URGENT_WITHIN_DAYS


def infer_area(text: str) -> str:
    lowered = text.lower()
    for area, keywords in AREA_KEYWORDS.items():
        if any(re.search(rf"\b{re.escape(k)}\b", lowered) for k in keywords):
            return area
    return "personal"


def _first(item: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if item.get(key) is not None:
            return item[key]
    return None
