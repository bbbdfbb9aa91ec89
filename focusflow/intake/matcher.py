"""
Similarity Matcher

For a new draft, asks the text-understanding service which of the user's
open tasks it belongs to. Matching is deliberately strict: a false merge
writes someone's note into the wrong task, a missed match only costs a
duplicate the user can tidy up.

If the comparison call fails in any way the draft simply gets no
candidates. Task creation is never blocked on matching.

Usage:
    from focusflow.intake.matcher import match_tasks

    candidates = await match_tasks("add captions to the ADE video", open_tasks, service)
    for c in candidates:
        print(c.similarity, c.task["title"], c.reasoning)
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from focusflow.config_models import MatchingConfig
from focusflow.tasks.priority import parse_timestamp

from .errors import MatchingDegraded
from .extractor import TaskDraft
from .llm import TextService, complete_with_timeout, extract_json, load_prompt

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)

MATCHING_PROMPT = """You're helping someone with ADHD manage their tasks. They just wrote this note:

"{text}"

Here are their existing incomplete tasks:
{task_list}

For each existing task, decide whether the new note is about the SAME piece of work.

Be strict:
- Related means the same project, goal or activity - not shared keywords and not the same area of life
- Two work tasks about different things are NOT related
- Examples:
  * "add captions to the ADE video" relates to "Create ADE application video" (same video project)
  * "prep lesson" relates to "Friday lesson planning"
  * "email parents about video" and "prep lesson" are separate topics
  * "storyboard the product demo video" and "Get blood test results" are unrelated

Return ONLY a JSON array with similarity scores (0-100). Only include tasks with similarity >= {threshold}.
Use the number in square brackets as task_index.

Format:
[
  {{
    "task_index": 0,
    "similarity": 85,
    "reasoning": "Both are about the ADE application video"
  }}
]

If no tasks are related, return an empty array: []"""


@dataclass
class CandidateMatch:
    """A possible duplicate: an existing task, a 0-100 similarity and why."""
    task: dict[str, Any]
    similarity: int
    reasoning: str = ""

    @property
    def task_id(self) -> str:
        return self.task["id"]


def draft_match_text(draft: TaskDraft) -> str:
    """Text sent to the matcher for a draft."""
    if draft.context:
        return f"{draft.title}\nContext: {draft.context}"
    return draft.title


async def match_tasks(
    text: str,
    open_tasks: list[dict[str, Any]],
    service: TextService,
    config: MatchingConfig | None = None,
) -> list[CandidateMatch]:
    """
    Find open tasks the text is about.

    Args:
        text: Draft title (optionally with context)
        open_tasks: The user's tasks that are not done
        service: Text-understanding service
        config: Threshold, token limit and timeout

    Returns:
        Candidates with similarity >= threshold, best first; ties go to the
        more recently created task. Empty on any failure.
    """
    config = config or MatchingConfig()

    tasks = [t for t in open_tasks if t.get("status") != "done"]
    if not tasks:
        return []

    try:
        return await _compare(text, tasks, service, config)
    except MatchingDegraded as e:
        logger.warning(f"Matching degraded, treating as no duplicates: {e}")
        return []


async def match_drafts(
    drafts: list[TaskDraft],
    open_tasks: list[dict[str, Any]],
    service: TextService,
    config: MatchingConfig | None = None,
) -> list[list[CandidateMatch]]:
    """Match every draft concurrently. Results line up with drafts."""
    return list(await asyncio.gather(*(
        match_tasks(draft_match_text(draft), open_tasks, service, config)
        for draft in drafts
    )))


async def _compare(
    text: str,
    tasks: list[dict[str, Any]],
    service: TextService,
    config: MatchingConfig,
) -> list[CandidateMatch]:
    task_list = "\n".join(
        f"[{i}] \"{t['title']}\"" + (f"\n    Notes: {t['notes']}" if t.get("notes") else "")
        for i, t in enumerate(tasks)
    )
    prompt = load_prompt("matching", MATCHING_PROMPT).format(
        text=text,
        task_list=task_list,
        threshold=config.threshold,
    )

    try:
        raw_output = await complete_with_timeout(
            service,
            prompt,
            max_tokens=config.max_tokens,
            temperature=0.0,
            timeout_seconds=config.timeout_seconds,
        )
    except asyncio.TimeoutError as e:
        raise MatchingDegraded(f"comparison timed out after {config.timeout_seconds}s") from e
    except Exception as e:
        raise MatchingDegraded(f"comparison call failed: {e}") from e

    return parse_match_output(raw_output, tasks, config.threshold)


def parse_match_output(raw_output: str, tasks: list[dict[str, Any]], threshold: int) -> list[CandidateMatch]:
    """
    Turn the comparison response into sorted, de-duplicated candidates.

    Entries pointing outside the task list or scoring below the threshold
    are dropped.
    """
    try:
        payload = extract_json(raw_output)
    except ValueError as e:
        raise MatchingDegraded(str(e)) from e

    if isinstance(payload, dict):
        payload = payload.get("matches", [])
    if not isinstance(payload, list):
        raise MatchingDegraded("comparison response is not a list")

    best: dict[str, CandidateMatch] = {}
    for item in payload:
        if not isinstance(item, dict):
            continue

        index = item.get("task_index")
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(tasks):
            logger.debug(f"Ignoring match with bad task_index: {item!r}")
            continue

        try:
            similarity = int(round(float(item.get("similarity", 0))))
        except (TypeError, ValueError):
            continue
        similarity = max(0, min(100, similarity))
        if similarity < threshold:
            continue

        task = tasks[index]
        existing = best.get(task["id"])
        if existing is None or similarity > existing.similarity:
            best[task["id"]] = CandidateMatch(
                task=task,
                similarity=similarity,
                reasoning=str(item.get("reasoning") or ""),
            )

    candidates = list(best.values())
    candidates.sort(key=lambda c: parse_timestamp(c.task.get("created_at")) or _EPOCH, reverse=True)
    candidates.sort(key=lambda c: c.similarity, reverse=True)
    return candidates
