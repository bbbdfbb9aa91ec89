"""
Integration tests for the intake flow.

Tests the complete pipeline from raw note to committed tasks:
- Extraction -> matching -> review -> commit
- Transcripts with meeting summaries
- Failure modes that must leave the store untouched
"""

import json
from datetime import datetime, timezone

import pytest

from focusflow.config_models import TaskEngineConfig
from focusflow.intake.errors import ExtractionFailure
from focusflow.intake.review import CreateNew, Pending
from focusflow.intake.session import commit_session, process_note, process_transcript
from focusflow.tasks.priority import select_next_task

NOW = datetime(2026, 10, 21, 9, 0, tzinfo=timezone.utc)

NOTE = "Add captions to the ADE video. Book a blood test by Friday."

EXTRACTED = json.dumps({
    "tasks": [
        {
            "title": "Add captions to the ADE video",
            "urgent": False,
            "important": True,
            "area": "work",
            "estimated_minutes": 40,
            "due_date": None,
            "context": "Add captions to the ADE video.",
        },
        {
            "title": "Book a blood test",
            "urgent": False,
            "important": True,
            "area": "health",
            "estimated_minutes": 10,
            "due_date": "2026-10-23",
            "context": "Book a blood test by Friday.",
        },
    ]
})


def make_responder(extraction=EXTRACTED, summary="We agreed on captions and a blood test.", matching=None):
    """Route each prompt to a canned reply by what the prompt asks for."""

    def responder(prompt):
        if prompt.startswith("Summarize this meeting transcript"):
            return summary
        if "existing incomplete tasks" in prompt:
            if matching is not None:
                return matching
            if '"Add captions to the ADE video' in prompt:
                return '[{"task_index": 0, "similarity": 86, "reasoning": "Same ADE video"}]'
            return "[]"
        return extraction

    return responder


@pytest.fixture
def config():
    return TaskEngineConfig()


@pytest.fixture
def ade_task(task_store, sample_task):
    return task_store.create_task(**sample_task)["data"]["task"]


# ─────────────────────────────────────────────────────────────────────────────
# Note Flow Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestNoteFlow:
    """Note -> review -> commit."""

    @pytest.mark.asyncio
    async def test_review_before_commit_writes_nothing(
        self, task_store, mock_user_id, ade_task, scripted_service, config
    ):
        service = scripted_service(responder=make_responder())

        session = await process_note(NOTE, mock_user_id, service, now=NOW, config=config)

        first, second = session.items
        assert first.decision == Pending()
        assert first.candidate_ids == [ade_task["id"]]
        assert second.decision == CreateNew()
        assert second.draft.urgent is True
        assert task_store.list_tasks(mock_user_id)["data"]["total"] == 1
        assert task_store.get_task(ade_task["id"])["data"] == ade_task

    @pytest.mark.asyncio
    async def test_default_commit_merges_and_creates(
        self, task_store, mock_user_id, ade_task, scripted_service, config
    ):
        service = scripted_service(responder=make_responder())
        session = await process_note(NOTE, mock_user_id, service, now=NOW, config=config)

        report = commit_session(session, now=NOW)

        assert report.ok
        assert report.merged_ids == [ade_task["id"]]
        assert len(report.created_ids) == 1
        merged = task_store.get_task(ade_task["id"])["data"]
        assert "[Added from note 2026-10-21 09:00]" in merged["notes"]
        created = task_store.get_task(report.created_ids[0])["data"]
        assert created["title"] == "Book a blood test"
        assert created["estimated_minutes"] == 15
        assert task_store.list_meetings(mock_user_id)["data"]["total"] == 0

    @pytest.mark.asyncio
    async def test_user_choices_are_respected(
        self, task_store, mock_user_id, ade_task, scripted_service, config
    ):
        service = scripted_service(responder=make_responder())
        session = await process_note(NOTE, mock_user_id, service, now=NOW, config=config)
        session.items[0].create()
        session.items[1].skip()

        report = commit_session(session, now=NOW)

        assert report.merged_ids == []
        assert len(report.created_ids) == 1
        assert task_store.get_task(ade_task["id"])["data"]["notes"] == ade_task["notes"]
        assert task_store.list_tasks(mock_user_id)["data"]["total"] == 2

    @pytest.mark.asyncio
    async def test_matching_failure_still_creates(
        self, task_store, mock_user_id, ade_task, scripted_service, config
    ):
        service = scripted_service(responder=make_responder(matching=RuntimeError("overloaded")))

        session = await process_note(NOTE, mock_user_id, service, now=NOW, config=config)
        report = commit_session(session, now=NOW)

        assert all(item.candidates == [] for item in session.items)
        assert len(report.created_ids) == 2

    @pytest.mark.asyncio
    async def test_extraction_failure_writes_nothing(
        self, task_store, mock_user_id, ade_task, scripted_service, config
    ):
        service = scripted_service(responder=make_responder(extraction="not json at all"))

        with pytest.raises(ExtractionFailure) as exc_info:
            await process_note(NOTE, mock_user_id, service, now=NOW, config=config)

        assert exc_info.value.note == NOTE
        assert task_store.list_tasks(mock_user_id)["data"]["total"] == 1

    @pytest.mark.asyncio
    async def test_committed_tasks_feed_next_task(
        self, task_store, mock_user_id, ade_task, scripted_service, config
    ):
        service = scripted_service(responder=make_responder())
        session = await process_note(NOTE, mock_user_id, service, now=NOW, config=config)
        commit_session(session, now=NOW)

        tasks = task_store.list_open_tasks(mock_user_id)["data"]["tasks"]

        # urgent + important + due within 3 days beats important only
        assert select_next_task(tasks, NOW)["title"] == "Book a blood test"


# ─────────────────────────────────────────────────────────────────────────────
# Transcript Flow Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestTranscriptFlow:
    """Transcripts also produce a meeting record, stored at commit."""

    @pytest.mark.asyncio
    async def test_meeting_stored_on_commit(self, task_store, mock_user_id, scripted_service, config):
        service = scripted_service(responder=make_responder())

        session = await process_transcript(
            NOTE, mock_user_id, service, title="Weekly sync", duration_seconds=600, now=NOW, config=config
        )

        assert session.summary == "We agreed on captions and a blood test."
        assert task_store.list_meetings(mock_user_id)["data"]["total"] == 0

        report = commit_session(session, now=NOW)

        meetings = task_store.list_meetings(mock_user_id)["data"]["meetings"]
        assert len(meetings) == 1
        assert meetings[0]["title"] == "Weekly sync"
        assert meetings[0]["summary"] == session.summary
        linked = task_store.get_meeting_tasks(meetings[0]["id"], mock_user_id)["data"]["tasks"]
        assert {t["id"] for t in linked} == set(report.created_ids)
        assert all(t["notes"].startswith("From meeting:\n") for t in linked)

    @pytest.mark.asyncio
    async def test_summary_failure_is_not_fatal(self, task_store, mock_user_id, scripted_service, config):
        service = scripted_service(responder=make_responder(summary=RuntimeError("busy")))

        session = await process_transcript(NOTE, mock_user_id, service, now=NOW, config=config)

        assert session.summary == ""
        assert len(session.items) == 2
