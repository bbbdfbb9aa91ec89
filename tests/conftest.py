"""Shared test fixtures for FocusFlow tests.

This module provides common fixtures used across all test modules:
- Database isolation with temporary files
- Standard test user/task data
- A scripted text-understanding service

Usage:
    def test_something(task_store):
        # task_store is focusflow.tasks.manager writing to a temp database
        ...
"""

import os
import tempfile
from collections.abc import Generator
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import patch

import pytest


# ─────────────────────────────────────────────────────────────────────────────
# Path Constants
# ─────────────────────────────────────────────────────────────────────────────

PROJECT_ROOT = Path(__file__).parent.parent


# ─────────────────────────────────────────────────────────────────────────────
# Database Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def temp_db() -> Generator[Path, None, None]:
    """Create a temporary database file for testing.

    The database file is automatically deleted after the test completes.

    Yields:
        Path to the temporary database file
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    yield db_path

    # Cleanup
    if db_path.exists():
        os.unlink(db_path)


@pytest.fixture
def task_store(temp_db):
    """Patch the task manager to use a temporary database."""
    with (
        patch("focusflow.tasks.manager.DB_PATH", temp_db),
        patch("focusflow.tasks.DB_PATH", temp_db),
    ):
        from focusflow.tasks import manager

        # Force table creation
        conn = manager.get_connection()
        conn.close()

        yield manager


# ─────────────────────────────────────────────────────────────────────────────
# User / Time Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def mock_user_id() -> str:
    """Standard test user ID."""
    return "test_user_123"


@pytest.fixture
def wednesday() -> datetime:
    """Wednesday 21 October 2026, 09:00 UTC."""
    return datetime(2026, 10, 21, 9, 0, tzinfo=timezone.utc)


# ─────────────────────────────────────────────────────────────────────────────
# Task Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def sample_task(mock_user_id: str) -> dict:
    """Sample task data for testing.

    Returns:
        dict with task fields
    """
    return {
        "user_id": mock_user_id,
        "title": "Create ADE application video",
        "notes": "Include student work examples, keep under 2 minutes",
        "urgent": False,
        "important": True,
        "area": "work",
        "estimated_minutes": 120,
    }


# ─────────────────────────────────────────────────────────────────────────────
# Text Service Fixtures
# ─────────────────────────────────────────────────────────────────────────────


class ScriptedTextService:
    """Stand-in for the text-understanding service.

    Either pops canned responses in call order, or asks a responder
    function for the reply to each prompt. Exceptions are raised instead
    of returned.
    """

    def __init__(self, responses=None, responder=None):
        self.responses = list(responses or [])
        self.responder = responder
        self.prompts = []

    async def complete(self, prompt, max_tokens=1024, temperature=0.3):
        self.prompts.append(prompt)
        result = self.responder(prompt) if self.responder else self.responses.pop(0)
        if isinstance(result, BaseException):
            raise result
        return result


@pytest.fixture
def scripted_service():
    """Factory for ScriptedTextService instances."""
    return ScriptedTextService
