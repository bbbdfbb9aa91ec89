"""Task Engine - storage and prioritisation for ADHD-friendly task tracking

Philosophy:
    A list of five things is actually zero things for ADHD decision fatigue.
    The store keeps everything; the selector surfaces ONE task.

Components:
    manager.py: Task and meeting record CRUD operations
    priority.py: Priority scoring, next-task selection and WIP pressure

Usage:
    from focusflow.tasks.manager import create_task, list_tasks
    from focusflow.tasks.priority import select_next_task

    create_task(user_id="alice", title="Email parents about excursion", urgent=True)
    tasks = list_tasks(user_id="alice")["data"]["tasks"]
    print(select_next_task(tasks)["title"])
"""

from pathlib import Path

# Path constants
PROJECT_ROOT = Path(__file__).parent.parent.parent
DB_PATH = PROJECT_ROOT / "data" / "tasks.db"
CONFIG_PATH = PROJECT_ROOT / "args" / "task_engine.yaml"

# Valid statuses, in cycle order
TASK_STATUSES = ("todo", "in-progress", "done")
TASK_AREAS = ("work", "personal", "health", "social")

# Where a note_history entry came from
NOTE_SOURCES = ("quick_note", "manual", "ai_merge")

# Advisory only - starting a new task is never blocked
DEFAULT_WIP_LIMIT = 3

__all__ = [
    "PROJECT_ROOT",
    "DB_PATH",
    "CONFIG_PATH",
    "TASK_STATUSES",
    "TASK_AREAS",
    "NOTE_SOURCES",
    "DEFAULT_WIP_LIMIT",
]
