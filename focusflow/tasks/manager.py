"""
Tool: Task Manager
Purpose: CRUD operations for tasks and the meetings they came from

This is the task store the intake pipeline and the next-task selector
work against:
- Create tasks by hand or from reviewed intake drafts
- Cycle status todo -> in-progress -> done -> todo
- Toggle urgent / important / pinned flags
- Append notes while keeping an append-only note history
- Keep meeting transcripts so merged and created tasks can point back

Usage:
    python -m focusflow.tasks.manager --action create --user alice --title "Email parents"
    python -m focusflow.tasks.manager --action list --user alice --status todo
    python -m focusflow.tasks.manager --action open --user alice
    python -m focusflow.tasks.manager --action get --task-id abc123
    python -m focusflow.tasks.manager --action advance --task-id abc123
    python -m focusflow.tasks.manager --action flag --task-id abc123 --urgent true
    python -m focusflow.tasks.manager --action note --task-id abc123 --content "Bring permission slips"

Dependencies:
    - sqlite3 (stdlib)
    - uuid (stdlib)

Output:
    JSON result with success status and data
"""

import argparse
import json
import sqlite3
import sys
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from . import (
    DB_PATH,
    NOTE_SOURCES,
    TASK_AREAS,
    TASK_STATUSES,
)

# todo -> in-progress -> done -> todo
NEXT_STATUS = {
    "todo": "in-progress",
    "in-progress": "done",
    "done": "todo",
}


def get_connection() -> sqlite3.Connection:
    """Get database connection, creating tables if needed."""
    DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(DB_PATH))
    conn.row_factory = sqlite3.Row

    cursor = conn.cursor()

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS tasks (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            title TEXT NOT NULL,
            notes TEXT,
            status TEXT DEFAULT 'todo' CHECK(status IN ('todo', 'in-progress', 'done')),
            urgent INTEGER DEFAULT 0,
            important INTEGER DEFAULT 0,
            area TEXT DEFAULT 'personal' CHECK(area IN ('work', 'personal', 'health', 'social')),
            estimated_minutes INTEGER,
            due_date TEXT,
            is_pinned INTEGER DEFAULT 0,
            meeting_id TEXT,
            note_history TEXT DEFAULT '[]',
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            completed_at TEXT
        )
    """)

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS meetings (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            title TEXT NOT NULL,
            transcript TEXT NOT NULL,
            summary TEXT,
            duration_seconds INTEGER,
            word_count INTEGER,
            created_at TEXT NOT NULL
        )
    """)

    cursor.execute("CREATE INDEX IF NOT EXISTS idx_tasks_user ON tasks(user_id)")
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_tasks_status ON tasks(status)")
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_tasks_meeting ON tasks(meeting_id)")
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_tasks_created ON tasks(created_at)")
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_meetings_user ON meetings(user_id)")

    conn.commit()
    return conn


def row_to_dict(row: Optional[sqlite3.Row]) -> Optional[Dict[str, Any]]:
    """Convert sqlite3.Row to dictionary, decoding flags and note history."""
    if row is None:
        return None
    d = dict(row)
    for flag in ("urgent", "important", "is_pinned"):
        if flag in d:
            d[flag] = bool(d[flag])
    if "note_history" in d:
        d["note_history"] = json.loads(d["note_history"] or "[]")
    return d


def generate_id() -> str:
    """Generate a short unique ID."""
    return uuid.uuid4().hex[:12]


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _fetch_task(cursor: sqlite3.Cursor, task_id: str) -> Optional[Dict[str, Any]]:
    cursor.execute("SELECT * FROM tasks WHERE id = ?", (task_id,))
    return row_to_dict(cursor.fetchone())


def create_task(
    user_id: str,
    title: str,
    notes: Optional[str] = None,
    urgent: bool = False,
    important: bool = False,
    area: str = "personal",
    estimated_minutes: Optional[int] = None,
    due_date: Optional[str] = None,
    is_pinned: bool = False,
    meeting_id: Optional[str] = None,
    status: str = "todo",
    note_source: str = "manual",
) -> Dict[str, Any]:
    """
    Create a new task.

    Args:
        user_id: User who owns the task
        title: Short actionable title
        notes: Free-text notes; also seeds the note history
        urgent: Eisenhower urgency flag
        important: Eisenhower importance flag
        area: One of work/personal/health/social
        estimated_minutes: Estimated time to complete
        due_date: ISO timestamp
        is_pinned: Pin to the top of the user's attention
        meeting_id: Meeting the task was extracted from
        status: Initial status (todo unless importing)
        note_source: note_history source for the seeded notes

    Returns:
        dict with success status and task data
    """
    if not user_id:
        return {"success": False, "error": "user_id is required"}
    if not title or not title.strip():
        return {"success": False, "error": "title is required"}
    if area not in TASK_AREAS:
        return {"success": False, "error": f"Invalid area. Must be one of: {TASK_AREAS}"}
    if status not in TASK_STATUSES:
        return {"success": False, "error": f"Invalid status. Must be one of: {TASK_STATUSES}"}
    if note_source not in NOTE_SOURCES:
        return {"success": False, "error": f"Invalid note source. Must be one of: {NOTE_SOURCES}"}

    task_id = generate_id()
    timestamp = now_iso()
    history = []
    if notes:
        history.append({"added_at": timestamp, "content": notes, "source": note_source})

    conn = get_connection()
    cursor = conn.cursor()

    cursor.execute("""
        INSERT INTO tasks (id, user_id, title, notes, status, urgent, important, area,
                           estimated_minutes, due_date, is_pinned, meeting_id, note_history,
                           created_at, updated_at, completed_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
    """, (
        task_id, user_id, title.strip(), notes, status, int(urgent), int(important), area,
        estimated_minutes, due_date, int(is_pinned), meeting_id, json.dumps(history),
        timestamp, timestamp, timestamp if status == "done" else None,
    ))

    conn.commit()

    task = _fetch_task(cursor, task_id)
    conn.close()

    return {
        "success": True,
        "data": {"task_id": task_id, "task": task},
        "message": f"Task created with ID {task_id}",
    }


def get_task(task_id: str) -> Dict[str, Any]:
    """
    Get task details by ID.

    Args:
        task_id: Task ID to fetch

    Returns:
        dict with task data
    """
    conn = get_connection()
    task = _fetch_task(conn.cursor(), task_id)
    conn.close()

    if not task:
        return {"success": False, "error": f"Task not found: {task_id}"}

    return {"success": True, "data": task}


def list_tasks(
    user_id: str,
    status: Optional[str] = None,
    area: Optional[str] = None,
    limit: int = 500,
    offset: int = 0,
) -> Dict[str, Any]:
    """
    List tasks for a user, newest first.

    Args:
        user_id: User whose tasks to list
        status: Filter by status
        area: Filter by area
        limit: Maximum results
        offset: Pagination offset

    Returns:
        dict with task list
    """
    if status and status not in TASK_STATUSES:
        return {"success": False, "error": f"Invalid status. Must be one of: {TASK_STATUSES}"}
    if area and area not in TASK_AREAS:
        return {"success": False, "error": f"Invalid area. Must be one of: {TASK_AREAS}"}

    conn = get_connection()
    cursor = conn.cursor()

    conditions = ["user_id = ?"]
    params: List[Any] = [user_id]

    if status:
        conditions.append("status = ?")
        params.append(status)

    if area:
        conditions.append("area = ?")
        params.append(area)

    where_clause = " AND ".join(conditions)

    cursor.execute(f"""
        SELECT * FROM tasks
        WHERE {where_clause}
        ORDER BY created_at DESC
        LIMIT ? OFFSET ?
    """, params + [limit, offset])

    tasks = [row_to_dict(row) for row in cursor.fetchall()]

    cursor.execute(f"SELECT COUNT(*) as count FROM tasks WHERE {where_clause}", params)
    total = cursor.fetchone()["count"]

    conn.close()

    return {
        "success": True,
        "data": {"tasks": tasks, "total": total, "limit": limit, "offset": offset},
    }


def list_open_tasks(user_id: str) -> Dict[str, Any]:
    """
    List a user's tasks that are not done, newest first.

    These are the tasks new drafts get matched against.
    """
    conn = get_connection()
    cursor = conn.cursor()

    cursor.execute("""
        SELECT * FROM tasks
        WHERE user_id = ? AND status != 'done'
        ORDER BY created_at DESC
    """, (user_id,))

    tasks = [row_to_dict(row) for row in cursor.fetchall()]
    conn.close()

    return {"success": True, "data": {"tasks": tasks, "total": len(tasks)}}


def update_task(
    task_id: str,
    title: Optional[str] = None,
    notes: Optional[str] = None,
    urgent: Optional[bool] = None,
    important: Optional[bool] = None,
    is_pinned: Optional[bool] = None,
    area: Optional[str] = None,
    estimated_minutes: Optional[int] = None,
    due_date: Optional[str] = None,
    meeting_id: Optional[str] = None,
    note_entry: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Update task fields.

    Status changes go through advance_status so the cycle is kept.

    Args:
        task_id: Task to update
        title: New title
        notes: Replacement notes text
        urgent: New urgency flag
        important: New importance flag
        is_pinned: New pin flag
        area: New area
        estimated_minutes: New time estimate
        due_date: New ISO due timestamp
        meeting_id: Meeting reference
        note_entry: One note_history entry to append in the same write

    Returns:
        dict with updated task
    """
    if area is not None and area not in TASK_AREAS:
        return {"success": False, "error": f"Invalid area. Must be one of: {TASK_AREAS}"}

    if note_entry is not None and note_entry.get("source") not in NOTE_SOURCES:
        return {"success": False, "error": f"Invalid note source. Must be one of: {NOTE_SOURCES}"}

    conn = get_connection()
    cursor = conn.cursor()

    existing = _fetch_task(cursor, task_id)
    if not existing:
        conn.close()
        return {"success": False, "error": f"Task not found: {task_id}"}

    updates = []
    params: List[Any] = []

    if title is not None:
        updates.append("title = ?")
        params.append(title)

    if notes is not None:
        updates.append("notes = ?")
        params.append(notes)

    if urgent is not None:
        updates.append("urgent = ?")
        params.append(int(urgent))

    if important is not None:
        updates.append("important = ?")
        params.append(int(important))

    if is_pinned is not None:
        updates.append("is_pinned = ?")
        params.append(int(is_pinned))

    if area is not None:
        updates.append("area = ?")
        params.append(area)

    if estimated_minutes is not None:
        updates.append("estimated_minutes = ?")
        params.append(estimated_minutes)

    if due_date is not None:
        updates.append("due_date = ?")
        params.append(due_date)

    if meeting_id is not None:
        updates.append("meeting_id = ?")
        params.append(meeting_id)

    if note_entry is not None:
        history = existing["note_history"] + [note_entry]
        updates.append("note_history = ?")
        params.append(json.dumps(history))

    if not updates:
        conn.close()
        return {"success": False, "error": "No fields to update"}

    updates.append("updated_at = ?")
    params.append(now_iso())

    params.append(task_id)
    cursor.execute(f"UPDATE tasks SET {', '.join(updates)} WHERE id = ?", params)
    conn.commit()

    task = _fetch_task(cursor, task_id)
    conn.close()

    return {"success": True, "data": task, "message": f"Task {task_id} updated"}


def advance_status(task_id: str) -> Dict[str, Any]:
    """
    Move a task one step around the status cycle.

    todo -> in-progress -> done -> todo. Reopening clears completed_at.

    Args:
        task_id: Task to advance

    Returns:
        dict with updated task
    """
    conn = get_connection()
    cursor = conn.cursor()

    task = _fetch_task(cursor, task_id)
    if not task:
        conn.close()
        return {"success": False, "error": f"Task not found: {task_id}"}

    new_status = NEXT_STATUS[task["status"]]
    timestamp = now_iso()
    completed_at = timestamp if new_status == "done" else None

    cursor.execute(
        "UPDATE tasks SET status = ?, completed_at = ?, updated_at = ? WHERE id = ?",
        (new_status, completed_at, timestamp, task_id),
    )
    conn.commit()

    task = _fetch_task(cursor, task_id)
    conn.close()

    return {"success": True, "data": task, "message": f"Task {task_id} is now {new_status}"}


def set_flags(
    task_id: str,
    urgent: Optional[bool] = None,
    important: Optional[bool] = None,
    is_pinned: Optional[bool] = None,
) -> Dict[str, Any]:
    """Toggle urgent / important / pinned flags."""
    return update_task(task_id, urgent=urgent, important=important, is_pinned=is_pinned)


def append_notes(task_id: str, content: str, source: str = "quick_note") -> Dict[str, Any]:
    """
    Append notes to an existing task.

    Args:
        task_id: Task to add notes to
        content: Note text to append
        source: Where the note came from (quick_note/manual/ai_merge)

    Returns:
        dict with updated task
    """
    if not content or not content.strip():
        return {"success": False, "error": "content is required"}

    result = get_task(task_id)
    if not result["success"]:
        return result

    task = result["data"]
    timestamp = now_iso()
    current = task.get("notes") or ""
    if current:
        stamped = datetime.fromisoformat(timestamp).strftime("%Y-%m-%d")
        updated_notes = f"{current}\n\n---\nAdded {stamped}:\n{content}"
    else:
        updated_notes = content

    return update_task(
        task_id,
        notes=updated_notes,
        note_entry={"added_at": timestamp, "content": content, "source": source},
    )


def delete_task(task_id: str) -> Dict[str, Any]:
    """
    Delete a task.

    Only ever called on an explicit user request.
    """
    conn = get_connection()
    cursor = conn.cursor()

    cursor.execute("SELECT id FROM tasks WHERE id = ?", (task_id,))
    if not cursor.fetchone():
        conn.close()
        return {"success": False, "error": f"Task not found: {task_id}"}

    cursor.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
    conn.commit()
    conn.close()

    return {"success": True, "message": f"Task {task_id} deleted"}


# =============================================================================
# Meetings
# =============================================================================


def create_meeting(
    user_id: str,
    transcript: str,
    title: Optional[str] = None,
    summary: Optional[str] = None,
    duration_seconds: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Store a meeting transcript.

    Args:
        user_id: User who recorded the meeting
        transcript: Full transcript text
        title: Meeting title (defaults to "Meeting <date>")
        summary: Short summary of the meeting
        duration_seconds: Recording length

    Returns:
        dict with meeting data
    """
    if not user_id:
        return {"success": False, "error": "user_id is required"}
    if not transcript or not transcript.strip():
        return {"success": False, "error": "transcript is required"}

    meeting_id = generate_id()
    timestamp = now_iso()
    title = title or f"Meeting {timestamp[:10]}"

    conn = get_connection()
    cursor = conn.cursor()

    cursor.execute("""
        INSERT INTO meetings (id, user_id, title, transcript, summary, duration_seconds, word_count, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?)
    """, (meeting_id, user_id, title, transcript, summary, duration_seconds,
          len(transcript.split()), timestamp))
    conn.commit()

    cursor.execute("SELECT * FROM meetings WHERE id = ?", (meeting_id,))
    meeting = row_to_dict(cursor.fetchone())
    conn.close()

    return {"success": True, "data": meeting, "message": f"Meeting saved with ID {meeting_id}"}


def get_meeting(meeting_id: str, user_id: str) -> Dict[str, Any]:
    """Get a single meeting owned by user_id."""
    conn = get_connection()
    cursor = conn.cursor()

    cursor.execute("SELECT * FROM meetings WHERE id = ? AND user_id = ?", (meeting_id, user_id))
    meeting = row_to_dict(cursor.fetchone())
    conn.close()

    if not meeting:
        return {"success": False, "error": f"Meeting not found: {meeting_id}"}

    return {"success": True, "data": meeting}


def list_meetings(user_id: str) -> Dict[str, Any]:
    """List a user's meetings, newest first."""
    conn = get_connection()
    cursor = conn.cursor()

    cursor.execute("SELECT * FROM meetings WHERE user_id = ? ORDER BY created_at DESC", (user_id,))
    meetings = [row_to_dict(row) for row in cursor.fetchall()]
    conn.close()

    return {"success": True, "data": {"meetings": meetings, "total": len(meetings)}}


def get_meeting_tasks(meeting_id: str, user_id: str) -> Dict[str, Any]:
    """List tasks created or amended from a meeting."""
    conn = get_connection()
    cursor = conn.cursor()

    cursor.execute("""
        SELECT * FROM tasks
        WHERE meeting_id = ? AND user_id = ?
        ORDER BY created_at DESC
    """, (meeting_id, user_id))
    tasks = [row_to_dict(row) for row in cursor.fetchall()]
    conn.close()

    return {"success": True, "data": {"tasks": tasks, "total": len(tasks)}}


def update_meeting_summary(meeting_id: str, user_id: str, summary: str) -> Dict[str, Any]:
    """Replace a meeting's summary."""
    conn = get_connection()
    cursor = conn.cursor()

    cursor.execute(
        "UPDATE meetings SET summary = ? WHERE id = ? AND user_id = ?",
        (summary, meeting_id, user_id),
    )
    if cursor.rowcount == 0:
        conn.close()
        return {"success": False, "error": f"Meeting not found: {meeting_id}"}
    conn.commit()

    cursor.execute("SELECT * FROM meetings WHERE id = ?", (meeting_id,))
    meeting = row_to_dict(cursor.fetchone())
    conn.close()

    return {"success": True, "data": meeting}


def delete_meeting(meeting_id: str, user_id: str) -> Dict[str, Any]:
    """
    Delete a meeting transcript.

    Tasks that came from the meeting are kept; they just lose the link.
    """
    conn = get_connection()
    cursor = conn.cursor()

    cursor.execute("SELECT id FROM meetings WHERE id = ? AND user_id = ?", (meeting_id, user_id))
    if not cursor.fetchone():
        conn.close()
        return {"success": False, "error": f"Meeting not found: {meeting_id}"}

    cursor.execute(
        "UPDATE tasks SET meeting_id = NULL WHERE meeting_id = ? AND user_id = ?",
        (meeting_id, user_id),
    )
    cursor.execute("DELETE FROM meetings WHERE id = ?", (meeting_id,))
    conn.commit()
    conn.close()

    return {"success": True, "message": f"Meeting {meeting_id} deleted"}


def _parse_bool(value: str) -> bool:
    return value.lower() in ("1", "true", "yes", "on")


def main():
    parser = argparse.ArgumentParser(
        description="Task Manager - ADHD-friendly task CRUD operations"
    )
    parser.add_argument(
        "--action",
        required=True,
        choices=["create", "list", "open", "get", "update", "advance", "flag", "note", "delete"],
        help="Action to perform",
    )

    parser.add_argument("--task-id", help="Task ID for operations")
    parser.add_argument("--user", help="User ID")

    parser.add_argument("--title", help="Task title")
    parser.add_argument("--notes", help="Task notes")
    parser.add_argument("--content", help="Note content to append")
    parser.add_argument("--status", choices=TASK_STATUSES, help="Status filter")
    parser.add_argument("--area", choices=TASK_AREAS, help="Task area")
    parser.add_argument("--minutes", type=int, help="Estimated minutes")
    parser.add_argument("--due", help="Due date (ISO)")
    parser.add_argument("--urgent", type=_parse_bool, help="Urgent flag (true/false)")
    parser.add_argument("--important", type=_parse_bool, help="Important flag (true/false)")
    parser.add_argument("--pinned", type=_parse_bool, help="Pinned flag (true/false)")

    args = parser.parse_args()
    result = None

    if args.action == "create":
        if not args.user or not args.title:
            print(json.dumps({"success": False, "error": "--user and --title required for create"}))
            sys.exit(1)
        result = create_task(
            user_id=args.user,
            title=args.title,
            notes=args.notes,
            urgent=bool(args.urgent),
            important=bool(args.important),
            area=args.area or "personal",
            estimated_minutes=args.minutes,
            due_date=args.due,
            is_pinned=bool(args.pinned),
        )

    elif args.action in ("list", "open"):
        if not args.user:
            print(json.dumps({"success": False, "error": f"--user required for {args.action}"}))
            sys.exit(1)
        if args.action == "open":
            result = list_open_tasks(args.user)
        else:
            result = list_tasks(user_id=args.user, status=args.status, area=args.area)

    elif args.action in ("get", "update", "advance", "flag", "note", "delete"):
        if not args.task_id:
            print(json.dumps({"success": False, "error": f"--task-id required for {args.action}"}))
            sys.exit(1)
        if args.action == "get":
            result = get_task(args.task_id)
        elif args.action == "update":
            result = update_task(
                task_id=args.task_id,
                title=args.title,
                notes=args.notes,
                area=args.area,
                estimated_minutes=args.minutes,
                due_date=args.due,
            )
        elif args.action == "advance":
            result = advance_status(args.task_id)
        elif args.action == "flag":
            result = set_flags(args.task_id, urgent=args.urgent, important=args.important, is_pinned=args.pinned)
        elif args.action == "note":
            result = append_notes(args.task_id, args.content or "", source="manual")
        else:
            result = delete_task(args.task_id)

    if result:
        print(json.dumps(result, indent=2, default=str))
        if not result.get("success"):
            sys.exit(1)


if __name__ == "__main__":
    main()
