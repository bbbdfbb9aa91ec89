#!/usr/bin/env python3
"""
FocusFlow Command Line Interface

Main entry point for the `focusflow` command.

Usage:
    focusflow intake --user alice --text "Email parents by Friday. Prep lesson, 30 mins."
    focusflow intake --user alice --file meeting.txt --transcript --commit
    focusflow next --user alice      # The ONE task to do now
    focusflow wip --user alice       # Work-in-progress pressure
    focusflow list --user alice --status todo
    focusflow advance --task-id abc123
    focusflow --version
"""

import argparse
import asyncio
import json
import sys
from datetime import datetime, timezone
from pathlib import Path


def cmd_version(args):
    from focusflow import __version__

    print(f"focusflow {__version__}")


def cmd_intake(args):
    """Extract drafts, show the review batch and optionally commit it.

    Without --commit nothing is written. With --commit every draft takes
    its default decision: create when nothing matched, otherwise merge into
    the best match.
    """
    from focusflow.config_models import load_task_engine_config
    from focusflow.intake.errors import ExtractionFailure
    from focusflow.intake.llm import AnthropicTextService
    from focusflow.intake.session import commit_session, process_note, process_transcript

    text = Path(args.file).read_text() if args.file else args.text
    if not text:
        print("Error: --text or --file is required", file=sys.stderr)
        return 1

    config = load_task_engine_config()
    service = AnthropicTextService(model=config.intake.model)

    try:
        if args.transcript:
            session = asyncio.run(process_transcript(text, args.user, service, title=args.title, config=config))
        else:
            session = asyncio.run(process_note(text, args.user, service, config=config))
    except ExtractionFailure as e:
        print(f"Couldn't read tasks from that note ({e}). Your note is unchanged:", file=sys.stderr)
        print(e.note, file=sys.stderr)
        return 1

    if session.summary:
        print(f"Summary:\n{session.summary}\n")

    if not session.items:
        print("No action items found.")
        return 0

    for i, item in enumerate(session.items):
        draft = item.draft
        due = draft.due_date.strftime("%a %Y-%m-%d") if draft.due_date else "no due date"
        flags = ", ".join(f for f, on in (("urgent", draft.urgent), ("important", draft.important)) if on)
        print(f"[{i}] {draft.title} ({draft.area}, {due}{', ' + flags if flags else ''})")
        for c in item.candidates:
            print(f"     ~ {c.similarity}% {c.task['title']} - {c.reasoning}")
        resolved = item.resolve()
        target = f" -> {resolved.target_task_id}" if resolved.kind == "merge" else ""
        print(f"     default: {resolved.kind}{target}")

    if not args.commit:
        return 0

    report = commit_session(session)
    print(json.dumps(report.to_dict(), indent=2))
    return 0 if report.ok else 1


def cmd_next(args):
    from focusflow.tasks.manager import list_open_tasks
    from focusflow.tasks.priority import get_priority_score, get_quadrant_label, select_next_task

    now = datetime.now(timezone.utc)
    tasks = list_open_tasks(args.user)["data"]["tasks"]
    task = select_next_task(tasks, now)

    if task is None:
        print("Nothing open right now.")
        return 0

    print(json.dumps({
        "task_id": task["id"],
        "title": task["title"],
        "quadrant": get_quadrant_label(task),
        "score": get_priority_score(task, now),
    }, indent=2))
    return 0


def cmd_wip(args):
    from focusflow.config_models import load_task_engine_config
    from focusflow.tasks.manager import list_open_tasks
    from focusflow.tasks.priority import compute_wip_pressure

    limit = args.limit if args.limit is not None else load_task_engine_config().priority.wip_limit
    tasks = list_open_tasks(args.user)["data"]["tasks"]
    pressure = compute_wip_pressure(tasks, limit)

    print(json.dumps(pressure, indent=2))
    if pressure["exceeded"]:
        print(f"You have {pressure['count']} things on the go - finishing one might feel good.")
    return 0


def cmd_list(args):
    from focusflow.tasks.manager import list_tasks

    result = list_tasks(args.user, status=args.status, area=args.area)
    print(json.dumps(result, indent=2, default=str))
    return 0 if result["success"] else 1


def cmd_advance(args):
    from focusflow.tasks.manager import advance_status

    result = advance_status(args.task_id)
    print(json.dumps(result, indent=2, default=str))
    return 0 if result["success"] else 1


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="focusflow",
        description="FocusFlow - task intake and next-task selection for ADHD users",
    )
    parser.add_argument(
        "--version", "-V", action="store_true", help="Show version and exit"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Verbose logging"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Intake subcommand
    intake_parser = subparsers.add_parser(
        "intake", help="Turn a note or transcript into reviewed tasks"
    )
    intake_parser.add_argument("--user", required=True, help="User ID")
    intake_parser.add_argument("--text", help="Note text")
    intake_parser.add_argument("--file", help="Read the note from a file")
    intake_parser.add_argument(
        "--transcript", action="store_true", help="Treat input as a meeting transcript"
    )
    intake_parser.add_argument("--title", help="Meeting title (transcripts only)")
    intake_parser.add_argument(
        "--commit", action="store_true", help="Apply default decisions to the task store"
    )
    intake_parser.set_defaults(func=cmd_intake)

    # Next subcommand
    next_parser = subparsers.add_parser("next", help="Show the one task to do next")
    next_parser.add_argument("--user", required=True, help="User ID")
    next_parser.set_defaults(func=cmd_next)

    # WIP subcommand
    wip_parser = subparsers.add_parser("wip", help="Show work-in-progress pressure")
    wip_parser.add_argument("--user", required=True, help="User ID")
    wip_parser.add_argument("--limit", type=int, default=None, help="Override the WIP limit")
    wip_parser.set_defaults(func=cmd_wip)

    # List subcommand
    list_parser = subparsers.add_parser("list", help="List tasks")
    list_parser.add_argument("--user", required=True, help="User ID")
    list_parser.add_argument("--status", help="Filter by status")
    list_parser.add_argument("--area", help="Filter by area")
    list_parser.set_defaults(func=cmd_list)

    # Advance subcommand
    advance_parser = subparsers.add_parser(
        "advance", help="Move a task to its next status (todo -> in-progress -> done -> todo)"
    )
    advance_parser.add_argument("--task-id", required=True, help="Task ID")
    advance_parser.set_defaults(func=cmd_advance)

    args = parser.parse_args()

    from focusflow.logging_config import setup_logging

    setup_logging(level="DEBUG" if args.verbose else None)

    # Handle --version at top level
    if args.version:
        cmd_version(args)
        return

    # If no command given, show help
    if not args.command:
        parser.print_help()
        return

    # Execute command
    result = args.func(args)

    # Commands may return an exit code
    if isinstance(result, int) and result != 0:
        sys.exit(result)


if __name__ == "__main__":
    main()
