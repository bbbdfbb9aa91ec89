"""
FocusFlow - task intake, deduplication and next-task selection

Turns free-form notes and meeting transcripts into structured tasks,
reconciles them against a user's open tasks, and picks ONE thing to do next.

Subpackages:
    tasks/: Task store and priority scoring
    intake/: Extraction, matching, review and commit of drafted tasks
"""

__version__ = "0.3.0"
