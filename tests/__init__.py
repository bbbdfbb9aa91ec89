"""FocusFlow Test Suite

Test organization:
- unit/: Unit tests for individual modules
  - tasks/: Task store and priority selector
  - intake/: Extraction, matching, review and commit
- integration/: Note -> review -> commit flows against a temp database

Running tests:
    # All tests
    pytest

    # Specific module
    pytest tests/unit/intake/
"""
