"""Pytest configuration for phased testing.

Tests are organized by phase:
- f1: classification, aggregation, models, validators
- f2: local adapter and course tree store
- f3: SQLite repository and course API
- f4: remote adapter, config and CLI

Only tests for the current phase and completed phases run.
"""

import pytest

from gradetrack.db import database

# Current implementation phase
CURRENT_PHASE = 4


def pytest_collection_modifyitems(config, items):
    """Skip tests from phases beyond CURRENT_PHASE."""
    for item in items:
        # tests/f2/... -> 2
        phase_dirs = [p for p in item.path.parts if p.startswith("f") and p[1:].isdigit()]
        if not phase_dirs:
            continue
        test_phase = int(phase_dirs[0][1:])
        if test_phase > CURRENT_PHASE:
            item.add_marker(
                pytest.mark.skip(reason=f"Phase F{test_phase} beyond current F{CURRENT_PHASE}")
            )


@pytest.fixture(autouse=True)
def _reset_db_path(monkeypatch):
    """Each test starts without a database selected."""
    monkeypatch.setattr(database, "_db_path", None)
