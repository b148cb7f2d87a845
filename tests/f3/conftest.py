"""Fixtures for database and API tests (F3)."""

import pytest
from fastapi.testclient import TestClient

from gradetrack.db import init_db
from gradetrack.web.api import create_app


@pytest.fixture
def db(tmp_path):
    """Fresh database for repository tests."""
    db_path = tmp_path / "test.db"
    init_db(db_path)
    return db_path


@pytest.fixture
def client(tmp_path):
    """API client over a fresh database."""
    app = create_app(tmp_path / "api.db")
    return TestClient(app)


@pytest.fixture
def alice():
    return {"X-User-Id": "alice"}


@pytest.fixture
def bob():
    return {"X-User-Id": "bob"}
