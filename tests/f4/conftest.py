"""Fixtures for remote adapter, config and CLI tests (F4)."""

import pytest
from fastapi.testclient import TestClient

from gradetrack.config.app_config import clear_config_cache
from gradetrack.persistence.remote import RemoteCourseAdapter
from gradetrack.web.api import create_app


@pytest.fixture
def api_client(tmp_path):
    return TestClient(create_app(tmp_path / "api.db"))


@pytest.fixture
def remote_adapter(api_client):
    """Remote adapter talking to an in-process API."""
    return RemoteCourseAdapter("http://testserver", "alice", session=api_client)


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    """Run from an empty directory with default config."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("GRADETRACK_API_URL", raising=False)
    clear_config_cache()
    yield tmp_path
    clear_config_cache()
