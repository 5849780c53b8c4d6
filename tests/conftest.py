"""Shared test fixtures for kairos tests."""

import shutil
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from kairos.config import Profile
from kairos.models import ExecutionSnapshot, ExecutionStatus, HistoryEvent, PendingActivityInfo


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    """Keep the developer's own kairos settings out of every test."""
    for name in ("KAIROS_CONFIG", "KAIROS_PROFILE", "KAIROS_SERVER_URL", "KAIROS_API_KEY", "KAIROS_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    tmp = tempfile.mkdtemp()
    yield Path(tmp)
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def make_event():
    """Factory for HistoryEvent objects."""

    def _make(event_id, event_type, **attributes):
        return HistoryEvent(event_id=event_id, event_type=event_type, attributes=attributes)

    return _make


@pytest.fixture
def make_execution():
    """Factory for ExecutionSnapshot objects."""

    def _make(workflow_id, status=ExecutionStatus.RUNNING, run_id=None, **kwargs):
        kwargs.setdefault("workflow_type", "OrderWorkflow")
        kwargs.setdefault("start_time", datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc))
        return ExecutionSnapshot(
            workflow_id=workflow_id,
            run_id=run_id or f"run-{workflow_id}",
            status=status,
            **kwargs,
        )

    return _make


@pytest.fixture
def make_pending():
    def _make(activity_id, attempt, last_failure=None):
        return PendingActivityInfo(
            activity_id=activity_id,
            activity_type="Charge",
            attempt=attempt,
            last_failure=last_failure,
        )

    return _make


@pytest.fixture
def local_profile():
    return Profile(name="local", server_url="http://localhost:7243", namespace="default")


@pytest.fixture
def mock_backend(local_profile):
    """Backend stand-in; every method is a MagicMock."""
    backend = MagicMock()
    backend.profile = local_profile
    return backend
