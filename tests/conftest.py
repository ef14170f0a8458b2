# tests/conftest.py

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from types import SimpleNamespace

import pytest

from quadrant_tasks.core.state import AppState
from quadrant_tasks.tasks.task_store import TaskStore

from .fakes import FakeIssueImporter, FakeReportClient


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the command layer.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the environment and any local .env.
    """
    return SimpleNamespace(
        app_name="quadrant-tasks-test",
        log_level="DEBUG",
        data_dir=tmp_path,
        tasks_db_path=tmp_path / "tasks.sqlite3",
        openai_api_key="sk-test",
        openai_base_url="https://llm.test/v1",
        report_model="test-model",
        report_temperature=0.7,
        gitlab_token="glpat-test",
        gitlab_url="https://gitlab.test",
        gitlab_project_id="42",
        http_timeout_seconds=5.0,
    )


@pytest.fixture()
def store(tmp_path: Path) -> Iterator[TaskStore]:
    s = TaskStore(tmp_path / "store.sqlite3")
    yield s
    s.close()


@pytest.fixture()
def state(settings: SimpleNamespace) -> Iterator[AppState]:
    """
    AppState wired with deterministic fakes for the external clients.

    NOTE: the task store is a real SQLite file because its behavior is what we test.
    """
    st = AppState(
        settings=settings,
        task_store=TaskStore(settings.tasks_db_path),
        report_client=FakeReportClient(),
        issue_importer=FakeIssueImporter(),
    )
    yield st
    st.task_store.close()
