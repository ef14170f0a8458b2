# src/quadrant_tasks/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (task store, report client, GitLab importer).
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.ports import ReportClient
from ..core.state import AppState
from ..integrations.gitlab import GitLabIssueImporter
from ..llm.client import OpenAIReportClient
from ..llm.offline import OfflineReportClient
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    report_client: ReportClient
    if settings.openai_api_key:
        report_client = OpenAIReportClient.from_settings(settings)
    else:
        logger.info("No report API key configured; using the offline report client.")
        report_client = OfflineReportClient()

    return AppState(
        settings=settings,
        task_store=TaskStore(settings.tasks_db_path),
        report_client=report_client,
        issue_importer=GitLabIssueImporter.from_settings(settings),
    )


def shutdown_state(state: AppState) -> None:
    """Close the task store connection."""
    state.task_store.close()
