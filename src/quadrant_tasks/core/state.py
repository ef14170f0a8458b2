# src/quadrant_tasks/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .ports import IssueImporter, ReportClient, TaskRepo


@dataclass
class AppState:
    # Settings object (config.Settings or a test double with the same attributes).
    settings: Any

    task_store: TaskRepo
    report_client: ReportClient
    issue_importer: IssueImporter
