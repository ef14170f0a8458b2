# src/quadrant_tasks/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the service layer.

The service layer depends on Protocols instead of concrete implementations.
This keeps storage and the external clients swappable and makes testing easier.
"""

from typing import Callable, Protocol

from ..tasks.task_models import Task


class TaskRepo(Protocol):
    """Durable task storage (see tasks/task_store.py)."""

    def insert_task(self, task: Task) -> None: ...
    def list_tasks(self) -> list[Task]: ...
    def get_task(self, task_id: str) -> Task | None: ...
    def update_task(self, task: Task) -> bool: ...
    def modify_task(self, task_id: str, mutate: Callable[[Task], None]) -> Task | None: ...
    def delete_task(self, task_id: str) -> bool: ...
    def count_tasks(self) -> int: ...
    def close(self) -> None: ...


class ReportClient(Protocol):
    """Generates a natural-language report from a prompt (OpenAI-compatible chat API)."""

    async def generate(self, api_key: str, model: str, prompt: str) -> str: ...


class IssueImporter(Protocol):
    """Turns the issues of a remote tracker project into (unsaved) tasks."""

    async def import_issues(self, token: str, base_url: str, project_id: str) -> list[Task]: ...
