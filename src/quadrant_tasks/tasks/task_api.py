# src/quadrant_tasks/tasks/task_api.py

"""
Service layer used by the command surface.

All functions take the AppState, which owns the injected task store and the
external clients. Storage errors propagate unchanged; missing ids on
update/complete are reported as TaskNotFoundError.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date

from ..core.state import AppState
from ..errors import TaskNotFoundError, TaskValidationError
from ..reports.prompt import ReportPeriod, build_report_prompt, filter_tasks_by_created, period_range
from .task_models import Quadrant, Task, TaskStatus

logger = logging.getLogger(__name__)


def _validate(title: str, quadrant: int) -> None:
    if not title or not title.strip():
        raise TaskValidationError("title is required")
    if not Quadrant.is_valid(quadrant):
        raise TaskValidationError(f"quadrant must be 1-4, got {quadrant!r}")


def _clean_tags(tags: Iterable[str] | None) -> list[str] | None:
    if tags is None:
        return None
    return [t.strip() for t in tags if t and t.strip()]


def create_task(
    state: AppState,
    *,
    title: str,
    description: str = "",
    quadrant: int,
    tags: Iterable[str] | None = None,
) -> Task:
    _validate(title, quadrant)
    task = Task.new(title.strip(), description or "", int(quadrant), _clean_tags(tags))
    state.task_store.insert_task(task)
    logger.info("Task created id=%s quadrant=%s", task.id, task.quadrant)
    return task


def list_tasks(state: AppState) -> list[Task]:
    return state.task_store.list_tasks()


def find_task(state: AppState, task_id: str) -> Task:
    task = state.task_store.get_task(task_id)
    if task is None:
        raise TaskNotFoundError(task_id)
    return task


def apply_status_label(task: Task, status: str | TaskStatus) -> None:
    """
    Status transition by label.

    - "completed": complete() unless already completed (no re-stamp)
    - "cancelled": cancel() unless already cancelled
    - anything else: plain assignment to PENDING (completed_at is kept)
    """
    label = str(status.value if isinstance(status, TaskStatus) else status).strip().lower()
    if label == TaskStatus.COMPLETED.value:
        if task.status != TaskStatus.COMPLETED:
            task.complete()
    elif label == TaskStatus.CANCELLED.value:
        if task.status != TaskStatus.CANCELLED:
            task.cancel()
    else:
        task.status = TaskStatus.PENDING


def update_task(
    state: AppState,
    task_id: str,
    *,
    title: str,
    description: str,
    quadrant: int,
    status: str | TaskStatus,
    tags: Iterable[str] | None = None,
) -> Task:
    """Full replace of the mutable fields plus a status transition, as one atomic step."""
    _validate(title, quadrant)
    new_tags = _clean_tags(tags)

    def mutate(task: Task) -> None:
        task.title = title.strip()
        task.description = description or ""
        task.quadrant = int(quadrant)
        task.tags = new_tags
        apply_status_label(task, status)

    updated = state.task_store.modify_task(task_id, mutate)
    if updated is None:
        raise TaskNotFoundError(task_id)
    logger.info("Task updated id=%s status=%s", updated.id, updated.status.value)
    return updated


def delete_task(state: AppState, task_id: str) -> None:
    if not state.task_store.delete_task(task_id):
        logger.debug("delete_task: id=%s did not exist", task_id)


def complete_task(state: AppState, task_id: str) -> Task:
    def mutate(task: Task) -> None:
        if task.status != TaskStatus.COMPLETED:
            task.complete()

    updated = state.task_store.modify_task(task_id, mutate)
    if updated is None:
        raise TaskNotFoundError(task_id)
    logger.info("Task completed id=%s at=%s", updated.id, updated.completed_at)
    return updated


def cancel_task(state: AppState, task_id: str) -> Task:
    def mutate(task: Task) -> None:
        if task.status != TaskStatus.CANCELLED:
            task.cancel()

    updated = state.task_store.modify_task(task_id, mutate)
    if updated is None:
        raise TaskNotFoundError(task_id)
    logger.info("Task cancelled id=%s", updated.id)
    return updated


# ---- external collaborators ----


async def generate_report(state: AppState, *, api_key: str, model: str, prompt: str) -> str:
    """Pass-through to the report client."""
    return await state.report_client.generate(api_key, model, prompt)


async def import_issues(
    state: AppState, *, token: str, gitlab_url: str, project_id: str
) -> list[Task]:
    """Pass-through to the issue importer. The returned tasks are NOT saved."""
    return await state.issue_importer.import_issues(token, gitlab_url, project_id)


def save_imported_tasks(state: AppState, tasks: Iterable[Task]) -> int:
    """
    Insert imported tasks that are not stored yet; returns how many were stored.

    A task counts as already stored when a stored task has the same title and
    description, so running the same import twice adds nothing the second time.
    """
    seen = {(t.title, t.description) for t in state.task_store.list_tasks()}
    saved = skipped = 0
    for task in tasks:
        key = (task.title, task.description)
        if key in seen:
            skipped += 1
            continue
        state.task_store.insert_task(task)
        seen.add(key)
        saved += 1
    logger.info("Imported tasks saved: %d (skipped %d already stored)", saved, skipped)
    return saved


async def build_task_report(
    state: AppState,
    *,
    api_key: str,
    model: str,
    period: ReportPeriod = ReportPeriod.WEEKLY,
    start: date | None = None,
    end: date | None = None,
    today: date | None = None,
) -> str | None:
    """
    List tasks, keep the ones created in the period, build the prompt and ask the report client.

    Returns None when no task falls into the period (nothing to report).
    """
    if start is None or end is None:
        start, end = period_range(period, today)

    tasks = filter_tasks_by_created(list_tasks(state), start, end)
    if not tasks:
        logger.info("Report: no tasks between %s and %s", start, end)
        return None

    prompt = build_report_prompt(tasks, period)
    return await generate_report(state, api_key=api_key, model=model, prompt=prompt)
