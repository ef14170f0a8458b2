# src/quadrant_tasks/errors.py

"""Exceptions raised by the task store, the service layer and the external clients."""

from __future__ import annotations


class TaskError(Exception):
    """Base exception for quadrant-tasks errors."""

    pass


class TaskNotFoundError(TaskError):
    """Raised when a task id does not exist."""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


class TaskValidationError(TaskError, ValueError):
    """Raised when caller input is invalid (bad quadrant, empty credential, ...)."""

    pass


class TaskStorageError(TaskError):
    """Raised when the SQLite file cannot be opened, read or written."""

    pass


class TaskConflictError(TaskStorageError):
    """Raised when inserting a task whose id already exists."""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task already exists: {task_id}")
        self.task_id = task_id


class TaskDecodeError(TaskStorageError):
    """Raised when a stored row cannot be turned back into a Task."""

    pass


class RemoteFailureError(TaskError):
    """Raised when an external service (LLM, GitLab) fails or answers non-2xx."""

    def __init__(self, message: str, *, status_code: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


def friendly_error_message(err: Exception) -> str:
    """Short user-facing text for an error coming out of the service layer."""
    msg = str(err).strip()
    if isinstance(err, TaskNotFoundError):
        return f"Task not found: {err.task_id}"
    if isinstance(err, TaskConflictError):
        return f"A task with id {err.task_id} already exists."
    if isinstance(err, TaskDecodeError):
        return f"Stored task data is corrupted: {msg}"
    if isinstance(err, TaskStorageError):
        return f"Storage error: {msg}"
    if isinstance(err, TaskValidationError):
        return f"Invalid input: {msg}"
    if isinstance(err, RemoteFailureError):
        if err.body:
            return f"{msg}: {err.body}"
        return msg
    return msg or err.__class__.__name__
