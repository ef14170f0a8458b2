# src/quadrant_tasks/tasks/task_models.py

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import IntEnum, StrEnum
from typing import Any


def utc_now_iso() -> str:
    """Current UTC time as an RFC3339 string."""
    return datetime.now(timezone.utc).isoformat()


def new_task_id() -> str:
    return uuid.uuid4().hex


class TaskStatus(StrEnum):
    """
    Task lifecycle status.

    The enum value is the text stored in the `status` column.
    """

    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @classmethod
    def from_db(cls, raw: str | None) -> TaskStatus:
        """Decode stored text. Unknown or empty values fall back to PENDING."""
        if not raw:
            return cls.PENDING
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return cls.PENDING


class Quadrant(IntEnum):
    """Eisenhower quadrants (important x urgent)."""

    IMPORTANT_URGENT = 1
    IMPORTANT = 2
    URGENT = 3
    NEITHER = 4

    @classmethod
    def from_flags(cls, *, important: bool, urgent: bool) -> Quadrant:
        if important and urgent:
            return cls.IMPORTANT_URGENT
        if important:
            return cls.IMPORTANT
        if urgent:
            return cls.URGENT
        return cls.NEITHER

    @property
    def label(self) -> str:
        return _QUADRANT_LABELS[self]

    @classmethod
    def is_valid(cls, value: Any) -> bool:
        """Accept ints 1..4 and digit strings; floats, bools and anything else are rejected."""
        if isinstance(value, bool):
            return False
        if isinstance(value, str):
            value = value.strip()
            if not (value.isascii() and value.isdigit()):
                return False
            value = int(value)
        if not isinstance(value, int):
            return False
        return any(value == q.value for q in cls)


_QUADRANT_LABELS = {
    Quadrant.IMPORTANT_URGENT: "Important & urgent",
    Quadrant.IMPORTANT: "Important, not urgent",
    Quadrant.URGENT: "Urgent, not important",
    Quadrant.NEITHER: "Neither important nor urgent",
}


@dataclass(slots=True)
class Task:
    id: str
    title: str
    description: str
    quadrant: int
    created_at: str
    completed_at: str | None = None
    status: TaskStatus = TaskStatus.PENDING
    tags: list[str] | None = field(default=None)

    @classmethod
    def new(
        cls,
        title: str,
        description: str,
        quadrant: int,
        tags: list[str] | None = None,
    ) -> Task:
        """Fresh pending task with a unique id and created_at set to now."""
        return cls(
            id=new_task_id(),
            title=title,
            description=description,
            quadrant=quadrant,
            created_at=utc_now_iso(),
            completed_at=None,
            status=TaskStatus.PENDING,
            tags=list(tags) if tags is not None else None,
        )

    def complete(self) -> None:
        """Mark completed. Calling it again re-stamps completed_at."""
        self.status = TaskStatus.COMPLETED
        self.completed_at = utc_now_iso()

    def cancel(self) -> None:
        # completed_at is left as is
        self.status = TaskStatus.CANCELLED

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "quadrant": self.quadrant,
            "created_at": self.created_at,
            "completed_at": self.completed_at,
            "status": TaskStatus(self.status).value,
            "tags": list(self.tags) if self.tags is not None else None,
        }

