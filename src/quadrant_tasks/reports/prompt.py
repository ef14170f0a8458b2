# src/quadrant_tasks/reports/prompt.py

"""
Task list -> report prompt projection.

The report client only receives plain prompt text; building it from tasks
(and choosing which tasks belong to a report period) happens here.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime, timedelta
from enum import StrEnum

from ..errors import TaskValidationError
from ..tasks.task_models import Quadrant, Task, TaskStatus


class ReportPeriod(StrEnum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    CUSTOM = "custom"


# Days looked back from today (inclusive range).
_PERIOD_LOOKBACK_DAYS = {
    ReportPeriod.DAILY: 0,
    ReportPeriod.WEEKLY: 6,
    ReportPeriod.MONTHLY: 29,
    ReportPeriod.YEARLY: 364,
}

_PERIOD_NAMES = {
    ReportPeriod.DAILY: "daily",
    ReportPeriod.WEEKLY: "weekly",
    ReportPeriod.MONTHLY: "monthly",
    ReportPeriod.YEARLY: "yearly",
    ReportPeriod.CUSTOM: "custom-period",
}

_STATUS_LABELS = {
    TaskStatus.PENDING: "In progress",
    TaskStatus.COMPLETED: "Completed",
    TaskStatus.CANCELLED: "Cancelled",
}


def period_range(period: ReportPeriod, today: date | None = None) -> tuple[date, date]:
    """(start, end) dates of a report period ending today. CUSTOM has no default range."""
    if period == ReportPeriod.CUSTOM:
        raise TaskValidationError("custom report period needs an explicit start and end date")
    today = today or date.today()
    return today - timedelta(days=_PERIOD_LOOKBACK_DAYS[period]), today


def parse_timestamp(raw: str | None) -> datetime | None:
    if not raw:
        return None
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        return None


def _local_date(dt: datetime) -> date:
    if dt.tzinfo is None:
        return dt.date()
    return dt.astimezone().date()


def filter_tasks_by_created(tasks: Iterable[Task], start: date, end: date) -> list[Task]:
    """Tasks created between start and end (inclusive, local dates). Unparsable dates are skipped."""
    if start > end:
        raise TaskValidationError(f"report start {start} is after end {end}")
    out: list[Task] = []
    for t in tasks:
        created = parse_timestamp(t.created_at)
        if created is None:
            continue
        if start <= _local_date(created) <= end:
            out.append(t)
    return out


def _fmt_ts(raw: str | None) -> str:
    dt = parse_timestamp(raw)
    if dt is None:
        return raw or ""
    if dt.tzinfo is not None:
        dt = dt.astimezone()
    return dt.strftime("%Y-%m-%d %H:%M")


def _quadrant_label(value: int) -> str:
    if Quadrant.is_valid(value):
        return Quadrant(int(value)).label
    return f"Unknown quadrant ({value})"


def format_task(task: Task) -> str:
    lines = [
        f"- Task: {task.title}",
        f"  Description: {task.description}",
        f"  Quadrant: {_quadrant_label(task.quadrant)}",
        f"  Status: {_STATUS_LABELS.get(task.status, task.status.value)}",
        f"  Created: {_fmt_ts(task.created_at)}",
    ]
    if task.completed_at:
        lines.append(f"  Completed: {_fmt_ts(task.completed_at)}")
    if task.tags:
        lines.append(f"  Tags: {', '.join(task.tags)}")
    return "\n".join(lines)


def build_report_prompt(tasks: Iterable[Task], period: ReportPeriod = ReportPeriod.WEEKLY) -> str:
    summary = "\n\n".join(format_task(t) for t in tasks)
    return (
        f"Based on the task list below, write a detailed {_PERIOD_NAMES[period]} work report. "
        "The report should include:\n"
        "\n"
        "1. Overall summary of the work\n"
        "2. Task completion by Eisenhower quadrant\n"
        "3. Work efficiency analysis\n"
        "4. Time management suggestions\n"
        "5. Suggested focus for the next period\n"
        "\n"
        "Task list:\n"
        f"{summary}\n"
        "\n"
        "Keep the language professional and concise, with a clear structure."
    )
