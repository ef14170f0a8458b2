# src/quadrant_tasks/reports/stats.py

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from ..tasks.task_models import Quadrant, Task, TaskStatus


@dataclass(frozen=True, slots=True)
class TaskStats:
    total: int
    pending: int
    completed: int
    cancelled: int
    by_quadrant: dict[int, int] = field(default_factory=dict)

    @property
    def completion_rate(self) -> float:
        """Completed / total, 0.0 for an empty list."""
        if self.total == 0:
            return 0.0
        return self.completed / self.total


def compute_stats(tasks: Iterable[Task]) -> TaskStats:
    by_status = {s: 0 for s in TaskStatus}
    by_quadrant = {int(q): 0 for q in Quadrant}
    total = 0
    for t in tasks:
        total += 1
        by_status[t.status] += 1
        # out-of-range quadrants still get counted under their own key
        by_quadrant[int(t.quadrant)] = by_quadrant.get(int(t.quadrant), 0) + 1

    return TaskStats(
        total=total,
        pending=by_status[TaskStatus.PENDING],
        completed=by_status[TaskStatus.COMPLETED],
        cancelled=by_status[TaskStatus.CANCELLED],
        by_quadrant=by_quadrant,
    )


def format_stats(stats: TaskStats) -> str:
    lines = [
        f"Tasks: {stats.total} (pending {stats.pending}, completed {stats.completed}, "
        f"cancelled {stats.cancelled})",
        f"Completion rate: {stats.completion_rate:.0%}",
    ]
    for q in Quadrant:
        lines.append(f"  Q{int(q)} {q.label}: {stats.by_quadrant.get(int(q), 0)}")
    return "\n".join(lines)
