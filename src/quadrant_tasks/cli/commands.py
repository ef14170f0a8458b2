# src/quadrant_tasks/cli/commands.py

from __future__ import annotations

import asyncio
import contextlib
import inspect
import json
import logging
import shlex
from collections.abc import Callable
from datetime import date
from typing import cast

from ..core.state import AppState
from ..errors import TaskError, TaskNotFoundError, TaskValidationError, friendly_error_message
from ..reports.export import save_report
from ..reports.prompt import ReportPeriod, filter_tasks_by_created, period_range
from ..reports.stats import compute_stats, format_stats
from ..tasks import task_api
from ..tasks.task_models import Quadrant, Task, TaskStatus

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)

SHORT_ID_LEN = 8


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like '/command arg "quoted arg"'.
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        try:
            parts = shlex.split(line[1:])
        except ValueError:
            return "Unbalanced quotes in command."
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        try:
            if nparams >= 3:
                h3 = cast(CommandHandler3, handler)
                return h3(state, args, emit)
            h2 = cast(CommandHandler2, handler)
            return h2(state, args)
        except TaskError as e:
            logger.info("/%s failed: %s", name, e)
            return friendly_error_message(e)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- helpers ----


def _parse_quadrant(raw: str) -> int:
    try:
        q = int(raw)
    except ValueError as e:
        raise TaskValidationError(f"quadrant must be a number 1-4, got {raw!r}") from e
    if not Quadrant.is_valid(q):
        raise TaskValidationError(f"quadrant must be 1-4, got {q}")
    return q


def _parse_tags(raw: str | None) -> list[str] | None:
    if raw is None:
        return None
    tags = [t.strip() for t in raw.split(",") if t.strip()]
    return tags or None


def _resolve_id(state: AppState, raw: str) -> str:
    """Accept a full task id or a unique prefix of one (as shown by /list)."""
    raw = raw.strip()
    if not raw:
        raise TaskValidationError("task id is required")
    if state.task_store.get_task(raw) is not None:
        return raw
    matches = [t.id for t in task_api.list_tasks(state) if t.id.startswith(raw)]
    if not matches:
        raise TaskNotFoundError(raw)
    if len(matches) > 1:
        raise TaskValidationError(f"id prefix {raw!r} matches {len(matches)} tasks")
    return matches[0]


def _pop_flag(args: list[str], flag: str) -> tuple[list[str], bool]:
    """Remove every occurrence of `flag` from args; report whether it was present."""
    rest = [a for a in args if a.lower() != flag]
    return rest, len(rest) != len(args)


def _parse_date(raw: str) -> date:
    try:
        return date.fromisoformat(raw)
    except ValueError as e:
        raise TaskValidationError(f"date must be YYYY-MM-DD, got {raw!r}") from e


def _to_json(data: object) -> str:
    return json.dumps(data, ensure_ascii=False, indent=2)


def format_task_line(task: Task) -> str:
    tags = f" [tags: {', '.join(task.tags)}]" if task.tags else ""
    return f"[Q{task.quadrant}] {task.id[:SHORT_ID_LEN]}  {task.status.value:<9}  {task.title}{tags}"


def format_task_details(task: Task) -> str:
    lines = [
        f"Task {task.id}",
        f"  Title: {task.title}",
        f"  Description: {task.description or '-'}",
        f"  Quadrant: {task.quadrant}",
        f"  Status: {task.status.value}",
        f"  Created: {task.created_at}",
        f"  Completed: {task.completed_at or '-'}",
        f"  Tags: {', '.join(task.tags) if task.tags else '-'}",
    ]
    return "\n".join(lines)


# ---- task commands ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add <quadrant> <title> [description] [tag1,tag2]
    """
    if len(args) < 2:
        return 'Usage: /add <quadrant 1-4> "<title>" ["<description>"] [tag1,tag2]'
    quadrant = _parse_quadrant(args[0])
    description = args[2] if len(args) > 2 else ""
    tags = _parse_tags(args[3]) if len(args) > 3 else None
    task = task_api.create_task(
        state, title=args[1], description=description, quadrant=quadrant, tags=tags
    )
    return f"Created: {format_task_line(task)}"


def cmd_list(state: AppState, args: list[str]) -> str:
    """
    /list              -> all tasks
    /list <1-4>        -> one quadrant
    /list <status>     -> pending | completed | cancelled
    /list ... --json   -> the same selection as a JSON array
    """
    args, as_json = _pop_flag(args, "--json")
    tasks = task_api.list_tasks(state)
    if args:
        f = args[0].lower()
        if f.isdigit():
            q = _parse_quadrant(f)
            tasks = [t for t in tasks if t.quadrant == q]
        elif f in {s.value for s in TaskStatus}:
            tasks = [t for t in tasks if t.status == TaskStatus(f)]
        else:
            return "Usage: /list [1-4 | pending | completed | cancelled] [--json]"

    tasks = sorted(tasks, key=lambda t: (t.quadrant, t.created_at))
    if as_json:
        return _to_json([t.to_dict() for t in tasks])
    if not tasks:
        return "No tasks."
    return "\n".join(format_task_line(t) for t in tasks)


def cmd_show(state: AppState, args: list[str]) -> str:
    args, as_json = _pop_flag(args, "--json")
    if not args:
        return "Usage: /show <id> [--json]"
    task = task_api.find_task(state, _resolve_id(state, args[0]))
    return _to_json(task.to_dict()) if as_json else format_task_details(task)


def cmd_update(state: AppState, args: list[str]) -> str:
    """
    /update <id> <quadrant> <status> <title> [description] [tag1,tag2]
    """
    if len(args) < 4:
        return 'Usage: /update <id> <quadrant> <status> "<title>" ["<description>"] [tag1,tag2]'
    task_id = _resolve_id(state, args[0])
    task = task_api.update_task(
        state,
        task_id,
        title=args[3],
        description=args[4] if len(args) > 4 else "",
        quadrant=_parse_quadrant(args[1]),
        status=args[2],
        tags=_parse_tags(args[5]) if len(args) > 5 else None,
    )
    return f"Updated: {format_task_line(task)}"


def cmd_done(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /done <id>"
    task = task_api.complete_task(state, _resolve_id(state, args[0]))
    return f"Completed: {format_task_line(task)}"


def cmd_cancel(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /cancel <id>"
    task = task_api.cancel_task(state, _resolve_id(state, args[0]))
    return f"Cancelled: {format_task_line(task)}"


def cmd_delete(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /delete <id>"
    # unknown ids are not an error for delete
    try:
        task_id = _resolve_id(state, args[0])
    except TaskNotFoundError:
        task_id = args[0]
    task_api.delete_task(state, task_id)
    return f"Deleted: {task_id}"


def cmd_stats(state: AppState, args: list[str]) -> str:
    """
    /stats                               -> all tasks
    /stats <daily|weekly|monthly|yearly> -> tasks created in that period
    """
    tasks = task_api.list_tasks(state)
    if not args:
        return format_stats(compute_stats(tasks))
    try:
        period = ReportPeriod(args[0].lower())
    except ValueError:
        period = None
    if period is None or period == ReportPeriod.CUSTOM:
        return "Usage: /stats [daily|weekly|monthly|yearly]"
    start, end = period_range(period)
    stats = compute_stats(filter_tasks_by_created(tasks, start, end))
    return f"Period: {period.value} ({start} to {end})\n{format_stats(stats)}"


# ---- external collaborators ----

_REPORT_USAGE = (
    "Usage: /report [daily|weekly|monthly|yearly] [model] [--save]\n"
    "       /report custom <YYYY-MM-DD> <YYYY-MM-DD> [model] [--save]"
)


def cmd_report(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /report [daily|weekly|monthly|yearly] [model] [--save]
    /report custom <start> <end> [model] [--save]

    --save also writes the report text under the data directory.
    """
    args, save = _pop_flag(args, "--save")
    try:
        period = ReportPeriod(args[0].lower()) if args else ReportPeriod.WEEKLY
    except ValueError:
        return _REPORT_USAGE
    rest = args[1:]
    if period == ReportPeriod.CUSTOM:
        if len(rest) < 2:
            return _REPORT_USAGE
        start, end = _parse_date(rest[0]), _parse_date(rest[1])
        if start > end:
            raise TaskValidationError(f"report start {start} is after end {end}")
        rest = rest[2:]
    else:
        start, end = period_range(period)
    model = rest[0] if rest else getattr(state.settings, "report_model", "")
    api_key = getattr(state.settings, "openai_api_key", None) or ""

    if emit:
        with contextlib.suppress(Exception):
            emit(f"[REPORT] Generating {period.value} report ({start} to {end})...")

    text = asyncio.run(
        task_api.build_task_report(
            state, api_key=api_key, model=model, period=period, start=start, end=end
        )
    )
    if text is None:
        if period == ReportPeriod.CUSTOM:
            return f"No tasks created between {start} and {end}."
        return f"No tasks created in the {period.value} period."
    if save:
        path = save_report(text, state.settings.data_dir, start, end)
        return f"{text}\n\nSaved to {path}"
    return text


def cmd_import(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /import [project_id]   -> import GitLab issues and save them as tasks
    """
    project_id = args[0] if args else getattr(state.settings, "gitlab_project_id", "")
    token = getattr(state.settings, "gitlab_token", None) or ""
    url = getattr(state.settings, "gitlab_url", "") or ""

    if emit:
        with contextlib.suppress(Exception):
            emit(f"[GITLAB] Importing issues of project {project_id or '?'}...")

    tasks = asyncio.run(
        task_api.import_issues(state, token=token, gitlab_url=url, project_id=project_id)
    )
    n = task_api.save_imported_tasks(state, tasks)
    return f"Imported {n} task(s) from GitLab project {project_id}."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("add", cmd_add, help_text='Create a task: /add <1-4> "<title>" ["<desc>"] [tags].')
registry.register(
    "list", cmd_list, help_text="List tasks: /list [1-4 | status] [--json].", aliases=["ls"]
)
registry.register("show", cmd_show, help_text="Show one task: /show <id> [--json].")
registry.register(
    "update",
    cmd_update,
    help_text='Replace a task: /update <id> <1-4> <status> "<title>" ["<desc>"] [tags].',
)
registry.register("done", cmd_done, help_text="Complete a task: /done <id>.", aliases=["complete"])
registry.register("cancel", cmd_cancel, help_text="Cancel a task: /cancel <id>.")
registry.register("delete", cmd_delete, help_text="Delete a task: /delete <id>.", aliases=["rm"])
registry.register(
    "stats", cmd_stats, help_text="Quadrant/status statistics: /stats [daily|weekly|monthly|yearly]."
)
registry.register(
    "report",
    cmd_report,
    help_text=(
        "AI work report: /report [daily|weekly|monthly|yearly | custom <start> <end>] [model] [--save]."
    ),
)
registry.register("import", cmd_import, help_text="Import GitLab issues: /import [project_id].")
