# tests/test_task_api.py

from __future__ import annotations

from datetime import date, timedelta

import pytest

from quadrant_tasks.errors import TaskNotFoundError, TaskValidationError
from quadrant_tasks.reports.prompt import ReportPeriod
from quadrant_tasks.tasks import task_api
from quadrant_tasks.tasks.task_models import Task, TaskStatus

from .fakes import FakeIssueImporter


def test_create_and_list(state) -> None:
    task = task_api.create_task(
        state, title="  Call dentist ", description="", quadrant=3, tags=[" health ", ""]
    )
    assert task.title == "Call dentist"
    assert task.tags == ["health"]

    assert task_api.list_tasks(state) == [task]


@pytest.mark.parametrize("quadrant", [0, 5, -1])
def test_create_rejects_bad_quadrant(state, quadrant) -> None:
    with pytest.raises(TaskValidationError):
        task_api.create_task(state, title="t", quadrant=quadrant)
    assert task_api.list_tasks(state) == []


@pytest.mark.parametrize("quadrant", [1.9, 2.0, "x", None, True])
def test_create_rejects_non_integer_quadrant(state, quadrant) -> None:
    with pytest.raises(TaskValidationError):
        task_api.create_task(state, title="t", quadrant=quadrant)
    assert task_api.list_tasks(state) == []


def test_create_rejects_empty_title(state) -> None:
    with pytest.raises(TaskValidationError):
        task_api.create_task(state, title="   ", quadrant=1)


def test_update_full_replace(state) -> None:
    task = task_api.create_task(state, title="old", description="d", quadrant=4, tags=["a"])

    updated = task_api.update_task(
        state, task.id, title="new", description="", quadrant=2, status="pending", tags=None
    )
    assert updated.id == task.id
    assert updated.created_at == task.created_at
    assert (updated.title, updated.description, updated.quadrant, updated.tags) == ("new", "", 2, None)
    assert task_api.find_task(state, task.id) == updated


def test_update_status_labels(state) -> None:
    task = task_api.create_task(state, title="t", quadrant=1)

    done = task_api.update_task(
        state, task.id, title="t", description="", quadrant=1, status="completed"
    )
    assert done.status == TaskStatus.COMPLETED
    stamp = done.completed_at
    assert stamp

    # already completed: no re-stamp
    again = task_api.update_task(
        state, task.id, title="t", description="", quadrant=1, status="completed"
    )
    assert again.completed_at == stamp

    cancelled = task_api.update_task(
        state, task.id, title="t", description="", quadrant=1, status="cancelled"
    )
    assert cancelled.status == TaskStatus.CANCELLED
    assert cancelled.completed_at == stamp

    # any other label is a plain reset to pending; completed_at stays
    reset = task_api.update_task(
        state, task.id, title="t", description="", quadrant=1, status="whatever"
    )
    assert reset.status == TaskStatus.PENDING
    assert reset.completed_at == stamp


def test_update_missing_is_not_found(state) -> None:
    with pytest.raises(TaskNotFoundError):
        task_api.update_task(state, "missing", title="t", description="", quadrant=1, status="pending")
    assert task_api.list_tasks(state) == []


def test_complete_does_not_restamp(state) -> None:
    task = task_api.create_task(state, title="t", quadrant=2)
    first = task_api.complete_task(state, task.id)
    second = task_api.complete_task(state, task.id)
    assert first.status == TaskStatus.COMPLETED
    assert second.completed_at == first.completed_at


def test_complete_missing_is_not_found(state) -> None:
    with pytest.raises(TaskNotFoundError) as exc:
        task_api.complete_task(state, "missing")
    assert exc.value.task_id == "missing"


def test_cancel_task(state) -> None:
    task = task_api.create_task(state, title="t", quadrant=2)
    cancelled = task_api.cancel_task(state, task.id)
    assert cancelled.status == TaskStatus.CANCELLED
    assert cancelled.completed_at is None


def test_delete_missing_is_silent(state) -> None:
    task = task_api.create_task(state, title="t", quadrant=2)
    task_api.delete_task(state, task.id)
    task_api.delete_task(state, task.id)
    assert task_api.list_tasks(state) == []


@pytest.mark.asyncio
async def test_generate_report_passes_through(state) -> None:
    text = await task_api.generate_report(state, api_key="k", model="m", prompt="p")
    assert text == "report ok"
    assert state.report_client.calls == [("k", "m", "p")]


@pytest.mark.asyncio
async def test_import_issues_does_not_persist(state) -> None:
    imported = [Task.new("issue 1", "", 1, ["important", "urgent"]), Task.new("issue 2", "", 4)]
    state.issue_importer = FakeIssueImporter(imported)

    tasks = await task_api.import_issues(
        state, token="tok", gitlab_url="https://gitlab.test", project_id="7"
    )
    assert tasks == imported
    assert state.issue_importer.calls == [("tok", "https://gitlab.test", "7")]
    assert task_api.list_tasks(state) == []

    assert task_api.save_imported_tasks(state, tasks) == 2
    assert {t.title for t in task_api.list_tasks(state)} == {"issue 1", "issue 2"}


def test_save_imported_tasks_skips_stored_issues(state) -> None:
    first = [Task.new("issue 1", "body", 1), Task.new("issue 2", "", 4)]
    assert task_api.save_imported_tasks(state, first) == 2

    again = [Task.new("issue 1", "body", 1), Task.new("issue 2", "", 4), Task.new("issue 3", "", 2)]
    assert task_api.save_imported_tasks(state, again) == 1
    assert sorted(t.title for t in task_api.list_tasks(state)) == ["issue 1", "issue 2", "issue 3"]


def test_save_imported_tasks_keeps_same_title_with_other_description(state) -> None:
    task_api.create_task(state, title="issue 1", description="old text", quadrant=1)

    assert task_api.save_imported_tasks(state, [Task.new("issue 1", "new text", 1)]) == 1
    assert len(task_api.list_tasks(state)) == 2



@pytest.mark.asyncio
async def test_build_task_report_uses_period_tasks(state) -> None:
    task_api.create_task(state, title="Ship release", description="v1.2", quadrant=1)

    text = await task_api.build_task_report(
        state, api_key="sk", model="m", period=ReportPeriod.WEEKLY
    )
    assert text == "report ok"
    (_, _, prompt) = state.report_client.calls[0]
    assert "Ship release" in prompt
    assert "weekly" in prompt


@pytest.mark.asyncio
async def test_build_task_report_without_tasks_skips_client(state) -> None:
    task_api.create_task(state, title="today", quadrant=1)
    long_ago = date.today() - timedelta(days=400)

    text = await task_api.build_task_report(
        state,
        api_key="sk",
        model="m",
        period=ReportPeriod.CUSTOM,
        start=long_ago,
        end=long_ago + timedelta(days=1),
    )
    assert text is None
    assert state.report_client.calls == []
