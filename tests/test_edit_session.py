# tests/test_edit_session.py

from __future__ import annotations

from dataclasses import replace

import pytest

from task_minder.core.actions import ActionRunner
from task_minder.core.notices import NoticeQueue
from task_minder.tasks.date_keys import date_key_to_millis
from task_minder.tasks.edit_session import EditState, TaskEditSession
from task_minder.tasks.reminders import ReminderScheduler
from task_minder.tasks.task_models import Priority, Task, blank_task

from .fakes import FakeConfig, FakeNotifier, FakeTaskRepo, RecordingLogService


def _fill(session: TaskEditSession) -> None:
    session.set_title("Pay rent")
    session.set_description("Transfer before noon")
    session.set_priority(Priority.HIGH.value)
    session.set_due_date(date_key_to_millis("03/07/2999"))
    session.set_due_time(9, 3)


@pytest.mark.asyncio
async def test_new_task_is_created_once(runner: ActionRunner) -> None:
    repo = FakeTaskRepo()
    session = TaskEditSession(repo, FakeConfig(), runner)
    assert session.state == EditState.EDITING

    _fill(session)
    assert session.task.due_date == "03/07/2999"
    assert session.task.due_time == "09:03"
    assert session.can_save

    assert await session.save() is True
    assert session.state == EditState.SAVED
    assert session.task.id == "t1"
    assert repo.tasks["t1"].title == "Pay rent"
    assert repo.tasks["t1"].user_id == "u1"

    # SAVED is terminal until reset.
    assert await session.save() is False
    assert list(repo.tasks) == ["t1"]


@pytest.mark.asyncio
async def test_save_requires_title_description_and_date(runner: ActionRunner) -> None:
    repo = FakeTaskRepo()
    session = TaskEditSession(repo, FakeConfig(), runner)

    session.set_title("Only a title")
    assert not session.can_save
    assert await session.save() is False
    assert session.state == EditState.EDITING
    assert repo.tasks == {}


@pytest.mark.asyncio
async def test_existing_task_is_loaded_and_updated(runner: ActionRunner) -> None:
    repo = FakeTaskRepo()
    existing = Task(
        id="t9", title="Old", description="d", priority="Low", due_date="01/02/2024", user_id="u1"
    )
    repo.tasks["t9"] = existing

    session = TaskEditSession(repo, FakeConfig(), runner, task_id="t9")
    assert session.state == EditState.LOADING
    await session.load()
    assert session.state == EditState.EDITING
    assert session.task == existing

    session.set_title("New")
    assert await session.save() is True
    assert repo.updates == [replace(existing, title="New")]


@pytest.mark.asyncio
async def test_unknown_task_id_falls_back_to_blank_draft(runner: ActionRunner) -> None:
    session = TaskEditSession(FakeTaskRepo(), FakeConfig(), runner, task_id="missing")

    await session.load()

    assert session.state == EditState.EDITING
    assert session.task == blank_task()


@pytest.mark.asyncio
async def test_load_failure_reports_and_keeps_editing(
    runner: ActionRunner, notices: NoticeQueue, log: RecordingLogService
) -> None:
    repo = FakeTaskRepo()
    repo.fail_with = RuntimeError("offline")
    session = TaskEditSession(repo, FakeConfig(), runner, task_id="t1")

    await session.load()

    assert session.state == EditState.EDITING
    assert session.task == blank_task()
    assert notices.take().text == "offline"
    assert len(log.errors) == 1


@pytest.mark.asyncio
async def test_save_failure_returns_to_editing(
    runner: ActionRunner, notices: NoticeQueue, log: RecordingLogService
) -> None:
    repo = FakeTaskRepo()
    session = TaskEditSession(repo, FakeConfig(), runner)
    _fill(session)
    repo.fail_with = RuntimeError("quota exceeded")

    assert await session.save() is False

    assert session.state == EditState.EDITING
    assert session.task.is_new
    assert [n.text for n in notices.drain()] == ["quota exceeded"]
    assert [str(e) for e in log.errors] == ["quota exceeded"]


@pytest.mark.asyncio
async def test_alert_option_follows_remote_flag(runner: ActionRunner) -> None:
    config = FakeConfig(show_alert_option_switch=False)
    session = TaskEditSession(FakeTaskRepo(), config, runner)

    session.refresh_alert_option()
    assert session.is_alert_option_shown is False

    config.show_alert_option_switch = True
    session.refresh_alert_option()
    assert session.is_alert_option_shown is True


@pytest.mark.asyncio
async def test_saving_alert_task_arms_reminder(runner: ActionRunner) -> None:
    reminders = ReminderScheduler(FakeNotifier())
    session = TaskEditSession(FakeTaskRepo(), FakeConfig(), runner, reminders=reminders)
    _fill(session)
    session.set_alert_enabled(True)

    assert await session.save() is True

    (armed,) = reminders.pending()
    assert armed.task_id == "t1"
    assert armed.notification_id == session.task.reminder_id
    assert armed.body == "Pay rent"


@pytest.mark.asyncio
async def test_reset_saved_allows_further_edits(runner: ActionRunner) -> None:
    repo = FakeTaskRepo()
    session = TaskEditSession(repo, FakeConfig(), runner)
    _fill(session)
    await session.save()

    session.reset_saved()
    session.set_description("Changed")
    assert await session.save() is True
    assert repo.updates[-1].description == "Changed"
