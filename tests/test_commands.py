# tests/test_commands.py

from __future__ import annotations

from datetime import date

import pytest

from task_minder.cli.commands import CommandRegistry, format_task, registry
from task_minder.core.state import AppState
from task_minder.tasks.task_list import TaskListSession
from task_minder.tasks.task_models import Task

from .fakes import wait_until

TODAY = date(2024, 3, 7)


@pytest.mark.asyncio
async def test_command_registry_routes_2_and_3_params_and_awaits(state: AppState) -> None:
    reg = CommandRegistry()
    called = {"h2": 0, "h3": 0}

    def h2(state, args):
        called["h2"] += 1
        return "h2"

    async def h3(state, args, emit):
        called["h3"] += 1
        if emit is not None:
            emit("note")
        return f"h3 {' '.join(args)}"

    reg.register("a", h2, "a")
    reg.register("b", h3, "b", aliases=["bee"])

    notes: list[str] = []
    assert await reg.handle(state, "/a x") == "h2"
    assert await reg.handle(state, "/bee y z", emit=notes.append) == "h3 y z"
    assert called == {"h2": 1, "h3": 1}
    assert notes == ["note"]
    assert "/b - b" in reg.build_help()


@pytest.mark.asyncio
async def test_command_registry_unknown_and_non_command(state: AppState) -> None:
    reg = CommandRegistry()
    assert await reg.handle(state, "hello") is None
    assert "Unknown command" in (await reg.handle(state, "/nope") or "")
    assert "Empty command" in (await reg.handle(state, "/") or "")


def test_format_task_line() -> None:
    task = Task(id="t1", title="Buy milk", priority="High", due_time="09:30", alert=True)
    assert format_task(1, task) == "1. [ ] 09:30  Buy milk (High) [alert]"
    assert format_task(2, task.with_completed(True)).startswith("2. [x]")


@pytest.mark.asyncio
async def test_task_commands_need_the_tasks_screen(state: AppState) -> None:
    assert await registry.handle(state, "/list") == "Tasks screen is not open."
    assert await registry.handle(state, "/done 1") == "Tasks screen is not open."


@pytest.mark.asyncio
async def test_add_list_done_delete_flow(state: AppState) -> None:
    await state.accounts.create_anonymous_account()

    async with TaskListSession(
        state.task_store, state.accounts, state.runner, reminders=state.reminders, today=TODAY
    ) as session:
        state.task_list = session
        await session.wait_for_snapshot()

        reply = await registry.handle(state, "/add Buy milk | 2 litres | High | | 09:30")
        assert reply == "Task added for 03/07/2024: Buy milk"
        await wait_until(lambda: len(session.tasks) == 1)

        listing = await registry.handle(state, "/list")
        assert "1. [ ] 09:30  Buy milk (High)" in (listing or "")

        assert await registry.handle(state, "/done 1") == "Buy milk: completed."
        await wait_until(lambda: session.tasks[0].completed)

        assert await registry.handle(state, "/edit 1 title Buy oat milk") == "Task updated: Buy oat milk"
        await wait_until(lambda: session.tasks[0].title == "Buy oat milk")

        assert await registry.handle(state, "/done 5") == "No task #5 in the current list."
        assert await registry.handle(state, "/delete 1") == "Task deleted."
        await wait_until(lambda: session.tasks == [])


@pytest.mark.asyncio
async def test_add_requires_fields_and_valid_values(state: AppState) -> None:
    await state.accounts.create_anonymous_account()

    assert "Usage: /add" in (await registry.handle(state, "/add only a title") or "")
    assert (
        await registry.handle(state, "/add T | D | Urgent | 03/07/2024")
        == "Priority must be Low, Medium or High."
    )
    assert (
        await registry.handle(state, "/add T | D | Low | 2024-03-07")
        == "Date must look like MM/dd/yyyy."
    )
    assert (
        await registry.handle(state, "/add T | D | Low | 03/07/2024 | 25:00")
        == "Time must look like HH:mm."
    )
    # No tasks screen and no explicit date: nothing to save.
    assert (
        await registry.handle(state, "/add T | D")
        == "Title, description and due date are required."
    )


@pytest.mark.asyncio
async def test_add_with_alert_arms_a_reminder(state: AppState) -> None:
    await state.accounts.create_anonymous_account()

    reply = await registry.handle(state, "/add Dentist | Checkup | Medium | 03/07/2999 | 10:00 | alert")

    assert reply == "Task added for 03/07/2999: Dentist"
    assert [r.body for r in state.reminders.pending()] == ["Dentist"]
    assert "Dentist" in (await registry.handle(state, "/alerts") or "")


@pytest.mark.asyncio
async def test_calendar_navigation_commands(state: AppState) -> None:
    await state.accounts.create_anonymous_account()

    async with TaskListSession(state.task_store, state.accounts, state.runner, today=TODAY) as session:
        state.task_list = session

        assert await registry.handle(state, "/day 8") == "No tasks for 03/08/2024."
        assert await registry.handle(state, "/next") == "No tasks for 04/08/2024."
        assert await registry.handle(state, "/prev") == "No tasks for 03/08/2024."
        assert await registry.handle(state, "/year 2025") == "No tasks for 03/08/2025."
        assert await registry.handle(state, "/year 1800") == "Year must be within 1900..2100."
        assert await registry.handle(state, "/day x") == "Usage: /day N"

        calendar_view = await registry.handle(state, "/calendar") or ""
        assert calendar_view.startswith("March 2025")
        assert "08]" in calendar_view

        today_key = date.today().strftime("%m/%d/%Y")
        assert await registry.handle(state, "/today") == f"No tasks for {today_key}."


@pytest.mark.asyncio
async def test_account_commands(state: AppState) -> None:
    await state.accounts.create_anonymous_account()
    anon_id = state.accounts.current_user_id

    assert await registry.handle(state, "/signup me@example.com Secret123 Secret123") == (
        "Account created for me@example.com."
    )
    assert state.accounts.current_user_id == anon_id
    assert "email/password" in (await registry.handle(state, "/account") or "")

    assert await registry.handle(state, "/logout") == "Signed out. A new anonymous session was started."
    assert state.accounts.current_user_id != anon_id

    assert await registry.handle(state, "/login me@example.com Wrong123") == "Sign in failed."
    assert state.notices.take() is not None

    assert await registry.handle(state, "/login me@example.com Secret123") == "Signed in as me@example.com."
    assert state.accounts.current_user_id == anon_id

    assert await registry.handle(state, "/account delete") == "Account deleted."
    assert state.accounts.is_user_signed_in
    assert state.accounts.current_user_id != anon_id


@pytest.mark.asyncio
async def test_signup_validation_is_shown_as_notice(state: AppState) -> None:
    await state.accounts.create_anonymous_account()

    assert await registry.handle(state, "/signup me@example.com weak weak") == "Account was not created."
    assert "six characters" in state.notices.take().text


@pytest.mark.asyncio
async def test_theme_command(state: AppState) -> None:
    assert await registry.handle(state, "/theme") == "Theme: red / light"
    assert await registry.handle(state, "/theme color blue") == "Theme: blue / light"
    assert await registry.handle(state, "/theme mode dark") == "Theme: blue / dark"
    assert "Unknown color" in (await registry.handle(state, "/theme color pink") or "")


@pytest.mark.asyncio
async def test_status_and_help(state: AppState) -> None:
    await state.accounts.create_anonymous_account()

    status = await registry.handle(state, "/status") or ""
    assert state.accounts.current_user_id in status
    assert "(anonymous)" in status

    help_text = await registry.handle(state, "/help") or ""
    assert "/add" in help_text
    assert "/theme" in help_text
