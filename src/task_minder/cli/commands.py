# src/task_minder/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from datetime import date
from typing import cast

from ..account.sessions import AccountSession, LoginSession, SignUpSession
from ..core.state import AppState
from ..settings.preferences import ThemeColor, ThemeMode, ThemeSession
from ..tasks.calendar_state import MAX_YEAR, MIN_YEAR
from ..tasks.date_keys import date_key_to_millis
from ..tasks.edit_session import TaskEditSession
from ..tasks.task_list import TaskListSession
from ..tasks.task_models import Priority, Task

CommandEmitter = Callable[[str], None]
CommandResult = str | Awaitable[str]
CommandHandler2 = Callable[[AppState, list[str]], CommandResult]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], CommandResult]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)

NO_TASKS_SCREEN = "Tasks screen is not open."


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /day, /add, ...)."""

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

    async def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        Handlers may be plain functions or coroutines.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except Exception:
            nparams = 3

        if nparams >= 3:
            result = cast(CommandHandler3, handler)(state, args, emit)
        else:
            result = cast(CommandHandler2, handler)(state, args)

        if inspect.isawaitable(result):
            return await result
        return result

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- formatting ----


def format_task(index: int, task: Task) -> str:
    mark = "x" if task.completed else " "
    time_s = task.due_time or "--:--"
    prio = f" ({task.priority})" if task.priority else ""
    alert = " [alert]" if task.alert else ""
    return f"{index}. [{mark}] {time_s}  {task.title}{prio}{alert}"


def format_task_list(date_key: str, tasks: list[Task]) -> str:
    if not tasks:
        return f"No tasks for {date_key}."
    lines = [f"Tasks for {date_key}:"]
    lines.extend(format_task(i, t) for i, t in enumerate(tasks, start=1))
    return "\n".join(lines)


def _require_tasks(state: AppState) -> TaskListSession | None:
    return state.task_list


def _pick(session: TaskListSession, args: list[str]) -> Task | str:
    if not args:
        return "Task number required."
    try:
        idx = int(args[0])
    except ValueError:
        return f"Not a task number: {args[0]}"
    if idx < 1 or idx > len(session.tasks):
        return f"No task #{idx} in the current list."
    return session.tasks[idx - 1]


async def _show_after_change(session: TaskListSession) -> str:
    try:
        tasks = await session.wait_for_snapshot(date_key=session.date_key)
    except TimeoutError:
        return f"Selected {session.date_key} (tasks still loading)."
    return format_task_list(session.date_key, tasks)


# ---- calendar ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    accounts = state.accounts
    user = accounts.current_user_id or "<signed out>"
    kind = "anonymous" if state.accounts.user.is_anonymous else "email"
    theme = state.preferences.current
    day = state.task_list.date_key if state.task_list else "-"
    return (
        "Status:\n"
        f"  User: {user} ({kind})\n"
        f"  Selected day: {day}\n"
        f"  Theme: {theme.color.name} / {theme.mode.name}\n"
        f"  Alert option shown: {state.remote_config.show_alert_option_switch}\n"
        f"  Pending reminders: {len(state.reminders.pending())}"
    )


def cmd_list(state: AppState, args: list[str]) -> str:
    session = _require_tasks(state)
    if session is None:
        return NO_TASKS_SCREEN
    return format_task_list(session.date_key, session.tasks)


def cmd_calendar(state: AppState, args: list[str]) -> str:
    session = _require_tasks(state)
    if session is None:
        return NO_TASKS_SCREEN
    cal = session.calendar
    cells = []
    for weekday, day in cal.weekdays_and_days_in_month:
        cell = f"{weekday} {day}"
        cells.append(f"[{cell}]" if day == cal.day_label else f" {cell} ")
    rows = [" ".join(cells[i : i + 7]) for i in range(0, len(cells), 7)]
    return f"{cal.selected_month} {cal.selected_year}\n" + "\n".join(rows)


async def cmd_day(state: AppState, args: list[str]) -> str:
    session = _require_tasks(state)
    if session is None:
        return NO_TASKS_SCREEN
    if not args or not args[0].isdigit():
        return "Usage: /day N"
    session.calendar.set_day_in_month(args[0])
    return await _show_after_change(session)


async def cmd_next(state: AppState, args: list[str]) -> str:
    session = _require_tasks(state)
    if session is None:
        return NO_TASKS_SCREEN
    before = session.calendar.selected_month_index
    session.calendar.next_month()
    if session.calendar.selected_month_index == before:
        return "Already at December."
    return await _show_after_change(session)


async def cmd_prev(state: AppState, args: list[str]) -> str:
    session = _require_tasks(state)
    if session is None:
        return NO_TASKS_SCREEN
    before = session.calendar.selected_month_index
    session.calendar.previous_month()
    if session.calendar.selected_month_index == before:
        return "Already at January."
    return await _show_after_change(session)


async def cmd_year(state: AppState, args: list[str]) -> str:
    session = _require_tasks(state)
    if session is None:
        return NO_TASKS_SCREEN
    try:
        year = int(args[0])
    except (IndexError, ValueError):
        return "Usage: /year YYYY"
    if not MIN_YEAR <= year <= MAX_YEAR:
        return f"Year must be within {MIN_YEAR}..{MAX_YEAR}."
    session.calendar.set_year(year)
    return await _show_after_change(session)


async def cmd_today(state: AppState, args: list[str]) -> str:
    session = _require_tasks(state)
    if session is None:
        return NO_TASKS_SCREEN
    session.calendar.select(date.today())
    return await _show_after_change(session)


# ---- tasks ----


def _apply_field(edit: TaskEditSession, field: str, value: str) -> str | None:
    """Apply one console field to the draft; returns an error text or None."""
    field = field.lower()
    if field == "title":
        edit.set_title(value)
    elif field in ("desc", "description"):
        edit.set_description(value)
    elif field == "priority":
        prio = Priority.from_label(value)
        if prio is None:
            return "Priority must be Low, Medium or High."
        edit.set_priority(prio.value)
    elif field == "date":
        try:
            edit.set_due_date(date_key_to_millis(value))
        except ValueError:
            return "Date must look like MM/dd/yyyy."
    elif field == "time":
        try:
            hour_s, minute_s = value.split(":", 1)
            hour, minute = int(hour_s), int(minute_s)
        except ValueError:
            return "Time must look like HH:mm."
        if not (0 <= hour < 24 and 0 <= minute < 60):
            return "Time must look like HH:mm."
        edit.set_due_time(hour, minute)
    elif field == "alert":
        if not edit.is_alert_option_shown:
            return "Alert option is disabled."
        edit.set_alert_enabled(value.lower() in ("on", "1", "true", "yes"))
    else:
        return f"Unknown field: {field}"
    return None


async def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add Title | Description | Priority | MM/dd/yyyy | HH:mm [| alert]
    Date defaults to the selected day.
    """
    parts = [p.strip() for p in " ".join(args).split("|")]
    if len(parts) < 2 or not parts[0]:
        return "Usage: /add Title | Description | [Priority] | [MM/dd/yyyy] | [HH:mm] | [alert]"

    edit = TaskEditSession(
        state.task_store, state.remote_config, state.runner, reminders=state.reminders
    )
    edit.refresh_alert_option()
    edit.set_title(parts[0])
    edit.set_description(parts[1])

    day = parts[3] if len(parts) > 3 and parts[3] else (state.task_list.date_key if state.task_list else "")
    fields = [
        ("priority", parts[2] if len(parts) > 2 else ""),
        ("date", day),
        ("time", parts[4] if len(parts) > 4 else ""),
        ("alert", "on" if len(parts) > 5 and parts[5].lower() == "alert" else ""),
    ]
    for field, value in fields:
        if not value:
            continue
        err = _apply_field(edit, field, value)
        if err:
            return err

    if not edit.can_save:
        return "Title, description and due date are required."
    if not await edit.save():
        return "Task was not saved."
    return f"Task added for {edit.task.due_date}: {edit.task.title}"


async def cmd_edit(state: AppState, args: list[str]) -> str:
    """/edit N field value...   (fields: title, desc, priority, date, time, alert)"""
    session = _require_tasks(state)
    if session is None:
        return NO_TASKS_SCREEN
    picked = _pick(session, args)
    if isinstance(picked, str):
        return picked
    if len(args) < 3:
        return "Usage: /edit N field value"

    edit = TaskEditSession(
        state.task_store,
        state.remote_config,
        state.runner,
        task_id=picked.id,
        reminders=state.reminders,
    )
    await edit.load()
    edit.refresh_alert_option()
    err = _apply_field(edit, args[1], " ".join(args[2:]))
    if err:
        return err
    if not edit.can_save:
        return "Title, description and due date are required."
    if not await edit.save():
        return "Task was not saved."
    return f"Task updated: {edit.task.title}"


async def cmd_done(state: AppState, args: list[str]) -> str:
    session = _require_tasks(state)
    if session is None:
        return NO_TASKS_SCREEN
    picked = _pick(session, args)
    if isinstance(picked, str):
        return picked
    if not await session.toggle_completed(picked):
        return "Task was not updated."
    return f"{picked.title}: {'not completed' if picked.completed else 'completed'}."


async def cmd_delete(state: AppState, args: list[str]) -> str:
    session = _require_tasks(state)
    if session is None:
        return NO_TASKS_SCREEN
    picked = _pick(session, args)
    if isinstance(picked, str):
        return picked
    if not await session.delete_task(picked):
        return "Task was not deleted."
    return "Task deleted."


def cmd_alerts(state: AppState, args: list[str]) -> str:
    lines = [f"Alert option shown: {state.remote_config.show_alert_option_switch}"]
    pending = state.reminders.pending()
    if not pending:
        lines.append("No reminders armed.")
    for r in pending:
        lines.append(f"  #{r.notification_id} {r.body} (task {r.task_id})")
    return "\n".join(lines)


# ---- account ----


async def cmd_login(state: AppState, args: list[str]) -> str:
    if len(args) != 2:
        return "Usage: /login email password"
    login = LoginSession(state.accounts, state.runner, state.notices)
    login.set_email(args[0])
    login.set_password(args[1])
    if await login.sign_in():
        return f"Signed in as {args[0]}."
    return "Sign in failed."


async def cmd_signup(state: AppState, args: list[str]) -> str:
    if len(args) != 3:
        return "Usage: /signup email password confirm_password"
    signup = SignUpSession(state.accounts, state.runner, state.notices)
    signup.set_email(args[0])
    signup.set_password(args[1])
    signup.set_confirm_password(args[2])
    if await signup.create_account():
        return f"Account created for {args[0]}."
    return "Account was not created."


async def cmd_logout(state: AppState, args: list[str]) -> str:
    async with AccountSession(state.accounts, state.runner) as account:
        if await account.sign_out():
            return "Signed out. A new anonymous session was started."
    return "Sign out failed."


async def cmd_account(
    state: AppState, args: list[str], emit: CommandEmitter | None = None
) -> str:
    """
    /account          -> show account kind
    /account delete   -> delete the current account
    """
    async with AccountSession(state.accounts, state.runner) as account:
        if not args:
            kind = "anonymous" if account.is_anonymous_account else "email/password"
            return f"Account: {state.accounts.current_user_id or '<none>'} ({kind})"

        if args[0].lower() == "delete":
            if emit:
                emit("[ACCOUNT] Deleting account...")
            if not await account.delete_account():
                return "Account was not deleted."
            # Keep the app usable: start a fresh anonymous identity.
            await state.runner.run(state.accounts.create_anonymous_account)
            return "Account deleted."

    return "Usage: /account [delete]"


# ---- theme ----


async def cmd_theme(state: AppState, args: list[str]) -> str:
    """
    /theme               -> show current theme
    /theme color NAME    -> red | green | blue | purple
    /theme mode NAME     -> light | dark
    """
    theme = ThemeSession(state.preferences, state.runner)
    if not args:
        t = theme.theme
        return f"Theme: {t.color.name.lower()} / {t.mode.name.lower()}"

    if len(args) != 2:
        return "Usage: /theme color red|green|blue|purple  or  /theme mode light|dark"

    sub, value = args[0].lower(), args[1].upper()
    if sub == "color":
        if value not in ThemeColor.__members__:
            return "Unknown color. Use red, green, blue or purple."
        ok = await theme.set_theme_color(ThemeColor[value])
    elif sub == "mode":
        if value not in ThemeMode.__members__:
            return "Unknown mode. Use light or dark."
        ok = await theme.set_theme_mode(ThemeMode[value])
    else:
        return "Usage: /theme color NAME | /theme mode NAME"

    if not ok:
        return "Theme was not changed."
    t = theme.theme
    return f"Theme: {t.color.name.lower()} / {t.mode.name.lower()}"


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show user, selected day, theme and flags.")
registry.register("list", cmd_list, help_text="List tasks for the selected day.", aliases=["ls"])
registry.register("calendar", cmd_calendar, help_text="Show the selected month.", aliases=["cal"])
registry.register("day", cmd_day, help_text="Select a day of the month: /day N.")
registry.register("next", cmd_next, help_text="Select the next month.")
registry.register("prev", cmd_prev, help_text="Select the previous month.")
registry.register("year", cmd_year, help_text="Select a year: /year YYYY.")
registry.register("today", cmd_today, help_text="Select today.")
registry.register(
    "add",
    cmd_add,
    help_text="Add a task: /add Title | Description | Priority | MM/dd/yyyy | HH:mm | alert.",
)
registry.register("edit", cmd_edit, help_text="Edit a task: /edit N title|desc|priority|date|time|alert VALUE.")
registry.register("done", cmd_done, help_text="Toggle completion: /done N.")
registry.register("delete", cmd_delete, help_text="Delete a task: /delete N.", aliases=["rm"])
registry.register("alerts", cmd_alerts, help_text="Show armed reminders.")
registry.register("login", cmd_login, help_text="Sign in: /login email password.")
registry.register("signup", cmd_signup, help_text="Link this session to an email: /signup email password confirm.")
registry.register("logout", cmd_logout, help_text="Sign out (starts a new anonymous session).")
registry.register("account", cmd_account, help_text="Account info: /account | /account delete.")
registry.register("theme", cmd_theme, help_text="Theme: /theme | /theme color NAME | /theme mode NAME.")
