# src/task_minder/tasks/task_list.py

from __future__ import annotations

"""
Task list session (the tasks screen).

Owns the calendar selection, publishes its date key, and keeps `tasks`
synchronized with the repository while the session is open:

    async with TaskListSession(...) as session:
        session.calendar.set_day_in_month("15")
        ...

Leaving the block releases every subscription, including on errors.
"""

import asyncio
import contextlib
import logging
from collections.abc import Callable
from datetime import date

from ..core.actions import ActionRunner
from ..core.ports import AccountService, ReminderPort, TaskRepo
from ..core.streams import StateStream
from .calendar_state import CalendarSelection
from .task_models import Task
from .task_sync import TaskListSynchronizer

logger = logging.getLogger(__name__)

TasksListener = Callable[[str, list[Task]], None]


class TaskListSession:
    def __init__(
        self,
        repo: TaskRepo,
        account: AccountService,
        runner: ActionRunner,
        *,
        reminders: ReminderPort | None = None,
        today: date | None = None,
    ) -> None:
        self._repo = repo
        self._runner = runner
        self._reminders = reminders

        self.calendar = CalendarSelection.today(today)
        self._date_key: StateStream[str] = StateStream(self.calendar.date_key)
        self.calendar.add_listener(self._on_selection_changed)

        self._sync = TaskListSynchronizer(repo, account.current_user, self._date_key.subscribe)
        self._collector: asyncio.Task[None] | None = None
        self._open = False
        self._listeners: list[TasksListener] = []

        self.tasks: list[Task] = []
        self.snapshot_date_key: str | None = None
        self.snapshots_received = 0
        self._snapshot_event = asyncio.Event()

    # ---- wiring ----

    def _on_selection_changed(self, selection: CalendarSelection) -> None:
        self._date_key.set(selection.date_key)
        if self._open and (self._collector is None or self._collector.done()):
            # The last subscription failed; a new selection retries it.
            logger.info("Restarting task list subscription for %s", selection.date_key)
            self.start()

    @property
    def date_key(self) -> str:
        return self._date_key.value

    def add_tasks_listener(self, listener: TasksListener) -> None:
        self._listeners.append(listener)

    # ---- lifecycle ----

    def start(self) -> None:
        self._open = True
        if self._collector is None or self._collector.done():
            self._collector = asyncio.create_task(self._collect())

    async def close(self) -> None:
        self._open = False
        collector, self._collector = self._collector, None
        if collector is not None:
            collector.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await collector
        self.calendar.remove_listener(self._on_selection_changed)

    async def __aenter__(self) -> TaskListSession:
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def _collect(self) -> None:
        async with contextlib.aclosing(self._sync.snapshots()) as stream:
            try:
                async for snapshot in stream:
                    self.tasks = snapshot
                    self.snapshot_date_key = self._sync.date_key
                    self.snapshots_received += 1
                    self._snapshot_event.set()
                    for listener in list(self._listeners):
                        listener(self.snapshot_date_key or "", snapshot)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.warning("Task list subscription failed: %s", exc)
                self._runner.report(exc)

    async def wait_for_snapshot(self, *, date_key: str | None = None, timeout: float = 5.0) -> list[Task]:
        """Wait until a snapshot (optionally for `date_key`) has been delivered."""

        async def _wait() -> list[Task]:
            while True:
                if self.snapshots_received and (date_key is None or self.snapshot_date_key == date_key):
                    return self.tasks
                self._snapshot_event.clear()
                await self._snapshot_event.wait()

        return await asyncio.wait_for(_wait(), timeout)

    # ---- actions ----

    async def toggle_completed(self, task: Task) -> bool:
        flipped = task.with_completed(not task.completed)

        async def action() -> None:
            await self._repo.update(flipped)
            if self._reminders is not None:
                self._reminders.schedule(flipped)

        return await self._runner.run(action)

    async def delete_task(self, task: Task) -> bool:
        async def action() -> None:
            await self._repo.delete(task.id)
            if self._reminders is not None:
                self._reminders.cancel(task.reminder_id)

        return await self._runner.run(action)
