# src/task_minder/tasks/reminders.py

from __future__ import annotations

"""
Task reminders.

A small polling loop that:
- keeps the set of armed reminders (one per notification id),
- delivers due reminders via an injected Notifier port,
- reschedules a reminder when delivery fails.

Delivery (console, desktop notification, ...) belongs to the notifier, not the scheduler.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, replace
from datetime import datetime

from ..core.ports import Notifier
from .date_keys import date_time_to_millis
from .task_models import Task

logger = logging.getLogger(__name__)

REMINDER_TITLE = "Task Reminder"


@dataclass(slots=True, frozen=True)
class Reminder:
    notification_id: int
    task_id: str
    title: str
    body: str
    due_at: float


def build_reminder(task: Task, *, title: str = REMINDER_TITLE) -> Reminder | None:
    """
    Convert a task into an armed reminder.

    Returns None when the task cannot ring: no alert flag, already completed,
    or an unparsable due date/time.
    """
    if not task.alert or task.completed:
        return None
    try:
        due_ms = date_time_to_millis(task.due_date, task.due_time or "00:00")
    except ValueError:
        logger.warning(
            "Task %s has no usable due date/time (%r %r); reminder skipped",
            task.id,
            task.due_date,
            task.due_time,
        )
        return None
    return Reminder(
        notification_id=task.reminder_id,
        task_id=task.id,
        title=title,
        body=(task.title or title).strip(),
        due_at=due_ms / 1000.0,
    )


class ConsoleNotifier:
    """Prints reminders to stdout with a local timestamp."""

    def request_permission(self) -> bool:
        return True

    async def notify(self, *, notification_id: int, title: str, body: str) -> None:
        ts = datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")
        print(f"\n[{ts}] [{title}] {body}", flush=True)


class ReminderScheduler:
    def __init__(self, notifier: Notifier) -> None:
        self._notifier = notifier
        self._reminders: dict[int, Reminder] = {}
        self._permission: bool | None = None

    def request_permission(self) -> bool:
        """Ask the platform once; the answer is cached for the process."""
        if self._permission is None:
            try:
                self._permission = bool(self._notifier.request_permission())
            except Exception:
                logger.exception("Notification permission request failed")
                self._permission = False
            logger.info("Notification permission granted=%s", self._permission)
        return self._permission

    def schedule(self, task: Task) -> Reminder | None:
        """Arm (or re-arm) the reminder for `task`; disarm it if it cannot ring."""
        if not self.request_permission():
            logger.warning("No notification permission; reminder for task %s not scheduled", task.id)
            return None

        reminder = build_reminder(task)
        if reminder is None:
            self.cancel(task.reminder_id)
            return None

        self._reminders[reminder.notification_id] = reminder
        logger.info(
            "Reminder armed id=%s task=%s due_at=%s", reminder.notification_id, task.id, reminder.due_at
        )
        return reminder

    def cancel(self, notification_id: int) -> None:
        if self._reminders.pop(notification_id, None) is not None:
            logger.info("Reminder cancelled id=%s", notification_id)

    def pending(self) -> list[Reminder]:
        return sorted(self._reminders.values(), key=lambda r: r.due_at)

    def due(self, now_ts: float) -> list[Reminder]:
        return [r for r in self.pending() if r.due_at <= now_ts]

    async def dispatch_due(self, *, now_ts: float | None = None, retry_delay_seconds: float = 60.0) -> int:
        """Deliver every due reminder once; returns how many were delivered."""
        now_ts = time.time() if now_ts is None else now_ts
        delivered = 0
        for reminder in self.due(now_ts):
            # Drop first so a concurrent re-arm is not lost.
            self._reminders.pop(reminder.notification_id, None)
            try:
                await self._notifier.notify(
                    notification_id=reminder.notification_id,
                    title=reminder.title,
                    body=reminder.body,
                )
                delivered += 1
                logger.info("Reminder %s delivered", reminder.notification_id)
            except Exception:
                logger.exception("Reminder delivery failed id=%s", reminder.notification_id)
                # Reschedule with a backoff unless it was re-armed meanwhile.
                self._reminders.setdefault(
                    reminder.notification_id,
                    replace(reminder, due_at=time.time() + max(1.0, retry_delay_seconds)),
                )
        return delivered

    async def run(
        self,
        *,
        interval_seconds: float = 15.0,
        retry_delay_seconds: float = 60.0,
    ) -> None:
        """
        Simple polling loop: every interval_seconds deliver due reminders.

        To stop it, cancel the coroutine/task.
        """
        sleep_s = max(0.01, float(interval_seconds))
        while True:
            await self.dispatch_due(retry_delay_seconds=retry_delay_seconds)
            await asyncio.sleep(sleep_s)
