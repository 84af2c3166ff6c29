# src/task_minder/tasks/task_sync.py

from __future__ import annotations

"""
Task list synchronizer.

Binds two live inputs (current user, date key) to one live repository query:
- every change of user id or date key opens a new subscription
  for (user_id, date_key) and cancels the previous one
- only snapshots of the newest subscription are delivered ("latest wins")
- a failed subscription ends the stream with that error; no retry here

Each restart bumps a generation counter; pump tasks tag their snapshots with
the generation they were started for and stale tags are dropped on delivery.
"""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass
from typing import Any

from ..account.account_models import User
from ..core.ports import TaskRepo
from .task_models import Task

logger = logging.getLogger(__name__)

UserSource = Callable[[], AsyncIterator[User]]
DateKeySource = Callable[[], AsyncIterator[str]]


@dataclass(slots=True, frozen=True)
class _Event:
    # generation None: not tied to a subscription (input stream failure).
    generation: int | None
    snapshot: list[Task] | None = None
    error: BaseException | None = None


class TaskListSynchronizer:
    def __init__(self, repo: TaskRepo, users: UserSource, date_keys: DateKeySource) -> None:
        self._repo = repo
        self._users = users
        self._date_keys = date_keys
        self.generation = 0
        self.user_id: str | None = None
        self.date_key: str | None = None

    async def snapshots(self) -> AsyncIterator[list[Task]]:
        """
        Infinite stream of task-list snapshots for the latest (user, date key).

        Closing the generator (or cancelling whoever iterates it) cancels every
        task it started, on every exit path. Each call starts from scratch,
        so a new call after an error resubscribes for the current inputs.
        """
        self.user_id = None
        self.date_key = None
        events: asyncio.Queue[_Event] = asyncio.Queue()
        current: asyncio.Task[None] | None = None

        async def pump(generation: int, user_id: str, date_key: str) -> None:
            try:
                async with contextlib.aclosing(
                    self._repo.query_by_user_and_date(user_id, date_key)
                ) as stream:
                    async for snapshot in stream:
                        events.put_nowait(_Event(generation, snapshot=list(snapshot)))
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                events.put_nowait(_Event(generation, error=exc))

        def restart() -> None:
            nonlocal current
            if self.user_id is None or self.date_key is None:
                return
            self.generation += 1
            if current is not None:
                current.cancel()
            logger.debug(
                "Resubscribing gen=%s user=%s date=%s", self.generation, self.user_id, self.date_key
            )
            current = asyncio.create_task(pump(self.generation, self.user_id, self.date_key))

        async def watch(source: Callable[[], AsyncIterator[Any]], on_value: Callable[[Any], bool]) -> None:
            try:
                async with contextlib.aclosing(source()) as stream:
                    async for value in stream:
                        if on_value(value):
                            restart()
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                events.put_nowait(_Event(None, error=exc))

        def on_user(user: User) -> bool:
            if user.user_id == self.user_id:
                return False
            self.user_id = user.user_id
            return True

        def on_date_key(key: str) -> bool:
            if key == self.date_key:
                return False
            self.date_key = key
            return True

        watchers = [
            asyncio.create_task(watch(self._users, on_user)),
            asyncio.create_task(watch(self._date_keys, on_date_key)),
        ]
        try:
            while True:
                event = await events.get()
                if event.generation is not None and event.generation != self.generation:
                    continue
                if event.error is not None:
                    raise event.error
                if event.snapshot is not None:
                    yield event.snapshot
        finally:
            pending = [t for t in (*watchers, current) if t is not None]
            for t in pending:
                t.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
            logger.debug("Task list synchronizer released (gen=%s)", self.generation)
