# src/task_minder/core/actions.py

from __future__ import annotations

"""
Centralized handling for asynchronous user actions.

Every action entry point (save, toggle, sign in, ...) goes through
ActionRunner so failures are treated the same way everywhere:
- optionally show a transient notice
- always forward the exception to the LogService
Cancellation is never swallowed.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from .notices import notice_text
from .ports import LogService, NoticeSink

logger = logging.getLogger(__name__)

Action = Callable[[], Awaitable[Any]]


class LoggingLogService:
    """LogService on top of stdlib logging (keeps tracebacks in the file log)."""

    def __init__(self, name: str = "task_minder.errors") -> None:
        self._logger = logging.getLogger(name)

    def log_non_fatal(self, exc: BaseException) -> None:
        kind = getattr(exc, "kind", type(exc).__name__)
        self._logger.error("Non-fatal error kind=%s: %s", kind, exc, exc_info=exc)


class ActionRunner:
    def __init__(self, notices: NoticeSink, log: LogService) -> None:
        self._notices = notices
        self._log = log
        self._background: set[asyncio.Task[bool]] = set()

    def report(self, exc: BaseException, *, notice: bool = True) -> None:
        if notice:
            self._notices.show(notice_text(exc))
        self._log.log_non_fatal(exc)

    async def run(self, action: Action, *, notice: bool = True) -> bool:
        """Await `action()`; return False if it raised (after reporting)."""
        try:
            await action()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            self.report(exc, notice=notice)
            return False
        return True

    def launch(self, action: Action, *, notice: bool = True) -> asyncio.Task[bool]:
        """Fire-and-forget variant of run(); the task is kept alive until done."""
        task = asyncio.create_task(self.run(action, notice=notice))
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    async def aclose(self) -> None:
        pending = list(self._background)
        for t in pending:
            t.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._background.clear()
