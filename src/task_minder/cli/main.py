# src/task_minder/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, runs the splash flow (remote config +
anonymous identity), re-arms reminders and then opens the tasks screen:
- console REPL in the foreground,
- reminder dispatcher as a background asyncio task (optional).
"""

from __future__ import annotations

import asyncio
import contextlib
import logging

from ..account.sessions import SplashSession
from ..cli.bootstrap import create_initial_state, rearm_reminders
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..core.state import AppState
from ..logging_setup import setup_logging
from ..tasks.task_list import TaskListSession

logger = logging.getLogger(__name__)


async def _run_splash(state: AppState) -> bool:
    """Fetch remote config, then make sure there is an identity. Retries on demand."""
    splash = SplashSession(state.accounts, state.remote_config, state.runner)
    await splash.fetch_configuration()

    while not await splash.start_the_app():
        print("Could not start a session. Press Enter to try again or type 'q' to quit.")
        try:
            answer = await asyncio.to_thread(input, "")
        except (EOFError, KeyboardInterrupt):
            return False
        if answer.strip().lower() in ("q", "quit", "exit"):
            return False
    return splash.is_account_ready


async def _shutdown(state: AppState, reminder_task: asyncio.Task[None] | None) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    if reminder_task is not None:
        reminder_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await reminder_task

    try:
        await state.runner.aclose()
    except Exception:
        logger.debug("ActionRunner close failed.", exc_info=True)

    # TaskStore uses short-lived sqlite connections per call; close() is a no-op hook.
    try:
        state.task_store.close()
    except Exception:
        logger.debug("TaskStore close failed.", exc_info=True)


async def run_app(state: AppState) -> None:
    if not await _run_splash(state):
        logger.info("Splash aborted, exiting.")
        return

    settings = state.settings
    reminder_task: asyncio.Task[None] | None = None
    try:
        await rearm_reminders(state)
        if settings.reminders_enabled:
            reminder_task = asyncio.create_task(
                state.reminders.run(
                    interval_seconds=settings.reminder_interval_seconds,
                    retry_delay_seconds=settings.reminder_retry_delay_seconds,
                )
            )

        async with TaskListSession(
            state.task_store,
            state.accounts,
            state.runner,
            reminders=state.reminders,
        ) as session:
            state.task_list = session
            try:
                await run_console_loop(state)
            finally:
                state.task_list = None
    finally:
        await _shutdown(state, reminder_task)


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    log_dir = getattr(settings, "data_dir", ".local/task_minder")
    setup_logging(log_dir=log_dir, console_level=console_level)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logger.info("Starting %s...", getattr(settings, "app_name", "task-minder"))

    state = create_initial_state(settings=settings)

    try:
        asyncio.run(run_app(state))
    except KeyboardInterrupt:
        logger.info("KeyboardInterrupt received, shutting down...")
    finally:
        logger.info("Bye.")


if __name__ == "__main__":
    main()
