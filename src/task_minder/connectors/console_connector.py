# src/task_minder/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from ..cli.commands import format_task_list
from ..cli.commands import registry as command_registry
from ..core.state import AppState
from ..tasks.task_models import Task

logger = logging.getLogger(__name__)

EXIT_COMMANDS = ("/exit", "/quit")


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


def _flush_notices(state: AppState) -> None:
    for notice in state.notices.drain():
        _print_ts(f"[!] {notice.text}")


def _prompt(state: AppState) -> str:
    day = state.task_list.date_key if state.task_list is not None else "-"
    return f"[{day}] >>> "


async def _read_line(prompt: str) -> str:
    # input() blocks; keep the loop free for the synchronizer and reminders.
    return (await asyncio.to_thread(input, prompt)).strip()


async def run_console_loop(state: AppState) -> None:
    """
    REPL for the tasks screen.

    Every list snapshot pushed by the synchronizer is printed as it arrives
    (the first one right after start). Notices are flushed before each prompt
    and after each command.
    """
    logger.info("Console connector started (user=%s).", state.accounts.current_user_id)
    _print_ts("[CONSOLE] Use /help for commands. Use /exit to quit.\n")

    if state.task_list is not None:

        def _on_tasks(date_key: str, tasks: list[Task]) -> None:
            _print_ts(format_task_list(date_key, tasks))

        state.task_list.add_tasks_listener(_on_tasks)

    while True:
        _flush_notices(state)
        try:
            line = await _read_line(_prompt(state))
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not line:
            continue
        if line.lower() in EXIT_COMMANDS:
            logger.info("Console exit command received.")
            break

        try:
            reply = await command_registry.handle(state, line, emit=_print_ts)
        except Exception:
            logger.exception("Command handler crashed.")
            reply = "Internal error while handling a command."

        _flush_notices(state)
        if reply is None:
            _print_ts("Commands start with '/'. Use /help to list them.")
        else:
            _print_ts(reply)

    logger.info("Console connector finished.")
