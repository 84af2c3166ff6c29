# src/task_minder/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (tasks/accounts/config/preferences/reminders),
- re-arms reminders for the signed-in user.
"""

from __future__ import annotations

import logging

from ..account.account_service import LocalAccountService
from ..config import get_settings
from ..core.actions import ActionRunner, LoggingLogService
from ..core.notices import NoticeQueue
from ..core.ports import Notifier
from ..core.state import AppState
from ..settings.preferences import UserPreferencesRepository
from ..settings.remote_config import RemoteConfigService
from ..tasks.reminders import ConsoleNotifier, ReminderScheduler
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)
    settings.accounts_db_path.parent.mkdir(parents=True, exist_ok=True)
    settings.session_path.parent.mkdir(parents=True, exist_ok=True)
    settings.preferences_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None, notifier: Notifier | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    accounts = LocalAccountService(settings.accounts_db_path, settings.session_path)
    notices = NoticeQueue()

    state = AppState(
        settings=settings,
        task_store=TaskStore(
            settings.tasks_db_path, current_user_id=lambda: accounts.current_user_id
        ),
        accounts=accounts,
        remote_config=RemoteConfigService(
            settings.remote_config_source,
            timeout_seconds=settings.remote_config_timeout_seconds,
        ),
        preferences=UserPreferencesRepository(settings.preferences_path),
        reminders=ReminderScheduler(notifier or ConsoleNotifier()),
        notices=notices,
        runner=ActionRunner(notices, LoggingLogService()),
    )
    return state


async def rearm_reminders(state: AppState) -> int:
    """Schedule reminders for the current user's open alert tasks."""
    if not getattr(state.settings, "reminders_enabled", True):
        return 0
    if not state.reminders.request_permission():
        return 0

    armed = 0
    try:
        tasks = await state.task_store.list_alert_tasks(state.accounts.current_user_id)
    except Exception as exc:
        state.runner.report(exc, notice=False)
        return 0
    for task in tasks:
        if state.reminders.schedule(task) is not None:
            armed += 1
    logger.info("Re-armed %d reminders", armed)
    return armed
