# src/task_minder/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .actions import ActionRunner
from .notices import NoticeQueue

if TYPE_CHECKING:
    from ..account.account_service import LocalAccountService
    from ..settings.preferences import UserPreferencesRepository
    from ..settings.remote_config import RemoteConfigService
    from ..tasks.reminders import ReminderScheduler
    from ..tasks.task_list import TaskListSession
    from ..tasks.task_store import TaskStore


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: Any

    task_store: TaskStore
    accounts: LocalAccountService
    remote_config: RemoteConfigService
    preferences: UserPreferencesRepository
    reminders: ReminderScheduler

    notices: NoticeQueue
    runner: ActionRunner

    # Set by the console while the tasks screen is open.
    task_list: TaskListSession | None = None
