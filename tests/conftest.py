# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from task_minder.cli.bootstrap import create_initial_state
from task_minder.core.actions import ActionRunner
from task_minder.core.notices import NoticeQueue
from task_minder.core.state import AppState

from .fakes import FakeNotifier, RecordingLogService


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the bootstrap.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="task-minder-test",
        log_level="DEBUG",
        # Paths (tmp per test run)
        data_dir=tmp_path,
        tasks_db_path=tmp_path / "tasks.sqlite3",
        accounts_db_path=tmp_path / "accounts.sqlite3",
        session_path=tmp_path / "session.json",
        preferences_path=tmp_path / "preferences.json",
        # Remote config: defaults only
        remote_config_source="",
        remote_config_timeout_seconds=1.0,
        # Reminders
        reminders_enabled=True,
        reminder_interval_seconds=0.01,
        reminder_retry_delay_seconds=0.01,
    )


@pytest.fixture()
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture()
def state(settings: SimpleNamespace, notifier: FakeNotifier) -> AppState:
    """
    AppState wired by the real bootstrap, with a recording notifier.

    Real SQLite stores are kept (TaskStore/LocalAccountService) because
    their correctness is part of what we want to test.
    """
    return create_initial_state(settings=settings, notifier=notifier)


@pytest.fixture()
def notices() -> NoticeQueue:
    return NoticeQueue()


@pytest.fixture()
def log() -> RecordingLogService:
    return RecordingLogService()


@pytest.fixture()
def runner(notices: NoticeQueue, log: RecordingLogService) -> ActionRunner:
    return ActionRunner(notices, log)
