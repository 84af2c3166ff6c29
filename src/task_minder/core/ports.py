# src/task_minder/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps storage/auth/config/notification backends swappable and makes testing easier.
"""

from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from ..account.account_models import User
    from ..settings.preferences import ThemeColor, ThemeMode, ThemePreferences
    from ..tasks.task_models import Task


class TaskRepo(Protocol):
    """
    Task storage.

    - query_by_user_and_date: live stream of snapshots, no pagination, backend order
    - create: returns the assigned id; the repo stamps user_id itself
    - update: task must carry a valid id
    Toggling completion is update(task.with_completed(...)), not a separate call.
    """

    def query_by_user_and_date(self, user_id: str, date_key: str) -> AsyncIterator[list[Task]]: ...
    async def get_by_id(self, task_id: str) -> Task | None: ...
    async def create(self, task: Task) -> str: ...
    async def update(self, task: Task) -> None: ...
    async def delete(self, task_id: str) -> None: ...


class AccountService(Protocol):
    """Identity lifecycle. The core only reads the user; mutation happens here."""

    def current_user(self) -> AsyncIterator[User]: ...

    @property
    def current_user_id(self) -> str: ...

    @property
    def is_user_signed_in(self) -> bool: ...

    async def authenticate(self, email: str, password: str) -> None: ...
    async def create_anonymous_account(self) -> None: ...
    async def link_account(self, email: str, password: str) -> None: ...
    async def delete_account(self) -> None: ...
    async def sign_out(self) -> None: ...


class ConfigurationService(Protocol):
    async def fetch_and_activate(self) -> bool: ...

    @property
    def show_alert_option_switch(self) -> bool: ...


class PreferencesRepo(Protocol):
    def theme_state(self) -> AsyncIterator[ThemePreferences]: ...
    async def update_theme_color(self, theme_color: ThemeColor) -> None: ...
    async def update_theme_mode(self, theme_mode: ThemeMode) -> None: ...


class Notifier(Protocol):
    """Local notification delivery (console, desktop, ...)."""

    def request_permission(self) -> bool: ...
    async def notify(self, *, notification_id: int, title: str, body: str) -> None: ...


class ReminderPort(Protocol):
    """What sessions need from the reminder scheduler."""

    def schedule(self, task: Task) -> object | None: ...
    def cancel(self, notification_id: int) -> None: ...


class LogService(Protocol):
    """Sink for non-fatal errors (crash reporting equivalent)."""

    def log_non_fatal(self, exc: BaseException) -> None: ...


class NoticeSink(Protocol):
    def show(self, text: str) -> None: ...
