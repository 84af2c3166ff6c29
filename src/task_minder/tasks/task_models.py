# src/task_minder/tasks/task_models.py

from __future__ import annotations

import zlib
from dataclasses import dataclass, replace
from enum import StrEnum

# Notification handles are kept in the positive 31-bit range.
_REMINDER_ID_MASK = 0x7FFFFFFF


class Priority(StrEnum):
    """Display order only; nothing sorts by it."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @classmethod
    def from_label(cls, raw: str | None) -> Priority | None:
        if not raw:
            return None
        for p in cls:
            if p.value.lower() == raw.strip().lower():
                return p
        return None


@dataclass(slots=True, frozen=True)
class Task:
    """
    A user-owned to-do item.

    Notes:
    - id == "" means "not persisted yet"; saving such a task is a create.
    - due_date is a zero-padded "MM/dd/yyyy" date key, due_time is "HH:mm".
    - user_id is stamped by the repository on create, never by callers.
    - notification_id is None until explicitly allocated; see reminder_id.
    """

    id: str = ""
    title: str = ""
    priority: str = ""
    due_date: str = ""
    due_time: str = ""
    description: str = ""
    completed: bool = False
    alert: bool = False
    user_id: str = ""
    notification_id: int | None = None

    @property
    def is_new(self) -> bool:
        return not self.id.strip()

    @property
    def reminder_id(self) -> int:
        """
        Handle correlating this task with a scheduled notification.

        An explicit notification_id wins; otherwise it is derived from the id,
        so it is stable for a persisted task and reproducible in tests.
        """
        if self.notification_id is not None:
            return self.notification_id
        return zlib.crc32(self.id.encode("utf-8")) & _REMINDER_ID_MASK

    def with_completed(self, completed: bool) -> Task:
        return replace(self, completed=completed)


def blank_task() -> Task:
    return Task()
