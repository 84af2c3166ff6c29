# src/task_minder/core/notices.py

from __future__ import annotations

"""
Transient user-facing notices (toast/snackbar equivalent).

Notices are queued and shown one at a time by the connector. The queue is an
explicit object handed to every component that can raise a notice; tests use
NullNoticeSink.
"""

import logging
from collections import deque
from dataclasses import dataclass

logger = logging.getLogger(__name__)

GENERIC_ERROR_TEXT = "Something wrong happened. Please try again."


@dataclass(slots=True, frozen=True)
class Notice:
    text: str


def notice_text(exc: BaseException) -> str:
    """User-facing text for an error: its message, or a generic fallback."""
    msg = str(exc).strip()
    return msg or GENERIC_ERROR_TEXT


class NoticeQueue:
    """FIFO of pending notices."""

    def __init__(self) -> None:
        self._items: deque[Notice] = deque()

    def show(self, text: str) -> None:
        text = (text or "").strip()
        if not text:
            return
        logger.debug("Notice queued: %s", text)
        self._items.append(Notice(text=text))

    def take(self) -> Notice | None:
        return self._items.popleft() if self._items else None

    def drain(self) -> list[Notice]:
        out = list(self._items)
        self._items.clear()
        return out

    @property
    def pending(self) -> int:
        return len(self._items)


class NullNoticeSink:
    """Discards every notice."""

    def show(self, text: str) -> None:
        return
