# src/task_minder/settings/preferences.py

from __future__ import annotations

import asyncio
import json
import logging
import os
from collections.abc import AsyncIterator
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path

from ..core.actions import ActionRunner
from ..core.streams import StateStream

logger = logging.getLogger(__name__)

THEME_COLOR_KEY = "selected_theme_color"
THEME_MODE_KEY = "selected_theme_mode"


class ThemeColor(IntEnum):
    RED = 0
    GREEN = 1
    BLUE = 2
    PURPLE = 3

    @classmethod
    def from_value(cls, code: object) -> ThemeColor:
        try:
            return cls(int(code))  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return cls.RED


class ThemeMode(IntEnum):
    LIGHT = 0
    DARK = 1

    @classmethod
    def from_value(cls, code: object) -> ThemeMode:
        try:
            return cls(int(code))  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return cls.LIGHT


@dataclass(slots=True, frozen=True)
class ThemePreferences:
    color: ThemeColor = ThemeColor.RED
    mode: ThemeMode = ThemeMode.LIGHT


class UserPreferencesRepository:
    """
    Theme preferences persisted as two integer codes in a JSON file.

    A missing, unreadable or corrupt file reads as {RED, LIGHT}; unknown codes
    fall back per field.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._state: StateStream[ThemePreferences] = StateStream(self._decode(self._read_raw()))

    def _read_raw(self) -> dict[str, object]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text("utf-8"))
        except (OSError, ValueError):
            logger.warning("Preferences file unreadable; using defaults: %s", self._path)
            return {}
        return data if isinstance(data, dict) else {}

    @staticmethod
    def _decode(raw: dict[str, object]) -> ThemePreferences:
        return ThemePreferences(
            color=ThemeColor.from_value(raw.get(THEME_COLOR_KEY, ThemeColor.RED.value)),
            mode=ThemeMode.from_value(raw.get(THEME_MODE_KEY, ThemeMode.LIGHT.value)),
        )

    def _write(self, key: str, code: int) -> ThemePreferences:
        raw = self._read_raw()
        raw[key] = int(code)
        tmp = self._path.with_suffix(".tmp")
        tmp.write_text(json.dumps(raw, indent=2), "utf-8")
        os.replace(tmp, self._path)
        return self._decode(raw)

    def theme_state(self) -> AsyncIterator[ThemePreferences]:
        return self._state.subscribe()

    @property
    def current(self) -> ThemePreferences:
        return self._state.value

    async def update_theme_color(self, theme_color: ThemeColor) -> None:
        prefs = await asyncio.to_thread(self._write, THEME_COLOR_KEY, theme_color.value)
        self._state.set(prefs)

    async def update_theme_mode(self, theme_mode: ThemeMode) -> None:
        prefs = await asyncio.to_thread(self._write, THEME_MODE_KEY, theme_mode.value)
        self._state.set(prefs)


class ThemeSession:
    """Theme screen: current preferences plus setters routed through the runner."""

    def __init__(self, prefs: UserPreferencesRepository, runner: ActionRunner) -> None:
        self._prefs = prefs
        self._runner = runner

    @property
    def theme(self) -> ThemePreferences:
        return self._prefs.current

    async def set_theme_color(self, theme_color: ThemeColor) -> bool:
        return await self._runner.run(lambda: self._prefs.update_theme_color(theme_color))

    async def set_theme_mode(self, theme_mode: ThemeMode) -> bool:
        return await self._runner.run(lambda: self._prefs.update_theme_mode(theme_mode))
