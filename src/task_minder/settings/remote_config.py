# src/task_minder/settings/remote_config.py

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

import httpx

from ..errors import ConfigurationError

logger = logging.getLogger(__name__)

SHOW_ALERT_OPTION_SWITCH_KEY = "show_alert_option_switch"

DEFAULTS: dict[str, Any] = {
    SHOW_ALERT_OPTION_SWITCH_KEY: True,
}


def _as_bool(raw: Any, default: bool) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, (int, float)):
        return raw != 0
    if isinstance(raw, str):
        return raw.strip().lower() in {"1", "true", "yes", "y", "on"}
    return default


class RemoteConfigService:
    """
    Feature flags with remote override (ConfigurationService port).

    Source:
    - "http://..." / "https://..." -> fetched with httpx
    - anything else -> path to a local JSON file
    - "" -> defaults only

    fetch_and_activate() returns True only when newly fetched values were
    activated. Until then (or after a failed fetch) the last active values
    stay in effect, starting from DEFAULTS.
    """

    def __init__(
        self,
        source: str = "",
        *,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._source = (source or "").strip()
        self._timeout = httpx.Timeout(timeout_seconds)
        self._transport = transport
        self._active: dict[str, Any] = dict(DEFAULTS)

    @property
    def is_remote(self) -> bool:
        return self._source.startswith(("http://", "https://"))

    async def _fetch_remote(self) -> Any:
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            resp = await client.get(self._source)
            resp.raise_for_status()
            return resp.json()

    def _read_file(self) -> Any | None:
        path = Path(self._source).expanduser()
        if not path.exists():
            return None
        return json.loads(path.read_text("utf-8"))

    async def fetch_and_activate(self) -> bool:
        if not self._source:
            logger.debug("No remote config source; using defaults")
            return False

        try:
            if self.is_remote:
                payload = await self._fetch_remote()
            else:
                payload = await asyncio.to_thread(self._read_file)
        except httpx.HTTPError as e:
            raise ConfigurationError(
                f"Network error occurred while fetching configuration: {e}", cause=e
            ) from e
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Failed to fetch configuration: {e}", cause=e) from e

        if payload is None:
            logger.debug("Remote config file missing: %s", self._source)
            return False
        if not isinstance(payload, dict):
            raise ConfigurationError("Failed to fetch configuration: payload is not an object")

        fetched = dict(DEFAULTS)
        fetched.update({k: v for k, v in payload.items() if k in DEFAULTS})
        if fetched == self._active:
            return False

        self._active = fetched
        logger.info("Remote config activated: %s", fetched)
        return True

    @property
    def show_alert_option_switch(self) -> bool:
        return _as_bool(
            self._active.get(SHOW_ALERT_OPTION_SWITCH_KEY), DEFAULTS[SHOW_ALERT_OPTION_SWITCH_KEY]
        )
