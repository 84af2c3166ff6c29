# tests/test_remote_config.py

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest

from task_minder.errors import ConfigurationError
from task_minder.settings.remote_config import SHOW_ALERT_OPTION_SWITCH_KEY, RemoteConfigService

URL = "https://config.example.test/task_minder.json"


def _transport(status: int, payload: object) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        assert str(request.url) == URL
        return httpx.Response(status, json=payload)

    return httpx.MockTransport(handler)


@pytest.mark.asyncio
async def test_defaults_without_source() -> None:
    config = RemoteConfigService("")

    assert await config.fetch_and_activate() is False
    assert config.show_alert_option_switch is True


@pytest.mark.asyncio
async def test_remote_values_are_activated_once() -> None:
    config = RemoteConfigService(URL, transport=_transport(200, {SHOW_ALERT_OPTION_SWITCH_KEY: False}))

    assert await config.fetch_and_activate() is True
    assert config.show_alert_option_switch is False

    # Same values again: nothing new to activate.
    assert await config.fetch_and_activate() is False
    assert config.show_alert_option_switch is False


@pytest.mark.asyncio
async def test_http_error_keeps_last_values() -> None:
    config = RemoteConfigService(URL, transport=_transport(503, {"error": "unavailable"}))

    with pytest.raises(ConfigurationError) as exc_info:
        await config.fetch_and_activate()

    assert exc_info.value.kind == "configuration"
    assert config.show_alert_option_switch is True


@pytest.mark.asyncio
async def test_non_object_payload_is_rejected() -> None:
    config = RemoteConfigService(URL, transport=_transport(200, [1, 2, 3]))

    with pytest.raises(ConfigurationError):
        await config.fetch_and_activate()


@pytest.mark.asyncio
async def test_local_file_source(tmp_path: Path) -> None:
    path = tmp_path / "remote_config.json"
    config = RemoteConfigService(str(path))

    # Missing file: defaults stay, nothing activated.
    assert await config.fetch_and_activate() is False

    path.write_text(json.dumps({SHOW_ALERT_OPTION_SWITCH_KEY: "off", "unknown": 1}), "utf-8")
    assert await config.fetch_and_activate() is True
    assert config.show_alert_option_switch is False

    path.write_text("{broken", "utf-8")
    with pytest.raises(ConfigurationError):
        await config.fetch_and_activate()
    assert config.show_alert_option_switch is False
