from __future__ import annotations

from typing import Any, List, Tuple

import pytest

from shortcut_engine.runtime import telemetry
from shortcut_engine.runtime.telemetry import LogSettings


class FakeConfig:
    def __init__(self) -> None:
        self.calls: List[Tuple[str, Any]] = []

    def __getattr__(self, name: str) -> Any:
        if not name.startswith("with_"):
            raise AttributeError(name)
        return lambda value: self.calls.append((name, value))


class FakeTelelog:
    Config = FakeConfig


@pytest.fixture
def fake_telelog(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(telemetry, "tl", FakeTelelog)
    monkeypatch.setattr(telemetry, "_ACTIVE_CONFIG", telemetry._ACTIVE_CONFIG)
    monkeypatch.setattr(telemetry, "_LOGGER_CACHE", {})


def test_log_settings_from_env_defaults() -> None:
    assert LogSettings.from_env({}) == LogSettings()


def test_log_settings_from_env_reads_prefixed_variables() -> None:
    settings = LogSettings.from_env(
        {
            "SHORTCUT_ENGINE_LOG_LEVEL": "debug",
            "SHORTCUT_ENGINE_DISABLE_CONSOLE": "yes",
            "SHORTCUT_ENGINE_LOG_JSON": "1",
            "SHORTCUT_ENGINE_LOG_FILE": "shortcuts.log",
            "SHORTCUT_ENGINE_LOG_BUFFERED": "on",
            "SHORTCUT_ENGINE_LOG_BUFFER_SIZE": "512",
        }
    )

    assert settings == LogSettings(
        level="DEBUG",
        console=False,
        json=True,
        log_file="shortcuts.log",
        buffer_size=512,
    )


def test_log_settings_buffer_size_ignored_unless_buffered() -> None:
    settings = LogSettings.from_env({"SHORTCUT_ENGINE_LOG_BUFFER_SIZE": "512"})

    assert settings.buffer_size is None


@pytest.mark.parametrize(
    "environ",
    [
        {"SHORTCUT_ENGINE_LOG_LEVEL": "loud"},
        {"SHORTCUT_ENGINE_LOG_BUFFERED": "1", "SHORTCUT_ENGINE_LOG_BUFFER_SIZE": "big"},
        {"SHORTCUT_ENGINE_LOG_BUFFERED": "1", "SHORTCUT_ENGINE_LOG_BUFFER_SIZE": "0"},
    ],
)
def test_log_settings_rejects_bad_env(environ: dict) -> None:
    with pytest.raises(ValueError):
        LogSettings.from_env(environ)


def test_presets_and_unknown_preset() -> None:
    assert LogSettings.preset("Development").level == "DEBUG"
    assert LogSettings.preset("quiet").colored is False
    with pytest.raises(ValueError):
        LogSettings.preset("verbose")


def test_build_production_preset(fake_telelog: None) -> None:
    config = LogSettings.preset("production").build()

    assert config.calls == [
        ("with_min_level", "WARNING"),
        ("with_console_output", False),
        ("with_json_format", False),
        ("with_file_output", "shortcut_engine.log"),
        ("with_buffering", True),
        ("with_buffer_size", 2048),
    ]


def test_configure_preset_replaces_active_config(fake_telelog: None) -> None:
    telemetry._LOGGER_CACHE["stale"] = object()

    telemetry.configure(preset="quiet")

    assert isinstance(telemetry._ACTIVE_CONFIG, FakeConfig)
    assert ("with_min_level", "ERROR") in telemetry._ACTIVE_CONFIG.calls
    assert ("with_colored_output", False) in telemetry._ACTIVE_CONFIG.calls
    assert telemetry._LOGGER_CACHE == {}


def test_configure_rejects_conflicting_options(fake_telelog: None) -> None:
    with pytest.raises(ValueError):
        telemetry.configure(config=FakeConfig(), preset="quiet")
    with pytest.raises(ValueError):
        telemetry.configure(preset="unknown")


def test_record_event_emits_structured_payload(recording_logger: Any) -> None:
    telemetry.record_event("shortcuts.test", level="warning", data={"keys": ["Ctrl A"]})

    assert recording_logger.events("shortcuts.test", "warning") == [
        {"event": "shortcuts.test", "keys": "['Ctrl A']"}
    ]


def test_span_tracks_component_and_clears_context(recording_logger: Any) -> None:
    with telemetry.span(
        "shortcuts::merge", component=True, metadata={"user": 2}
    ) as handle:
        assert recording_logger.context == {"user": "2"}
        handle.add_metadata("merged", 1)
        handle.summary()

    assert recording_logger.context == {}
    assert recording_logger.profiled == ["shortcuts::merge"]
    assert recording_logger.components == ["shortcuts::merge"]
    level, message, payload = recording_logger.records[-1]
    assert (level, message) == ("debug", "span::summary")
    assert payload["merged"] == "1"


def test_span_failure_is_logged_and_reraised(recording_logger: Any) -> None:
    with pytest.raises(RuntimeError):
        with telemetry.span("shortcuts::install", component="shortcuts", metadata={"entries": 3}):
            raise RuntimeError("dispatcher down")

    level, message, payload = recording_logger.records[-1]
    assert (level, message) == ("error", "span::fail")
    assert payload["reason"] == "dispatcher down"
    assert payload["component"] == "shortcuts"
    assert recording_logger.context == {}
