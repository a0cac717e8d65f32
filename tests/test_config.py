from __future__ import annotations

import pytest

from shortcut_engine.config import ShortcutsConfig


def test_from_env_reads_prefixed_variables() -> None:
    config = ShortcutsConfig.from_env(
        {
            "SHORTCUT_ENGINE_PLUGIN_ID": "app:shortcuts",
            "SHORTCUT_ENGINE_EXTENSION_KEY": "app.shortcuts",
        }
    )

    assert config.plugin_id == "app:shortcuts"
    assert config.extension_key == "app.shortcuts"
    assert config.logger_name == ShortcutsConfig().logger_name


def test_from_env_ignores_empty_values() -> None:
    config = ShortcutsConfig.from_env({"SHORTCUT_ENGINE_PLUGIN_ID": ""})

    assert config == ShortcutsConfig()


def test_empty_identifiers_are_rejected() -> None:
    with pytest.raises(ValueError):
        ShortcutsConfig(plugin_id="")
