from __future__ import annotations

import asyncio

import pytest

from shortcut_engine.settings import PluginRecord, SettingRegistry, SettingsLoadError

SCHEMA = {
    "type": "object",
    "properties": {
        "theme": {"type": "string", "default": "light"},
        "size": {"type": "number", "default": 12},
    },
}


def test_load_composes_defaults_and_user_values() -> None:
    registry = SettingRegistry()
    registry.register_plugin("editor", SCHEMA, raw='{"size": 14}')

    settings = asyncio.run(registry.load("editor"))

    assert dict(settings.composite) == {"theme": "light", "size": 14}
    assert dict(settings.user) == {"size": 14}


def test_load_unknown_plugin_fails() -> None:
    registry = SettingRegistry()

    with pytest.raises(SettingsLoadError) as info:
        asyncio.run(registry.load("missing"))

    assert info.value.plugin_id == "missing"


@pytest.mark.parametrize("raw", ["{not json", "[1, 2]"])
def test_load_malformed_user_text_fails(raw: str) -> None:
    registry = SettingRegistry()
    registry.register_plugin("editor", SCHEMA, raw=raw)

    with pytest.raises(SettingsLoadError):
        asyncio.run(registry.load("editor"))


def test_set_user_emits_changed_only_when_composite_differs() -> None:
    registry = SettingRegistry()
    registry.register_plugin("editor", SCHEMA)
    settings = asyncio.run(registry.load("editor"))
    changes: list[object] = []
    settings.changed.connect(lambda sender, _: changes.append(sender))

    registry.set_user("editor", {"theme": "dark"})
    registry.set_user("editor", {"theme": "dark"})

    assert changes == [settings]
    assert settings.composite["theme"] == "dark"


def test_set_raw_rejects_malformed_text_and_keeps_previous() -> None:
    registry = SettingRegistry()
    registry.register_plugin("editor", SCHEMA, raw='{"size": 10}')
    settings = asyncio.run(registry.load("editor"))

    with pytest.raises(SettingsLoadError):
        registry.set_raw("editor", "{oops")

    assert settings.raw == '{"size": 10}'
    assert settings.composite["size"] == 10


def test_transform_hooks_run_on_load() -> None:
    registry = SettingRegistry()
    registry.register_plugin("editor", SCHEMA)

    def fetch(plugin: PluginRecord) -> PluginRecord:
        plugin.schema["properties"]["theme"]["default"] = "solarized"
        return plugin

    def compose(plugin: PluginRecord) -> PluginRecord:
        plugin.data["composite"]["composed"] = True
        return plugin

    handle = registry.transform("editor", compose=compose, fetch=fetch)
    settings = asyncio.run(registry.load("editor"))

    assert settings.composite["theme"] == "solarized"
    assert settings.composite["composed"] is True
    with pytest.raises(ValueError):
        registry.transform("editor", compose=compose)
    handle.dispose()
    registry.transform("editor", compose=compose)


def test_register_plugin_emits_plugin_changed() -> None:
    registry = SettingRegistry()
    seen: list[str] = []
    registry.plugin_changed.connect(lambda sender, plugin_id: seen.append(plugin_id))

    registry.register_plugin("editor", SCHEMA)

    assert seen == ["editor"]
    assert "editor" in registry.plugins
    with pytest.raises(ValueError):
        registry.register_plugin("editor", SCHEMA)
