"""Reference settings store supplying default/user shortcut lists."""

from .registry import (
    ComposeHook,
    FetchHook,
    PluginRecord,
    SettingRegistry,
    Settings,
    SettingsLoadError,
)

__all__ = [
    "ComposeHook",
    "FetchHook",
    "PluginRecord",
    "SettingRegistry",
    "Settings",
    "SettingsLoadError",
]
