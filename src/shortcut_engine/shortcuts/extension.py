"""Shortcuts extension: aggregates defaults, merges user overrides, installs.

Shortcut values live in the settings store. Each contributing plugin declares
default shortcuts under ``ShortcutsConfig.extension_key`` in its schema; this
extension concatenates them into the default value of its own ``shortcuts``
property, merges the user's list over them whenever the store composes its
settings, and reinstalls the result every time the composite changes.

Selectors are matched by the dispatcher, not here. Two rules on the same keys
with different selectors never collide, even if both selectors match the
same element; which one fires is the dispatcher's decision. For global
shortcuts prefer a broad but specific scope such as ``body`` over ``*``.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, List, Optional, Set

from shortcut_engine.config import ShortcutsConfig
from shortcut_engine.disposable import Disposable
from shortcut_engine.runtime.telemetry import record_event
from shortcut_engine.settings import (
    PluginRecord,
    SettingRegistry,
    Settings,
    SettingsLoadError,
)

from .installer import KeyBindingTarget, ShortcutInstaller
from .reconciler import merge
from .validation import parse_rules


SHORTCUTS_SCHEMA: Dict[str, Any] = {
    "title": "Keyboard Shortcuts",
    "type": "object",
    "properties": {
        "shortcuts": {
            "title": "Shortcuts",
            "description": "Rules merged over every plugin's default shortcuts.",
            "type": "array",
            "default": [],
        }
    },
}


class ShortcutsExtension:
    def __init__(
        self,
        registry: SettingRegistry,
        commands: KeyBindingTarget,
        *,
        config: ShortcutsConfig | None = None,
    ) -> None:
        self.registry = registry
        self.config = config or ShortcutsConfig()
        self.installer = ShortcutInstaller(
            commands, logger_name=self.config.logger_name
        )
        self.settings: Optional[Settings] = None
        self._canonical: Optional[Dict[str, Any]] = None
        self._scanned: Set[str] = set()
        self._transform: Optional[Disposable] = None

    @property
    def plugin_id(self) -> str:
        return self.config.plugin_id

    def populate(self, schema: Dict[str, Any]) -> None:
        """Fill ``schema``'s shortcut defaults from every registered plugin."""

        self._scanned = set()
        defaults: List[Any] = []
        for plugin_id, plugin in self.registry.plugins.items():
            self._scanned.add(plugin_id)
            contributed = plugin.schema.get(self.config.extension_key) or []
            if isinstance(contributed, list):
                defaults.extend(copy.deepcopy(contributed))
        defaults.sort(key=_command_of)

        properties = schema.setdefault("properties", {})
        shortcuts = properties.setdefault("shortcuts", {"type": "array"})
        shortcuts["default"] = defaults

    async def activate(self) -> Optional[Settings]:
        """Load settings, install the composite and follow later changes.

        A load failure is logged once and leaves nothing installed.
        """

        self.registry.plugin_changed.connect(self._on_plugin_changed)
        if self._transform is None:
            self._transform = self.registry.transform(
                self.plugin_id, compose=self._compose, fetch=self._fetch
            )

        try:
            settings = await self.registry.load(self.plugin_id)
        except SettingsLoadError as exc:
            record_event(
                "shortcuts.load_failed",
                level="error",
                data={"plugin": self.plugin_id, "reason": exc.reason},
                logger_name=self.config.logger_name,
            )
            return None

        self.settings = settings
        self._install()
        settings.changed.connect(self._on_settings_changed)
        return settings

    def deactivate(self) -> None:
        self.registry.plugin_changed.disconnect(self._on_plugin_changed)
        if self.settings is not None:
            self.settings.changed.disconnect(self._on_settings_changed)
            self.settings = None
        if self._transform is not None:
            self._transform.dispose()
            self._transform = None
        self.installer.dispose()

    def _ensure_canonical(self, schema: Dict[str, Any]) -> Dict[str, Any]:
        # Only the first schema seen becomes canonical.
        if self._canonical is None:
            self._canonical = copy.deepcopy(schema)
            self.populate(self._canonical)
        return self._canonical

    def _compose(self, plugin: PluginRecord) -> PluginRecord:
        canonical = self._ensure_canonical(plugin.schema)
        defaults = canonical["properties"]["shortcuts"]["default"]
        user = {"shortcuts": _user_shortcuts(plugin.data.get("user"))}
        merged = merge(
            parse_rules(defaults, logger_name=self.config.logger_name),
            parse_rules(user["shortcuts"], logger_name=self.config.logger_name),
            logger_name=self.config.logger_name,
        )
        plugin.data = {
            "composite": {"shortcuts": [rule.to_dict() for rule in merged]},
            "user": user,
        }
        return plugin

    def _fetch(self, plugin: PluginRecord) -> PluginRecord:
        canonical = self._ensure_canonical(plugin.schema)
        return PluginRecord(
            id=plugin.id,
            schema=copy.deepcopy(canonical),
            raw=plugin.raw,
            data=plugin.data,
            version=plugin.version,
        )

    def _install(self) -> None:
        if self.settings is None:
            return
        self.installer.install(self.settings.composite.get("shortcuts") or [])

    def _on_settings_changed(self, sender: object, payload: None) -> None:
        del sender, payload
        self._install()

    def _on_plugin_changed(self, sender: object, plugin_id: str) -> None:
        del sender
        if plugin_id in self._scanned or self._canonical is None:
            return
        self.populate(self._canonical)
        self.registry.reload(self.plugin_id)


def _command_of(value: Any) -> str:
    if isinstance(value, dict) and isinstance(value.get("command"), str):
        return value["command"]
    return ""


def _user_shortcuts(user: Any) -> List[Any]:
    if not isinstance(user, dict):
        return []
    shortcuts = user.get("shortcuts")
    return shortcuts if isinstance(shortcuts, list) else []


__all__ = ["SHORTCUTS_SCHEMA", "ShortcutsExtension"]
