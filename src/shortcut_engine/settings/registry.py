"""In-memory settings store with compose/fetch transforms and change signals."""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional

from shortcut_engine.disposable import Disposable, DisposableDelegate
from shortcut_engine.runtime.telemetry import span
from shortcut_engine.signals import Signal


@dataclass(slots=True)
class PluginRecord:
    """Raw schema + user text for one plugin, plus its composed data."""

    id: str
    schema: Dict[str, Any]
    raw: str = "{}"
    data: Dict[str, Any] = field(default_factory=dict)
    version: str = "0.0.0"


ComposeHook = Callable[[PluginRecord], PluginRecord]
FetchHook = Callable[[PluginRecord], PluginRecord]


@dataclass(frozen=True, slots=True)
class _Transform:
    compose: Optional[ComposeHook] = None
    fetch: Optional[FetchHook] = None


class SettingsLoadError(RuntimeError):
    """Raised when a plugin's settings cannot be fetched or parsed."""

    def __init__(self, plugin_id: str, reason: str) -> None:
        super().__init__(f"Loading settings for '{plugin_id}' failed: {reason}")
        self.plugin_id = plugin_id
        self.reason = reason


class Settings:
    """Loaded view of one plugin's settings."""

    def __init__(self, plugin: PluginRecord) -> None:
        self.id = plugin.id
        self._plugin = plugin
        self.changed: Signal[None] = Signal(self)

    @property
    def schema(self) -> Mapping[str, Any]:
        return MappingProxyType(self._plugin.schema)

    @property
    def raw(self) -> str:
        return self._plugin.raw

    @property
    def composite(self) -> Mapping[str, Any]:
        return MappingProxyType(self._plugin.data.get("composite", {}))

    @property
    def user(self) -> Mapping[str, Any]:
        return MappingProxyType(self._plugin.data.get("user", {}))

    def _update(self, plugin: PluginRecord) -> None:
        previous = self._plugin.data.get("composite")
        self._plugin = plugin
        if plugin.data.get("composite") != previous:
            self.changed.emit(None)


class SettingRegistry:
    """Holds plugin schemas and user values; composes them on load."""

    def __init__(self, *, logger_name: str | None = None) -> None:
        self._plugins: Dict[str, PluginRecord] = {}
        self._transforms: Dict[str, _Transform] = {}
        self._loaded: Dict[str, Settings] = {}
        self._logger_name = logger_name
        self.plugin_changed: Signal[str] = Signal(self)

    @property
    def plugins(self) -> Mapping[str, PluginRecord]:
        return MappingProxyType(self._plugins)

    def register_plugin(
        self,
        plugin_id: str,
        schema: Mapping[str, Any],
        *,
        raw: str = "{}",
        version: str = "0.0.0",
    ) -> PluginRecord:
        if plugin_id in self._plugins:
            raise ValueError(f"Plugin '{plugin_id}' already registered")
        record = PluginRecord(
            id=plugin_id, schema=copy.deepcopy(dict(schema)), raw=raw, version=version
        )
        self._plugins[plugin_id] = record
        self.plugin_changed.emit(plugin_id)
        return record

    def transform(
        self,
        plugin_id: str,
        *,
        compose: Optional[ComposeHook] = None,
        fetch: Optional[FetchHook] = None,
    ) -> Disposable:
        if plugin_id in self._transforms:
            raise ValueError(f"Plugin '{plugin_id}' already has a transform")
        self._transforms[plugin_id] = _Transform(compose=compose, fetch=fetch)
        return DisposableDelegate(lambda: self._transforms.pop(plugin_id, None))

    async def load(self, plugin_id: str) -> Settings:
        """Fetch, compose and return the settings for ``plugin_id``."""

        with span(
            "settings::load",
            logger_name=self._logger_name,
            component="settings",
            metadata={"plugin": plugin_id},
        ):
            loaded = self._loaded.get(plugin_id)
            if loaded is not None:
                return loaded
            settings = Settings(self._compose(self._fetch(plugin_id)))
            self._loaded[plugin_id] = settings
            return settings

    def set_raw(self, plugin_id: str, raw: str) -> None:
        """Replace the user text of ``plugin_id`` and recompose if loaded.

        Malformed text raises ``SettingsLoadError`` and leaves the previous
        value in place.
        """

        record = self._require(plugin_id)
        _parse_user(plugin_id, raw)
        record.raw = raw
        self.reload(plugin_id)
        self.plugin_changed.emit(plugin_id)

    def set_user(self, plugin_id: str, values: Mapping[str, Any]) -> None:
        self.set_raw(plugin_id, json.dumps(dict(values)))

    def reload(self, plugin_id: str) -> None:
        settings = self._loaded.get(plugin_id)
        if settings is None:
            return
        settings._update(self._compose(self._fetch(plugin_id)))

    def _require(self, plugin_id: str) -> PluginRecord:
        record = self._plugins.get(plugin_id)
        if record is None:
            raise SettingsLoadError(plugin_id, "plugin is not registered")
        return record

    def _fetch(self, plugin_id: str) -> PluginRecord:
        stored = self._require(plugin_id)
        record = PluginRecord(
            id=stored.id,
            schema=copy.deepcopy(stored.schema),
            raw=stored.raw,
            version=stored.version,
        )
        transform = self._transforms.get(plugin_id)
        if transform and transform.fetch:
            record = transform.fetch(record)
        if not isinstance(record.schema, Mapping):
            raise SettingsLoadError(plugin_id, "schema is not an object")
        return record

    def _compose(self, record: PluginRecord) -> PluginRecord:
        user = _parse_user(record.id, record.raw)
        properties = record.schema.get("properties") or {}
        if not isinstance(properties, Mapping):
            raise SettingsLoadError(record.id, "schema properties are not an object")

        composite: Dict[str, Any] = {
            name: copy.deepcopy(spec.get("default"))
            for name, spec in properties.items()
            if isinstance(spec, Mapping)
        }
        composite.update(copy.deepcopy(user))
        record.data = {"composite": composite, "user": user}

        transform = self._transforms.get(record.id)
        if transform and transform.compose:
            record = transform.compose(record)
        return record


def _parse_user(plugin_id: str, raw: str) -> Dict[str, Any]:
    try:
        user = json.loads(raw or "{}")
    except json.JSONDecodeError as exc:
        raise SettingsLoadError(plugin_id, f"malformed JSON ({exc.msg})") from exc
    if not isinstance(user, dict):
        raise SettingsLoadError(plugin_id, "user settings are not an object")
    return user


__all__ = [
    "ComposeHook",
    "FetchHook",
    "PluginRecord",
    "SettingRegistry",
    "Settings",
    "SettingsLoadError",
]
