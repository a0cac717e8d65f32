"""Environment-driven configuration for the shortcuts extension."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

ENV_PREFIX = "SHORTCUT_ENGINE_"

DEFAULT_PLUGIN_ID = "shortcut_engine.shortcuts"
DEFAULT_EXTENSION_KEY = "shortcut_engine.shortcuts"
DEFAULT_LOGGER_NAME = "shortcut_engine.shortcuts"


@dataclass(frozen=True, slots=True)
class ShortcutsConfig:
    """Identifiers the extension uses when talking to the settings store."""

    plugin_id: str = DEFAULT_PLUGIN_ID
    extension_key: str = DEFAULT_EXTENSION_KEY
    logger_name: str = DEFAULT_LOGGER_NAME

    def __post_init__(self) -> None:
        if not self.plugin_id:
            raise ValueError("plugin_id cannot be empty")
        if not self.extension_key:
            raise ValueError("extension_key cannot be empty")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ShortcutsConfig":
        env = os.environ if environ is None else environ
        return cls(
            plugin_id=env.get(f"{ENV_PREFIX}PLUGIN_ID") or DEFAULT_PLUGIN_ID,
            extension_key=env.get(f"{ENV_PREFIX}EXTENSION_KEY")
            or DEFAULT_EXTENSION_KEY,
            logger_name=env.get(f"{ENV_PREFIX}LOGGER") or DEFAULT_LOGGER_NAME,
        )


__all__ = ["ShortcutsConfig"]
