"""Structured logging and profiling spans on top of telelog.

``configure(...)`` -- pick the telelog configuration (env, preset or explicit)
``get_logger(name)`` -- fetch (and cache) a configured logger
``record_event(name, ...)`` -- emit an ``event::<name>`` line (collisions, load failures)
``span(name, ...)`` -- profile a merge/install/load pass with attached metadata
"""

from __future__ import annotations

import os
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Mapping, MutableMapping, Optional, cast

import telelog  # type: ignore[import]

tl = cast(Any, telelog)

ENV_PREFIX = "SHORTCUT_ENGINE_"
DEFAULT_LOGGER_NAME = "shortcut_engine"
LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_LOGGER_CACHE: MutableMapping[str, Any] = {}
_ACTIVE_CONFIG: Optional[Any] = None


def _flag(raw: Optional[str], default: bool) -> bool:
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True, slots=True)
class LogSettings:
    """Plain description of a telelog configuration."""

    level: str = "INFO"
    console: bool = True
    colored: bool = True
    json: bool = False
    log_file: str = ""
    buffer_size: Optional[int] = None

    def __post_init__(self) -> None:
        level = self.level.upper()
        if level not in LEVELS:
            raise ValueError(f"Unknown log level '{self.level}'.")
        object.__setattr__(self, "level", level)
        if self.buffer_size is not None and self.buffer_size <= 0:
            raise ValueError("buffer_size must be positive")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "LogSettings":
        env = os.environ if environ is None else environ

        def get(name: str) -> Optional[str]:
            return env.get(f"{ENV_PREFIX}{name}")

        buffer_size: Optional[int] = None
        if _flag(get("LOG_BUFFERED"), False):
            raw_size = get("LOG_BUFFER_SIZE") or "2048"
            try:
                buffer_size = int(raw_size)
            except ValueError as exc:
                raise ValueError(f"Invalid LOG_BUFFER_SIZE '{raw_size}'") from exc

        return cls(
            level=get("LOG_LEVEL") or "INFO",
            console=not _flag(get("DISABLE_CONSOLE"), False),
            colored=not _flag(get("NO_COLOR"), False),
            json=_flag(get("LOG_JSON"), False),
            log_file=get("LOG_FILE") or "",
            buffer_size=buffer_size,
        )

    @classmethod
    def preset(cls, name: str) -> "LogSettings":
        try:
            return PRESETS[name.lower()]
        except KeyError as exc:
            raise ValueError(f"Unknown preset '{name}'.") from exc

    def build(self) -> Any:
        config = tl.Config()
        config.with_min_level(self.level)
        config.with_console_output(self.console)
        if self.console:
            config.with_colored_output(self.colored)
        config.with_json_format(self.json)
        if self.log_file:
            config.with_file_output(self.log_file)
        if self.buffer_size is not None:
            config.with_buffering(True)
            config.with_buffer_size(self.buffer_size)
        return config


PRESETS: Dict[str, LogSettings] = {
    "development": LogSettings(level="DEBUG"),
    "production": LogSettings(
        level="WARNING",
        console=False,
        log_file="shortcut_engine.log",
        buffer_size=2048,
    ),
    "quiet": LogSettings(level="ERROR", colored=False),
}


def configure(
    *,
    config: Optional[Any] = None,
    preset: Optional[str] = None,
    settings: Optional[LogSettings] = None,
) -> None:
    """Replace the active telelog configuration and drop cached loggers.

    At most one of ``config`` (a ``telelog.Config``), ``preset`` (a key of
    ``PRESETS``) or ``settings`` may be given; with none, the
    ``SHORTCUT_ENGINE_*`` environment is read.
    """

    global _ACTIVE_CONFIG
    if sum(option is not None for option in (config, preset, settings)) > 1:
        raise ValueError("Provide only one of `config`, `preset` or `settings`.")

    if config is None:
        if preset is not None:
            settings = LogSettings.preset(preset)
        elif settings is None:
            settings = LogSettings.from_env()
        config = settings.build()

    _ACTIVE_CONFIG = config
    _LOGGER_CACHE.clear()


def get_logger(name: Optional[str] = None) -> Any:
    """Return a cached ``telelog.Logger``, configuring from env on first use."""

    if _ACTIVE_CONFIG is None:
        configure()
    logger_name = name or os.getenv(f"{ENV_PREFIX}LOGGER") or DEFAULT_LOGGER_NAME
    if logger_name not in _LOGGER_CACHE:
        _LOGGER_CACHE[logger_name] = tl.Logger.with_config(logger_name, _ACTIVE_CONFIG)
    return _LOGGER_CACHE[logger_name]


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list, tuple, set)):
        return repr(value)
    return str(getattr(value, "value", value))


def _emit(log: Any, level: str, message: str, payload: Mapping[str, Any]) -> None:
    name = level.lower()
    pairs = [(str(key), _stringify(value)) for key, value in payload.items()]
    structured = getattr(log, f"{name}_with", None)
    if structured is not None:
        structured(message, pairs)
        return
    plain = getattr(log, name, None)
    if plain is None:
        raise ValueError(f"Unsupported log level '{level}'.")
    plain(f"{message} {dict(pairs)}")


def record_event(
    name: str,
    *,
    level: str = "info",
    data: Optional[Mapping[str, Any]] = None,
    logger_name: Optional[str] = None,
) -> None:
    _emit(
        get_logger(logger_name),
        level,
        f"event::{name}",
        {"event": name, **(data or {})},
    )


@dataclass
class SpanHandle:
    """Lets the body of a ``span`` attach metadata or report an outcome."""

    logger: Any
    span_name: str
    component_name: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)

    def add_metadata(self, key: str, value: Any) -> None:
        self.metadata[key] = _stringify(value)

    def _payload(self, **extra: Any) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"span": self.span_name, **self.metadata}
        if self.component_name:
            payload["component"] = self.component_name
        payload.update(extra)
        return payload

    def fail(self, reason: str) -> None:
        _emit(self.logger, "error", "span::fail", self._payload(reason=reason))

    def summary(self) -> None:
        _emit(self.logger, "debug", "span::summary", self._payload())


@contextmanager
def span(
    name: str,
    *,
    logger_name: Optional[str] = None,
    component: Optional[str | bool] = None,
    metadata: Optional[Mapping[str, Any]] = None,
) -> Iterator[SpanHandle]:
    """Profile the block under ``name``; ``metadata`` is logger context meanwhile.

    ``component=True`` tracks the block as a component named ``name``; a
    string names the component explicitly. An exception escaping the block
    is logged through ``SpanHandle.fail`` and re-raised.
    """

    log = get_logger(logger_name)
    component_name = name if component is True else component or None
    handle = SpanHandle(
        logger=log,
        span_name=name,
        component_name=cast(Optional[str], component_name),
        metadata={key: _stringify(value) for key, value in (metadata or {}).items()},
    )

    with ExitStack() as stack:
        for key, value in handle.metadata.items():
            log.add_context(key, value)
            stack.callback(log.remove_context, key)
        if handle.component_name:
            stack.enter_context(log.track_component(handle.component_name))
        stack.enter_context(log.profile(name))
        try:
            yield handle
        except Exception as exc:
            handle.fail(str(exc))
            raise


__all__ = [
    "LogSettings",
    "PRESETS",
    "SpanHandle",
    "configure",
    "get_logger",
    "record_event",
    "span",
]
