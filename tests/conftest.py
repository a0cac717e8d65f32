from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Tuple

import pytest

from shortcut_engine.runtime import telemetry


class RecordingLogger:
    """Stand-in for ``telelog.Logger`` that keeps every structured line."""

    def __init__(self) -> None:
        self.records: List[Tuple[str, str, Dict[str, str]]] = []
        self.context: Dict[str, str] = {}
        self.profiled: List[str] = []
        self.components: List[str] = []

    def _record(self, level: str, message: str, pairs: List[Tuple[str, str]]) -> None:
        self.records.append((level, message, dict(pairs)))

    def debug_with(self, message: str, pairs: List[Tuple[str, str]]) -> None:
        self._record("debug", message, pairs)

    def info_with(self, message: str, pairs: List[Tuple[str, str]]) -> None:
        self._record("info", message, pairs)

    def warning_with(self, message: str, pairs: List[Tuple[str, str]]) -> None:
        self._record("warning", message, pairs)

    def error_with(self, message: str, pairs: List[Tuple[str, str]]) -> None:
        self._record("error", message, pairs)

    def add_context(self, key: str, value: str) -> None:
        self.context[key] = value

    def remove_context(self, key: str) -> None:
        self.context.pop(key, None)

    @contextmanager
    def profile(self, name: str) -> Iterator[None]:
        self.profiled.append(name)
        yield

    @contextmanager
    def track_component(self, name: str) -> Iterator[None]:
        self.components.append(name)
        yield

    def events(self, name: str, level: Optional[str] = None) -> List[Dict[str, str]]:
        return [
            payload
            for record_level, message, payload in self.records
            if message == f"event::{name}" and (level is None or record_level == level)
        ]


@pytest.fixture
def recording_logger(monkeypatch: pytest.MonkeyPatch) -> RecordingLogger:
    logger = RecordingLogger()

    def get_logger(name: Any = None) -> RecordingLogger:
        del name
        return logger

    monkeypatch.setattr(telemetry, "get_logger", get_logger)
    return logger
