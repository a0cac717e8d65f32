"""Project a merged shortcut table into live dispatch registrations."""

from __future__ import annotations

from collections import deque
from typing import Any, Deque, Iterable, Mapping, Optional, Protocol, Sequence

from shortcut_engine.disposable import Disposable, DisposableGroup
from shortcut_engine.runtime.telemetry import span

from .validation import validate_rule


class KeyBindingTarget(Protocol):
    """Anything that can register a key binding and hand back a handle."""

    def add_key_binding(
        self,
        command: str,
        keys: Sequence[str],
        selector: str,
        args: Optional[Mapping[str, Any]] = None,
    ) -> Disposable: ...


class ShortcutInstaller:
    """Owns the group of registrations for the current merged table.

    Every ``install`` releases the held group in full before registering the
    new table, so registrations from two reconciliations never coexist. A
    call made while a pass is running (e.g. from a change notification fired
    by the dispatcher) is queued; only the newest queued table is installed
    once the running pass completes.
    """

    def __init__(
        self, commands: KeyBindingTarget, *, logger_name: str | None = None
    ) -> None:
        self._commands = commands
        self._logger_name = logger_name
        self._group: Optional[DisposableGroup] = None
        self._queue: Deque[tuple[object, ...]] = deque(maxlen=1)
        self._installing = False
        self._passes = 0

    @property
    def installed(self) -> Optional[DisposableGroup]:
        return self._group

    @property
    def passes(self) -> int:
        return self._passes

    def install(self, shortcuts: Iterable[object]) -> Optional[DisposableGroup]:
        """Replace the installed group with registrations for ``shortcuts``.

        Returns the new group, or ``None`` when a pass is already running and
        ``shortcuts`` was queued behind it; ``installed`` reflects the queued
        table once that pass returns. If the dispatcher raises, everything the
        failed pass registered is released before the error propagates and
        nothing is left installed.
        """

        self._queue.append(tuple(shortcuts))
        if self._installing:
            return None

        self._installing = True
        try:
            while self._queue:
                self._swap(self._queue.popleft())
        except Exception:
            self._queue.clear()
            raise
        finally:
            self._installing = False
        return self._group

    def dispose(self) -> None:
        self._queue.clear()
        if self._group is not None:
            self._group.dispose()
            self._group = None

    def _swap(self, shortcuts: tuple[object, ...]) -> None:
        with span(
            "shortcuts::install",
            logger_name=self._logger_name,
            component="shortcuts",
            metadata={"entries": len(shortcuts)},
        ) as handle:
            if self._group is not None:
                self._group.dispose()
                self._group = None

            group = DisposableGroup()
            skipped = 0
            try:
                for entry in shortcuts:
                    result = validate_rule(entry)
                    if result.rule is None:
                        skipped += 1
                        continue
                    rule = result.rule
                    group.add(
                        self._commands.add_key_binding(
                            rule.command, rule.keys, rule.selector, rule.args
                        )
                    )
            except Exception:
                handle.add_metadata("released", len(group))
                group.dispose()
                raise
            self._group = group
            self._passes += 1
            handle.add_metadata("installed", len(group))
            handle.add_metadata("skipped", skipped)


__all__ = ["KeyBindingTarget", "ShortcutInstaller"]
