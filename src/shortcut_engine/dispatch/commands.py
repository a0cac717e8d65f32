"""In-memory command registry that owns live key-binding registrations."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterator, Mapping, Optional, Sequence

from shortcut_engine.disposable import Disposable, DisposableDelegate
from shortcut_engine.runtime.telemetry import record_event, span


@dataclass(frozen=True, slots=True)
class Command:
    """Executable action addressed by ``id``."""

    id: str
    handler: Callable[..., object]
    label: str = ""
    metadata: Mapping[str, object] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Command id cannot be empty")
        if not callable(self.handler):
            raise TypeError("handler must be callable")
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    def __call__(self, args: Mapping[str, Any]) -> object:
        return self.handler(args)


@dataclass(frozen=True, slots=True, eq=False)
class KeyBinding:
    """A live chord sequence bound to a command within a selector scope.

    Compared by identity: the same rule installed twice yields two bindings.
    """

    command: str
    keys: tuple[str, ...]
    selector: str
    args: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.keys:
            raise ValueError("KeyBinding requires at least one chord")
        object.__setattr__(self, "keys", tuple(self.keys))
        object.__setattr__(self, "args", MappingProxyType(dict(self.args)))


class CommandRegistry:
    """Registers commands and key bindings; dispatch lookups are exact-match.

    Bindings for commands that are not (yet) registered are accepted and only
    fail when executed, so shortcuts may be installed before the commands
    they target.
    """

    def __init__(self, *, logger_name: str | None = None) -> None:
        self._commands: Dict[str, Command] = {}
        self._bindings: list[KeyBinding] = []
        self._logger_name = logger_name
        self._revision = 0

    def revision(self) -> int:
        return self._revision

    @property
    def key_bindings(self) -> tuple[KeyBinding, ...]:
        return tuple(self._bindings)

    def has_command(self, command_id: str) -> bool:
        return command_id in self._commands

    def get_command(self, command_id: str) -> Command:
        try:
            return self._commands[command_id]
        except KeyError as exc:
            raise KeyError(f"Command '{command_id}' is not registered") from exc

    def add_command(self, command: Command, *, replace: bool = False) -> Disposable:
        with span(
            "dispatch::add_command",
            logger_name=self._logger_name,
            component="dispatch",
            metadata={"command": command.id},
        ):
            if not replace and command.id in self._commands:
                raise ValueError(f"Command '{command.id}' already registered")
            self._commands[command.id] = command
            self._touch()

        def remove() -> None:
            if self._commands.get(command.id) is command:
                del self._commands[command.id]
                self._touch()

        return DisposableDelegate(remove)

    def add_key_binding(
        self,
        command: str,
        keys: Sequence[str],
        selector: str,
        args: Optional[Mapping[str, Any]] = None,
    ) -> Disposable:
        with span(
            "dispatch::add_key_binding",
            logger_name=self._logger_name,
            component="dispatch",
            metadata={"command": command, "selector": selector},
        ) as handle:
            binding = KeyBinding(
                command=command, keys=tuple(keys), selector=selector, args=args or {}
            )
            if command not in self._commands:
                handle.add_metadata("unknown_command", command)
                record_event(
                    "dispatch.unknown_command",
                    level="debug",
                    data={"command": command},
                    logger_name=self._logger_name,
                )
            self._bindings.append(binding)
            self._touch()

        return DisposableDelegate(lambda: self._remove_binding(binding))

    def iter_key_bindings(self, command: Optional[str] = None) -> Iterator[KeyBinding]:
        for binding in self._bindings:
            if command is None or binding.command == command:
                yield binding

    def find_key_binding(
        self, keys: Sequence[str], selector: str
    ) -> Optional[KeyBinding]:
        """Return the first registered binding for exactly ``keys`` on ``selector``."""

        wanted = tuple(keys)
        for binding in self._bindings:
            if binding.keys == wanted and binding.selector == selector:
                return binding
        return None

    def execute(
        self, command_id: str, args: Optional[Mapping[str, Any]] = None
    ) -> object:
        command = self.get_command(command_id)
        with span(
            "dispatch::execute",
            logger_name=self._logger_name,
            component="dispatch",
            metadata={"command": command_id},
        ):
            return command(MappingProxyType(dict(args or {})))

    def process_keys(self, keys: Sequence[str], selector: str) -> object:
        """Execute the command bound to ``keys`` on ``selector``, if any."""

        binding = self.find_key_binding(keys, selector)
        if binding is None:
            return None
        return self.execute(binding.command, binding.args)

    def _remove_binding(self, binding: KeyBinding) -> None:
        for index, existing in enumerate(self._bindings):
            if existing is binding:
                del self._bindings[index]
                self._touch()
                return

    def _touch(self) -> None:
        self._revision += 1


__all__ = ["Command", "CommandRegistry", "KeyBinding"]
