"""Minimal synchronous signal used for change notifications."""

from __future__ import annotations

from typing import Callable, Generic, List, TypeVar

T = TypeVar("T")

Slot = Callable[[object, T], None]


class Signal(Generic[T]):
    """Subscribe-only notification stream.

    Slots run synchronously in connection order. Emission iterates over a
    snapshot, so slots may connect or disconnect while the signal fires.
    """

    def __init__(self, sender: object | None = None) -> None:
        self._sender = sender
        self._slots: List[Slot[T]] = []

    def connect(self, slot: Slot[T]) -> bool:
        if slot in self._slots:
            return False
        self._slots.append(slot)
        return True

    def disconnect(self, slot: Slot[T]) -> bool:
        try:
            self._slots.remove(slot)
        except ValueError:
            return False
        return True

    def disconnect_all(self) -> None:
        self._slots.clear()

    def emit(self, payload: T) -> None:
        for slot in tuple(self._slots):
            slot(self._sender, payload)

    def __len__(self) -> int:
        return len(self._slots)


__all__ = ["Signal", "Slot"]
