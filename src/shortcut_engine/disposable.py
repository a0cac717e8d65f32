"""Disposable handles and the group the installer swaps as one unit."""

from __future__ import annotations

from typing import Callable, Iterator, List, Optional, Protocol, runtime_checkable


@runtime_checkable
class Disposable(Protocol):
    """Anything holding a resource that can be released exactly once."""

    @property
    def is_disposed(self) -> bool: ...

    def dispose(self) -> None: ...


class DisposableDelegate:
    """Runs ``callback`` the first time ``dispose`` is called."""

    def __init__(self, callback: Callable[[], None]) -> None:
        self._callback: Optional[Callable[[], None]] = callback

    @property
    def is_disposed(self) -> bool:
        return self._callback is None

    def dispose(self) -> None:
        if self._callback is None:
            return
        callback = self._callback
        self._callback = None
        callback()


class DisposableGroup:
    """Ordered collection of disposables released together."""

    def __init__(self) -> None:
        self._items: List[Disposable] = []
        self._disposed = False

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def add(self, item: Disposable) -> None:
        if self._disposed:
            raise RuntimeError("Cannot add to a disposed group")
        if item not in self._items:
            self._items.append(item)

    def remove(self, item: Disposable) -> None:
        if item in self._items:
            self._items.remove(item)

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        items, self._items = self._items, []
        for item in items:
            item.dispose()

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Disposable]:
        return iter(tuple(self._items))

    def __contains__(self, item: object) -> bool:
        return item in self._items


__all__ = ["Disposable", "DisposableDelegate", "DisposableGroup"]
