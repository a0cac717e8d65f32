"""Dataclasses describing shortcut rules and reconciliation outcomes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, NamedTuple, Optional, Sequence


class Tier(str, Enum):
    """Which input list a rule came from."""

    DEFAULT = "default"
    USER = "user"


class SlotClaim(Enum):
    """Occupancy state of a ``(keys, selector)`` slot during a merge."""

    UNCLAIMED = "unclaimed"
    CLAIMED_BY_USER = "user"
    CLAIMED_BY_DEFAULT = "default"


class CollisionKey(NamedTuple):
    """Identity of a binding slot; two rules collide iff these are equal."""

    keys: tuple[str, ...]
    selector: str

    @property
    def is_empty(self) -> bool:
        return not self.keys

    def __str__(self) -> str:
        return f"{' '.join(self.keys)!r} @ {self.selector!r}"


@dataclass(frozen=True, slots=True)
class ShortcutRule:
    """A single declarative key binding."""

    command: str
    keys: tuple[str, ...]
    selector: str
    disabled: bool = False
    args: Optional[Mapping[str, Any]] = None

    def __post_init__(self) -> None:
        if isinstance(self.keys, str):
            raise TypeError("keys must be a sequence of chords, not a string")
        object.__setattr__(self, "keys", tuple(self.keys))
        if self.args is not None:
            object.__setattr__(self, "args", MappingProxyType(dict(self.args)))

    @property
    def collision_key(self) -> CollisionKey:
        return CollisionKey(self.keys, self.selector)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "command": self.command,
            "keys": list(self.keys),
            "selector": self.selector,
        }
        if self.disabled:
            data["disabled"] = True
        if self.args is not None:
            data["args"] = dict(self.args)
        return data

    @classmethod
    def create(
        cls,
        command: str,
        keys: Sequence[str],
        selector: str,
        *,
        disabled: bool = False,
        args: Optional[Mapping[str, Any]] = None,
    ) -> "ShortcutRule":
        return cls(
            command=command,
            keys=tuple(keys),
            selector=selector,
            disabled=disabled,
            args=args,
        )


@dataclass(frozen=True, slots=True)
class Collision:
    """A rule dropped because its slot was already taken."""

    rule: ShortcutRule
    tier: Tier
    claimed_by: SlotClaim
    winner: Optional[ShortcutRule] = None

    @property
    def key(self) -> CollisionKey:
        return self.rule.collision_key

    def describe(self) -> str:
        holder = f" '{self.winner.command}'" if self.winner else ""
        return (
            f"{self.tier.value} shortcut '{self.rule.command}' on {self.key} "
            f"skipped: slot already claimed by {self.claimed_by.value} "
            f"shortcut{holder}"
        )


@dataclass(frozen=True, slots=True)
class MergeResult:
    """Merged rule table plus the collisions found while building it."""

    rules: tuple[ShortcutRule, ...] = ()
    collisions: tuple[Collision, ...] = ()

    def __len__(self) -> int:
        return len(self.rules)


__all__ = [
    "Tier",
    "SlotClaim",
    "CollisionKey",
    "ShortcutRule",
    "Collision",
    "MergeResult",
]
