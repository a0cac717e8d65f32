"""Reconcile default and user shortcut lists into one collision-free table."""

from __future__ import annotations

from typing import Callable, Dict, Iterable, Optional

from shortcut_engine.runtime.telemetry import record_event, span

from .models import (
    Collision,
    CollisionKey,
    MergeResult,
    ShortcutRule,
    SlotClaim,
    Tier,
)

CollisionCallback = Callable[[Collision], None]


class _Occupancy:
    """Tracks which tier, and which rule, claimed each ``(keys, selector)`` slot."""

    def __init__(self) -> None:
        self._slots: Dict[CollisionKey, tuple[SlotClaim, ShortcutRule]] = {}

    def state(self, key: CollisionKey) -> SlotClaim:
        entry = self._slots.get(key)
        return SlotClaim.UNCLAIMED if entry is None else entry[0]

    def holder(self, key: CollisionKey) -> Optional[ShortcutRule]:
        entry = self._slots.get(key)
        return None if entry is None else entry[1]

    def claim(self, rule: ShortcutRule, claim: SlotClaim) -> None:
        self._slots[rule.collision_key] = (claim, rule)


def reconcile(
    defaults: Iterable[ShortcutRule],
    user: Iterable[ShortcutRule],
    *,
    on_collision: Optional[CollisionCallback] = None,
    logger_name: str | None = None,
) -> MergeResult:
    """Merge ``user`` over ``defaults`` and report every collision.

    User rules claim their slots first, in input order; a disabled user rule
    claims its slot too but is left out of the result. Defaults are sorted by
    command before being checked against the same slots, so the winner among
    colliding defaults does not depend on contribution order. Only collisions
    within a tier are reported; a default shadowed by a user rule is an
    expected override.
    """

    user_rules = tuple(user)
    default_rules = sorted(defaults, key=lambda rule: rule.command)
    occupancy = _Occupancy()
    collisions: list[Collision] = []

    def report(rule: ShortcutRule, tier: Tier, claimed_by: SlotClaim) -> None:
        winner = occupancy.holder(rule.collision_key)
        collision = Collision(
            rule=rule, tier=tier, claimed_by=claimed_by, winner=winner
        )
        collisions.append(collision)
        record_event(
            "shortcuts.collision",
            level="warning",
            data={
                "command": rule.command,
                "keys": list(rule.keys),
                "selector": rule.selector,
                "tier": tier.value,
                "claimed_by": claimed_by.value,
                "winner": winner.command if winner else "",
            },
            logger_name=logger_name,
        )
        if on_collision is not None:
            on_collision(collision)

    with span(
        "shortcuts::merge",
        logger_name=logger_name,
        component="shortcuts",
        metadata={"defaults": len(default_rules), "user": len(user_rules)},
    ) as handle:
        kept_user: list[ShortcutRule] = []
        for rule in user_rules:
            state = occupancy.state(rule.collision_key)
            if state is not SlotClaim.UNCLAIMED:
                report(rule, Tier.USER, state)
                continue
            occupancy.claim(rule, SlotClaim.CLAIMED_BY_USER)
            kept_user.append(rule)

        kept_defaults: list[ShortcutRule] = []
        for rule in default_rules:
            if rule.disabled:
                continue
            key = rule.collision_key
            if key.is_empty:
                continue
            state = occupancy.state(key)
            if state is SlotClaim.CLAIMED_BY_DEFAULT:
                report(rule, Tier.DEFAULT, state)
                continue
            if state is SlotClaim.CLAIMED_BY_USER:
                continue
            occupancy.claim(rule, SlotClaim.CLAIMED_BY_DEFAULT)
            kept_defaults.append(rule)

        merged = tuple(rule for rule in kept_user if not rule.disabled)
        merged += tuple(kept_defaults)
        handle.add_metadata("merged", len(merged))
        handle.add_metadata("collisions", len(collisions))
        handle.summary()

    return MergeResult(rules=merged, collisions=tuple(collisions))


def merge(
    defaults: Iterable[ShortcutRule],
    user: Iterable[ShortcutRule],
    *,
    on_collision: Optional[CollisionCallback] = None,
    logger_name: str | None = None,
) -> list[ShortcutRule]:
    """Return the merged table: surviving user rules, then surviving defaults."""

    result = reconcile(
        defaults, user, on_collision=on_collision, logger_name=logger_name
    )
    return list(result.rules)


__all__ = ["CollisionCallback", "merge", "reconcile"]
