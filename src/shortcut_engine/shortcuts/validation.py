"""Structural validation of raw shortcut entries."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Mapping, Optional

from shortcut_engine.runtime.telemetry import record_event

from .models import ShortcutRule


class RejectReason(str, Enum):
    NOT_A_MAPPING = "not_a_mapping"
    INVALID_COMMAND = "invalid_command"
    INVALID_KEYS = "invalid_keys"
    INVALID_SELECTOR = "invalid_selector"
    INVALID_DISABLED = "invalid_disabled"
    INVALID_ARGS = "invalid_args"
    EMPTY_COMMAND = "empty_command"
    EMPTY_KEYS = "empty_keys"


@dataclass(frozen=True, slots=True)
class RuleValidation:
    """Either a usable rule or the reason the entry was rejected."""

    rule: Optional[ShortcutRule] = None
    reason: Optional[RejectReason] = None

    @property
    def ok(self) -> bool:
        return self.rule is not None

    @classmethod
    def accept(cls, rule: ShortcutRule) -> "RuleValidation":
        return cls(rule=rule)

    @classmethod
    def reject(cls, reason: RejectReason) -> "RuleValidation":
        return cls(reason=reason)


def parse_rule(value: object) -> RuleValidation:
    """Check the shape of ``value`` and build a rule from it.

    Empty ``keys`` are accepted: an empty sequence on a default is the
    "no default binding" sentinel and is handled by the reconciler.
    """

    if isinstance(value, ShortcutRule):
        return RuleValidation.accept(value)
    if not isinstance(value, Mapping):
        return RuleValidation.reject(RejectReason.NOT_A_MAPPING)

    command = value.get("command")
    if not isinstance(command, str):
        return RuleValidation.reject(RejectReason.INVALID_COMMAND)

    keys = value.get("keys")
    if not isinstance(keys, (list, tuple)) or not all(
        isinstance(key, str) for key in keys
    ):
        return RuleValidation.reject(RejectReason.INVALID_KEYS)

    selector = value.get("selector")
    if not isinstance(selector, str):
        return RuleValidation.reject(RejectReason.INVALID_SELECTOR)

    disabled = value.get("disabled", False)
    if not isinstance(disabled, bool):
        return RuleValidation.reject(RejectReason.INVALID_DISABLED)

    args = value.get("args")
    if args is not None and not isinstance(args, Mapping):
        return RuleValidation.reject(RejectReason.INVALID_ARGS)

    return RuleValidation.accept(
        ShortcutRule(
            command=command,
            keys=tuple(keys),
            selector=selector,
            disabled=disabled,
            args=args,
        )
    )


def validate_rule(value: object) -> RuleValidation:
    """Like ``parse_rule`` but also require something installable."""

    result = parse_rule(value)
    if result.rule is None:
        return result
    if not result.rule.command:
        return RuleValidation.reject(RejectReason.EMPTY_COMMAND)
    if not result.rule.keys:
        return RuleValidation.reject(RejectReason.EMPTY_KEYS)
    return result


def parse_rules(
    values: Iterable[object], *, logger_name: str | None = None
) -> list[ShortcutRule]:
    rules: list[ShortcutRule] = []
    for index, value in enumerate(values):
        result = parse_rule(value)
        if result.rule is None:
            record_event(
                "shortcuts.malformed",
                level="debug",
                data={"index": index, "reason": result.reason},
                logger_name=logger_name,
            )
            continue
        rules.append(result.rule)
    return rules


__all__ = [
    "RejectReason",
    "RuleValidation",
    "parse_rule",
    "parse_rules",
    "validate_rule",
]
