"""Shortcut reconciliation and installation."""

from .models import Collision, CollisionKey, MergeResult, ShortcutRule, SlotClaim, Tier
from .validation import RejectReason, RuleValidation, parse_rule, parse_rules, validate_rule
from .reconciler import merge, reconcile
from .installer import KeyBindingTarget, ShortcutInstaller
from .extension import SHORTCUTS_SCHEMA, ShortcutsExtension

__all__ = [
    "Collision",
    "CollisionKey",
    "MergeResult",
    "ShortcutRule",
    "SlotClaim",
    "Tier",
    "RejectReason",
    "RuleValidation",
    "parse_rule",
    "parse_rules",
    "validate_rule",
    "merge",
    "reconcile",
    "KeyBindingTarget",
    "ShortcutInstaller",
    "SHORTCUTS_SCHEMA",
    "ShortcutsExtension",
]
