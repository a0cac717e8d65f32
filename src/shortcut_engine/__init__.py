"""Reconcile default and user key-binding rules into live dispatch bindings."""

__all__ = [
    "config",
    "dispatch",
    "disposable",
    "runtime",
    "settings",
    "shortcuts",
    "signals",
]

__version__ = "0.1.0"
