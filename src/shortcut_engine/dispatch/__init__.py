"""Reference dispatch registry that live shortcuts are installed into."""

from .commands import Command, CommandRegistry, KeyBinding

__all__ = ["Command", "CommandRegistry", "KeyBinding"]
