"""Command registry, index mirroring and semantic routing."""

from .builtins import build_default_registry
from .index import initialize_command_index
from .registry import Command, CommandHandler, CommandRegistry
from .router import CommandRouter

__all__ = [
    "Command",
    "CommandHandler",
    "CommandRegistry",
    "CommandRouter",
    "build_default_registry",
    "initialize_command_index",
]
