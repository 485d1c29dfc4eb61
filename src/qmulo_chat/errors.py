"""
Error taxonomy for the chat client.

Only StartupError is fatal; everything else is reported to the user and the
session carries on with the next input.
"""


class ChatError(Exception):
    """Base class for all errors raised by the chat client."""


class StartupError(ChatError):
    """Raised when one-time initialization fails and the session cannot start."""


class NetworkError(ChatError):
    """Raised when the LLM backend is unreachable or returns an unusable response."""


class ContextError(ChatError):
    """Raised when a conversation mutation would break the context invariants."""


class RouterError(ChatError):
    """Raised when command text cannot be resolved to a registered command."""


class EmptyRegistryError(RouterError):
    """Raised when routing is attempted with no commands registered."""

    def __init__(self) -> None:
        super().__init__("No commands are registered")


class CommandNotFoundError(RouterError):
    """Raised when the nearest index entry does not resolve in the registry."""

    def __init__(self, text: str) -> None:
        self.text = text
        super().__init__(f"Command not found: {text}")


class InputError(ChatError):
    """Raised when user input is not acceptable where it was supplied."""


class NestedCommandError(InputError):
    """Raised when a command handler reads a line and gets command text instead."""

    def __init__(self) -> None:
        super().__init__("nested command input not permitted")
