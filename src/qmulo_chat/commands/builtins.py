"""
Built-in commands available in every session.
"""

import logging

from qmulo_chat.commands.registry import Command, CommandRegistry
from qmulo_chat.console.input import InputReader, Prompt, classify_input
from qmulo_chat.conversation.context import ConversationContext
from qmulo_chat.errors import NestedCommandError

logger = logging.getLogger(__name__)


async def read_plain_line(reader: InputReader, message: str) -> str:
    """
    Read one more line of plain text for a command.

    Raises:
        NestedCommandError: if the line is itself command text.
    """
    user_input = classify_input(await reader.read_line(message))
    if not isinstance(user_input, Prompt):
        raise NestedCommandError()
    return user_input.text


class RetryHandler:
    """Drop the last assistant reply (if any) and ask the server again."""

    async def execute(self, context: ConversationContext) -> None:
        # Hints added after the reply stay in place and go out with the resend
        removed = context.remove_last_reply()
        try:
            await context.send()
        except Exception:
            if removed is not None:
                context.restore_reply(*removed)
            raise


class HintHandler:
    """Append an extra system message read from the user."""

    def __init__(self, reader: InputReader) -> None:
        self._reader = reader

    async def execute(self, context: ConversationContext) -> None:
        hint = await read_plain_line(self._reader, "// Enter your hint below:")
        context.append_system(hint)


class SystemPromptHandler:
    """Overwrite the system prompt with one read from the user."""

    def __init__(self, reader: InputReader) -> None:
        self._reader = reader

    async def execute(self, context: ConversationContext) -> None:
        prompt = await read_plain_line(self._reader, "// Enter the new system prompt below:")
        context.replace_system_prompt(prompt)


def build_default_registry(reader: InputReader) -> CommandRegistry:
    """Registry with the retry, hint and system commands."""
    return CommandRegistry(
        [
            Command(
                id="retry",
                description=(
                    "delete the last assistant response and regenerate it again, "
                    "or retry the last response"
                ),
                handler=RetryHandler(),
            ),
            Command(
                id="hint",
                description=(
                    "add a message in the system role, further clarifying how the "
                    "assistant should behave, or providing a suggestion for future "
                    "responses."
                ),
                handler=HintHandler(reader),
            ),
            Command(
                id="system",
                description="Overwrite the system prompt with a new one.",
                handler=SystemPromptHandler(reader),
            ),
        ]
    )
