"""
Session loop: seeds the system prompt, then dispatches prompts and commands.
"""

import logging
from enum import Enum
from typing import Optional

from qmulo_chat.commands.registry import Command as RegisteredCommand
from qmulo_chat.commands.router import CommandRouter
from qmulo_chat.console import rendering
from qmulo_chat.console.input import InputReader, Prompt, classify_input
from qmulo_chat.conversation.backend import LLMBackend
from qmulo_chat.conversation.context import ConversationContext
from qmulo_chat.conversation.messages import Role
from qmulo_chat.errors import ChatError

logger = logging.getLogger(__name__)

SYSTEM_PROMPT_REQUEST = "Enter the system prompt for this session below:"
READY_BANNER = (
    "Now you can start chatting. Further responses will be from the assistant\n--------"
)


class SessionState(str, Enum):
    awaiting_system_prompt = "awaiting_system_prompt"
    ready = "ready"


class SessionLoop:
    """Drives one chat session from the first input until the process exits."""

    def __init__(
        self,
        router: CommandRouter,
        backend: LLMBackend,
        reader: InputReader,
    ) -> None:
        self.router = router
        self.state = SessionState.awaiting_system_prompt
        self.context: Optional[ConversationContext] = None
        self._backend = backend
        self._reader = reader

    async def handle_input(self, line: str) -> None:
        """Process one captured line; ChatErrors are shown, never raised."""
        if self.context is None:
            # The first line is the system prompt, even if it looks like a command
            self.context = ConversationContext(line, self._backend)
            self.state = SessionState.ready
            logger.info("System prompt set, session ready")
            rendering.console.print(READY_BANNER)
            return

        user_input = classify_input(line)
        try:
            if isinstance(user_input, Prompt):
                await self._send_prompt(self.context, user_input.text)
            else:
                await self._run_command(self.context, user_input.text)
        except ChatError as e:
            logger.warning(f"Turn failed: {e}")
            rendering.render_error(str(e))

    async def _send_prompt(self, context: ConversationContext, text: str) -> None:
        context.append_user(text)
        try:
            reply = await context.send()
        except ChatError:
            # A failed turn leaves no trace in the conversation
            context.remove_last()
            raise
        rendering.render_message(reply)

    async def _run_command(self, context: ConversationContext, text: str) -> None:
        before = context.last_message
        await self.router.route(text, context, on_resolved=self._announce)
        after = context.last_message
        if after is not before and after.role is Role.assistant:
            rendering.render_message(after)

    @staticmethod
    def _announce(command: RegisteredCommand) -> None:
        rendering.render_notice(
            f"Executing command '{command.id}': {command.description}"
        )

    async def run(self) -> None:
        """Read and handle lines until the reader raises (EOF or Ctrl+C)."""
        rendering.console.print(SYSTEM_PROMPT_REQUEST)
        while True:
            line = await self._reader.read_line()
            await self.handle_input(line)
