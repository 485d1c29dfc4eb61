"""
Ordered message log for a single chat session.

The first message is always the system prompt and can be replaced but never
removed. Everything else is appended in chronological order and sent to the
LLM server verbatim.
"""

import logging
from typing import List, Optional, Tuple

from qmulo_chat.conversation.backend import LLMBackend
from qmulo_chat.conversation.messages import Message, Role
from qmulo_chat.errors import ContextError

logger = logging.getLogger(__name__)


class ConversationContext:
    """Conversation history plus the backend it is sent to."""

    def __init__(self, system_prompt: str, backend: LLMBackend) -> None:
        self._messages: List[Message] = [Message.system(system_prompt)]
        self._backend = backend

    @property
    def messages(self) -> Tuple[Message, ...]:
        return tuple(self._messages)

    @property
    def system_prompt(self) -> str:
        return self._messages[0].content

    @property
    def last_message(self) -> Message:
        return self._messages[-1]

    def __len__(self) -> int:
        return len(self._messages)

    def append_user(self, text: str) -> None:
        self._messages.append(Message.user(text))

    def append_assistant(self, text: str) -> None:
        self._messages.append(Message.assistant(text))

    def append_system(self, text: str) -> None:
        self._messages.append(Message.system(text))

    def replace_system_prompt(self, text: str) -> None:
        """Swap the leading system message for one with new content."""
        self._messages[0] = Message.system(text)

    def remove_last(self) -> Message:
        """
        Remove and return the newest message.

        Raises:
            ContextError: if only the system prompt is left.
        """
        if len(self._messages) <= 1:
            raise ContextError("Cannot remove the system prompt from the conversation")
        return self._messages.pop()

    def remove_last_reply(self) -> Optional[Tuple[int, Message]]:
        """
        Remove the newest assistant message wherever it sits.

        Returns its former position and the message, or None when the
        conversation has no assistant reply yet.
        """
        for position in range(len(self._messages) - 1, 0, -1):
            if self._messages[position].role is Role.assistant:
                return position, self._messages.pop(position)
        return None

    def restore_reply(self, position: int, message: Message) -> None:
        """Put back a reply taken out by ``remove_last_reply``."""
        if position < 1 or position > len(self._messages):
            raise ContextError(f"Cannot restore a reply at position {position}")
        self._messages.insert(position, message)

    async def send(self) -> Message:
        """
        Send the whole conversation and append the assistant's reply.

        If the backend raises, the conversation is left exactly as it was.
        """
        snapshot = tuple(self._messages)
        response = await self._backend.generate(snapshot)
        reply = Message(Role.assistant, response.output)
        self._messages.append(reply)
        return reply
