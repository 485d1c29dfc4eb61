"""Conversation state and the LLM backend it is sent to."""

from .backend import HttpLLMBackend, LLMBackend, ServerResponse
from .context import ConversationContext
from .messages import Message, Role

__all__ = [
    "ConversationContext",
    "HttpLLMBackend",
    "LLMBackend",
    "Message",
    "Role",
    "ServerResponse",
]
