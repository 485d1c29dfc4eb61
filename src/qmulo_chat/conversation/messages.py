"""
Chat message types exchanged with the LLM server.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict


class Role(str, Enum):
    """Author of a chat message, serialized as a lowercase token."""

    user = "user"
    system = "system"
    assistant = "assistant"


@dataclass(frozen=True)
class Message:
    """A single immutable turn in the conversation."""

    role: Role
    content: str

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(Role.user, content)

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(Role.system, content)

    @classmethod
    def assistant(cls, content: str) -> "Message":
        return cls(Role.assistant, content)

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role.value, "content": self.content}
