"""
Commands and the read-only registry that holds them.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Protocol, runtime_checkable

from qmulo_chat.conversation.context import ConversationContext


@runtime_checkable
class CommandHandler(Protocol):
    """
    Side effect of a command.

    ``execute`` gets the conversation only for the duration of the call and
    raises a ChatError subclass on failure.
    """

    async def execute(self, context: ConversationContext) -> None: ...


@dataclass(frozen=True)
class Command:
    """A named command the user can invoke by describing it."""

    id: str
    description: str
    handler: CommandHandler

    @property
    def index_text(self) -> str:
        """Text embedded for this command at indexing time."""
        return f"{self.id}: {self.description}"

    def metadata(self) -> Dict[str, str]:
        """Serializable payload stored next to the command's vector."""
        return {"id": self.id, "description": self.description}


class CommandRegistry:
    """Immutable mapping of command id to Command, iterated in id order."""

    def __init__(self, commands: Iterable[Command] = ()) -> None:
        by_id: Dict[str, Command] = {}
        for command in commands:
            if command.id in by_id:
                raise ValueError(f"Duplicate command id: {command.id}")
            by_id[command.id] = command
        self._commands: Dict[str, Command] = dict(sorted(by_id.items()))

    def get(self, command_id: str) -> Optional[Command]:
        return self._commands.get(command_id)

    def ids(self) -> List[str]:
        return list(self._commands)

    def __contains__(self, command_id: object) -> bool:
        return command_id in self._commands

    def __iter__(self) -> Iterator[Command]:
        return iter(self._commands.values())

    def __len__(self) -> int:
        return len(self._commands)
