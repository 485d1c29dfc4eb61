"""
Classification of raw input lines into prompts and command text.
"""

from dataclasses import dataclass
from typing import Protocol, Union, runtime_checkable

COMMAND_SENTINEL = "/"


@dataclass(frozen=True)
class Prompt:
    """Plain conversational text for the assistant."""

    text: str


@dataclass(frozen=True)
class Command:
    """Free-form command text with the leading sentinel removed."""

    text: str


UserInput = Union[Prompt, Command]


def classify_input(line: str) -> UserInput:
    """Return Command for lines starting with the sentinel, Prompt otherwise."""
    if line.startswith(COMMAND_SENTINEL):
        return Command(line[len(COMMAND_SENTINEL) :])
    return Prompt(line)


@runtime_checkable
class InputReader(Protocol):
    """Source of raw input lines, e.g. the interactive prompt."""

    async def read_line(self, message: str = "") -> str: ...
