"""
Resolve free-form command text to the closest registered command and run it.
"""

import logging
from typing import Callable, Optional

from qmulo_chat.commands.registry import Command, CommandRegistry
from qmulo_chat.conversation.context import ConversationContext
from qmulo_chat.errors import CommandNotFoundError, EmptyRegistryError, RouterError
from qmulo_chat.retrieval.embeddings import EmbeddingProvider
from qmulo_chat.retrieval.vector_index import SimilarityIndex

logger = logging.getLogger(__name__)

# Query text is framed differently from the "<id>: <description>" index text
QUERY_PREFIX = "query: "


def query_text(raw_text: str) -> str:
    return f"{QUERY_PREFIX}{raw_text}"


class CommandRouter:
    """Semantic command dispatch over a registry mirrored into a vector index."""

    def __init__(
        self,
        registry: CommandRegistry,
        embedder: EmbeddingProvider,
        index: SimilarityIndex,
    ) -> None:
        self.registry = registry
        self._embedder = embedder
        self._index = index

    async def resolve(self, raw_text: str) -> Command:
        """Find the registered command whose description is nearest to ``raw_text``."""
        if not len(self.registry):
            raise EmptyRegistryError()

        try:
            embeddings = await self._embedder.embed([query_text(raw_text)])
        except Exception as e:
            raise RouterError(f"Failed to embed command text: {e}") from e
        if not embeddings:
            raise RouterError("Embedding provider returned no vector for command text")

        try:
            hits = await self._index.query(embeddings[0], top_k=1)
        except Exception as e:
            raise RouterError(f"Failed to query command index: {e}") from e
        if not hits:
            raise CommandNotFoundError(raw_text)

        best = hits[0]
        command_id = best.payload.get("id")
        command = self.registry.get(command_id) if isinstance(command_id, str) else None
        if command is None:
            logger.warning(
                f"Index returned {command_id!r} for {raw_text!r}, which is not registered"
            )
            raise CommandNotFoundError(raw_text)

        logger.info(f"Resolved {raw_text!r} to {command.id} (score {best.score:.3f})")
        return command

    async def route(
        self,
        raw_text: str,
        context: ConversationContext,
        on_resolved: Optional[Callable[[Command], None]] = None,
    ) -> Command:
        """
        Resolve ``raw_text`` and execute the command against ``context``.

        ``on_resolved`` is called with the command just before it runs.
        Returns the executed command. Handler failures propagate unchanged.
        """
        command = await self.resolve(raw_text)
        if on_resolved is not None:
            on_resolved(command)
        await command.handler.execute(context)
        return command
