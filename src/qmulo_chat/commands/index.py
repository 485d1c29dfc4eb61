"""
One-time mirroring of the command registry into the similarity index.
"""

import logging

from qdrant_client.models import Distance

from qmulo_chat.commands.registry import CommandRegistry
from qmulo_chat.errors import StartupError
from qmulo_chat.retrieval.embeddings import EmbeddingProvider
from qmulo_chat.retrieval.vector_index import IndexPoint, SimilarityIndex

logger = logging.getLogger(__name__)

COMMAND_DISTANCE = Distance.DOT


async def initialize_command_index(
    registry: CommandRegistry,
    embedder: EmbeddingProvider,
    index: SimilarityIndex,
) -> None:
    """
    Make sure every registered command has a vector in the index.

    Point ids are 1-based positions in registry order (0 is avoided). Safe to
    run against a collection populated by an earlier run.

    Raises:
        StartupError: if the collection, the embeddings or the upsert fail.
    """
    try:
        await index.ensure_collection(embedder.dim, COMMAND_DISTANCE)
    except Exception as e:
        raise StartupError(f"Failed to create command collection: {e}") from e

    commands = list(registry)
    if not commands:
        logger.warning("No commands registered, nothing to index")
        return

    texts = [command.index_text for command in commands]
    try:
        embeddings = await embedder.embed(texts)
    except Exception as e:
        raise StartupError(f"Failed to embed command descriptions: {e}") from e
    if len(embeddings) != len(commands):
        raise StartupError(
            f"Embedding provider returned {len(embeddings)} vectors for {len(commands)} commands"
        )

    points = [
        IndexPoint(id=position + 1, vector=vector, payload=command.metadata())
        for position, (command, vector) in enumerate(zip(commands, embeddings))
    ]
    try:
        await index.upsert(points)
    except Exception as e:
        raise StartupError(f"Failed to upsert command embeddings: {e}") from e

    logger.info(f"Indexed {len(points)} commands: {', '.join(registry.ids())}")
