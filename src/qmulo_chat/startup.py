"""
Startup wiring: embedding model, Qdrant index, command registry and router.
"""

import logging
from typing import Optional

from qmulo_chat.commands.builtins import build_default_registry
from qmulo_chat.commands.index import initialize_command_index
from qmulo_chat.commands.router import CommandRouter
from qmulo_chat.console.input import InputReader
from qmulo_chat.errors import StartupError
from qmulo_chat.retrieval.embeddings import EmbeddingProvider, SentenceTransformerEmbedder
from qmulo_chat.retrieval.vector_index import QdrantIndex, SimilarityIndex
from qmulo_chat.runtime_config import RuntimeConfig

logger = logging.getLogger(__name__)


async def build_router(
    config: RuntimeConfig,
    reader: InputReader,
    embedder: Optional[EmbeddingProvider] = None,
    index: Optional[SimilarityIndex] = None,
) -> CommandRouter:
    """
    Build the command router and mirror the registry into the index.

    Raises:
        StartupError: if any part of the initialization fails.
    """
    if embedder is None:
        embedder = SentenceTransformerEmbedder.load(
            config.embedding_model, config.model_cache, config.embedding_dim
        )
    if index is None:
        try:
            index = QdrantIndex.from_url(config.qdrant_url, config.collection_name)
        except Exception as e:
            raise StartupError(f"Failed to build Qdrant client: {e}") from e

    registry = build_default_registry(reader)
    await initialize_command_index(registry, embedder, index)
    logger.info(f"Command router ready with {len(registry)} commands")
    return CommandRouter(registry, embedder, index)
