"""EmbeddingProvider -- local sentence-transformers wrapper.

The model is loaded eagerly by ``SentenceTransformerEmbedder.load()`` so a
missing or broken model surfaces at startup rather than on the first command.
Encoding is CPU bound and runs in a worker thread.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from qmulo_chat.errors import StartupError

logger = logging.getLogger(__name__)


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Turns a batch of texts into vectors, one per text, in input order."""

    dim: int

    async def embed(self, texts: list[str]) -> list[list[float]]: ...


def _load_model(model_name: str, cache_dir: Path) -> Any:
    from sentence_transformers import SentenceTransformer

    return SentenceTransformer(model_name, cache_folder=str(cache_dir))


class SentenceTransformerEmbedder(EmbeddingProvider):
    """Wraps sentence-transformers for local embedding generation."""

    def __init__(self, model: Any, dim: int) -> None:
        self._model = model
        self.dim = dim

    @classmethod
    def load(
        cls, model_name: str, cache_dir: Path, dim: int
    ) -> "SentenceTransformerEmbedder":
        """Load ``model_name`` from (or download it into) ``cache_dir``.

        Raises:
            StartupError: if the model cannot be loaded or has the wrong dimension.
        """
        logger.info(f"Loading embedding model {model_name} from {cache_dir}")
        try:
            cache_dir.mkdir(parents=True, exist_ok=True)
            model = _load_model(model_name, cache_dir)
        except Exception as e:
            raise StartupError(f"Failed to load local embedding model {model_name}: {e}") from e

        model_dim = model.get_sentence_embedding_dimension()
        if model_dim is not None and model_dim != dim:
            raise StartupError(
                f"Embedding model {model_name} produces {model_dim}-dim vectors, expected {dim}"
            )
        return cls(model, dim)

    def _encode(self, texts: list[str]) -> list[list[float]]:
        vecs = self._model.encode(texts, normalize_embeddings=True)
        result: list[list[float]] = []
        for vec in vecs:
            if hasattr(vec, "tolist"):
                result.append([float(x) for x in vec.tolist()])
            else:
                result.append([float(x) for x in vec])
        return result

    async def embed(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        return await asyncio.to_thread(self._encode, texts)
