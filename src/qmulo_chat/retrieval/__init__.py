"""Embedding and vector-index adapters used to resolve commands."""

from .embeddings import EmbeddingProvider, SentenceTransformerEmbedder
from .vector_index import IndexPoint, QdrantIndex, ScoredPayload, SimilarityIndex

__all__ = [
    "EmbeddingProvider",
    "IndexPoint",
    "QdrantIndex",
    "ScoredPayload",
    "SentenceTransformerEmbedder",
    "SimilarityIndex",
]
