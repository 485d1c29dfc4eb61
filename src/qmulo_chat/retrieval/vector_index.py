"""
Similarity index over command embeddings, backed by a Qdrant collection.

The collection outlives the process: a second run finds it already there and
simply re-upserts its points.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Protocol, Sequence, runtime_checkable

from qdrant_client import AsyncQdrantClient
from qdrant_client.http.exceptions import UnexpectedResponse
from qdrant_client.models import Distance, PointStruct, VectorParams

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IndexPoint:
    """A vector to store, keyed by a positive integer id."""

    id: int
    vector: List[float]
    payload: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ScoredPayload:
    """A query hit: similarity score and the payload stored with the vector."""

    score: float
    payload: Dict[str, Any]


@runtime_checkable
class SimilarityIndex(Protocol):
    """The operations the command router needs from a vector store."""

    async def ensure_collection(self, dim: int, distance: Distance) -> None: ...

    async def upsert(self, points: Sequence[IndexPoint]) -> None: ...

    async def query(self, vector: List[float], top_k: int = 1) -> List[ScoredPayload]: ...


def _is_already_exists(error: Exception) -> bool:
    if isinstance(error, UnexpectedResponse):
        if error.status_code == 409:
            return True
        return b"already exists" in (error.content or b"")
    # Local (in-process) Qdrant reports duplicates as a plain ValueError
    return isinstance(error, ValueError) and "already exists" in str(error)


class QdrantIndex(SimilarityIndex):
    """SimilarityIndex implementation for a single Qdrant collection."""

    def __init__(self, client: AsyncQdrantClient, collection_name: str) -> None:
        self.client = client
        self.collection_name = collection_name

    @classmethod
    def from_url(cls, url: str, collection_name: str) -> "QdrantIndex":
        return cls(AsyncQdrantClient(url=url), collection_name)

    async def ensure_collection(self, dim: int, distance: Distance) -> None:
        """Create the collection unless it already exists."""
        if await self.client.collection_exists(self.collection_name):
            logger.info(f"Collection {self.collection_name} already exists")
            return
        try:
            await self.client.create_collection(
                collection_name=self.collection_name,
                vectors_config=VectorParams(size=dim, distance=distance),
            )
        except (UnexpectedResponse, ValueError) as e:
            if not _is_already_exists(e):
                raise
            logger.info(f"Collection {self.collection_name} was created concurrently")
            return
        logger.info(f"Created collection {self.collection_name} ({dim} dims, {distance})")

    async def upsert(self, points: Sequence[IndexPoint]) -> None:
        await self.client.upsert(
            collection_name=self.collection_name,
            points=[
                PointStruct(id=point.id, vector=point.vector, payload=point.payload)
                for point in points
            ],
            wait=True,
        )

    async def query(self, vector: List[float], top_k: int = 1) -> List[ScoredPayload]:
        response = await self.client.query_points(
            collection_name=self.collection_name,
            query=vector,
            limit=top_k,
            with_payload=True,
        )
        return [
            ScoredPayload(score=point.score, payload=dict(point.payload or {}))
            for point in response.points
        ]

    async def close(self) -> None:
        await self.client.close()
