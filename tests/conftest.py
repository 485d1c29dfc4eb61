import math
import re
from typing import Dict, List, Optional, Sequence, Tuple

import pytest
from rich.console import Console

import qmulo_chat.console.rendering as rendering
from qmulo_chat.conversation.backend import ServerResponse
from qmulo_chat.conversation.messages import Message
from qmulo_chat.retrieval.vector_index import IndexPoint, ScoredPayload


class BagOfWordsEmbedder:
    """Deterministic embedder: normalized word counts over a shared vocabulary."""

    def __init__(self, dim: int = 1024) -> None:
        self.dim = dim
        self.calls: List[List[str]] = []
        self._vocabulary: Dict[str, int] = {}

    def vector(self, text: str) -> List[float]:
        vec = [0.0] * self.dim
        for token in re.findall(r"[a-z0-9]+", text.lower()):
            if token not in self._vocabulary:
                self._vocabulary[token] = len(self._vocabulary)
            vec[self._vocabulary[token]] += 1.0
        norm = math.sqrt(sum(x * x for x in vec)) or 1.0
        return [x / norm for x in vec]

    async def embed(self, texts: List[str]) -> List[List[float]]:
        self.calls.append(list(texts))
        return [self.vector(text) for text in texts]


class InMemoryIndex:
    """Dot-product nearest neighbour search over a dict of points."""

    def __init__(self) -> None:
        self.points: Dict[int, IndexPoint] = {}
        self.dim: Optional[int] = None
        self.ensure_calls = 0
        self.queries = 0

    async def ensure_collection(self, dim: int, distance: object) -> None:
        self.ensure_calls += 1
        if self.dim is None:
            self.dim = dim

    async def upsert(self, points: Sequence[IndexPoint]) -> None:
        for point in points:
            self.points[point.id] = point

    async def query(self, vector: List[float], top_k: int = 1) -> List[ScoredPayload]:
        self.queries += 1
        scored = [
            ScoredPayload(
                score=sum(a * b for a, b in zip(vector, point.vector)),
                payload=dict(point.payload),
            )
            for point in self.points.values()
        ]
        scored.sort(key=lambda hit: hit.score, reverse=True)
        return scored[:top_k]


class FakeBackend:
    """LLM backend returning canned replies, or raising a given error."""

    def __init__(
        self, replies: Sequence[str] = (), error: Optional[Exception] = None
    ) -> None:
        self.replies = list(replies)
        self.error = error
        self.calls: List[Tuple[Message, ...]] = []

    async def generate(self, messages: Sequence[Message]) -> ServerResponse:
        self.calls.append(tuple(messages))
        if self.error is not None:
            raise self.error
        output = self.replies.pop(0) if self.replies else "ok"
        return ServerResponse(output=output, time=0.1)


class ScriptedReader:
    """InputReader that replays a fixed list of lines, then raises EOFError."""

    def __init__(self, lines: Sequence[str] = ()) -> None:
        self.lines = list(lines)
        self.messages: List[str] = []

    async def read_line(self, message: str = "") -> str:
        self.messages.append(message)
        if not self.lines:
            raise EOFError
        return self.lines.pop(0)


@pytest.fixture
def embedder() -> BagOfWordsEmbedder:
    return BagOfWordsEmbedder()


@pytest.fixture
def index() -> InMemoryIndex:
    return InMemoryIndex()


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend(replies=["first reply", "second reply", "third reply"])


@pytest.fixture
def record_console(monkeypatch: pytest.MonkeyPatch) -> Console:
    """Replace rendering.console with a recorder and capture output."""
    recorder = Console(record=True, width=100)
    monkeypatch.setattr(rendering, "console", recorder)
    return recorder
