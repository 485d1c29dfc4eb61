from pathlib import Path

import pytest
from conftest import BagOfWordsEmbedder, InMemoryIndex, ScriptedReader

import qmulo_chat.startup as startup_module
from qmulo_chat.errors import StartupError
from qmulo_chat.runtime_config import RuntimeConfig
from qmulo_chat.startup import build_router


@pytest.fixture
def config(tmp_path: Path) -> RuntimeConfig:
    return RuntimeConfig(model_cache=tmp_path / "models", embedding_dim=1024)


@pytest.mark.asyncio
async def test_build_router_indexes_builtin_commands(
    config: RuntimeConfig, embedder: BagOfWordsEmbedder, index: InMemoryIndex
) -> None:
    router = await build_router(config, ScriptedReader(), embedder=embedder, index=index)

    assert router.registry.ids() == ["hint", "retry", "system"]
    assert len(index.points) == 3
    assert (await router.resolve("retry the last response")).id == "retry"


@pytest.mark.asyncio
async def test_build_router_runs_twice_against_same_index(
    config: RuntimeConfig, embedder: BagOfWordsEmbedder, index: InMemoryIndex
) -> None:
    await build_router(config, ScriptedReader(), embedder=embedder, index=index)
    await build_router(config, ScriptedReader(), embedder=embedder, index=index)
    assert sorted(index.points) == [1, 2, 3]


@pytest.mark.asyncio
async def test_build_router_loads_configured_model(
    monkeypatch: pytest.MonkeyPatch, config: RuntimeConfig, index: InMemoryIndex
) -> None:
    loaded = []

    def fake_load(model_name: str, cache_dir: Path, dim: int) -> BagOfWordsEmbedder:
        loaded.append((model_name, cache_dir, dim))
        return BagOfWordsEmbedder(dim)

    monkeypatch.setattr(startup_module.SentenceTransformerEmbedder, "load", fake_load)

    await build_router(config, ScriptedReader(), index=index)

    assert loaded == [(config.embedding_model, config.model_cache, 1024)]
    assert index.dim == 1024


@pytest.mark.asyncio
async def test_build_router_propagates_model_failure(
    monkeypatch: pytest.MonkeyPatch, config: RuntimeConfig, index: InMemoryIndex
) -> None:
    def broken_load(model_name: str, cache_dir: Path, dim: int) -> BagOfWordsEmbedder:
        raise StartupError("Failed to load local embedding model")

    monkeypatch.setattr(startup_module.SentenceTransformerEmbedder, "load", broken_load)

    with pytest.raises(StartupError):
        await build_router(config, ScriptedReader(), index=index)
    assert index.ensure_calls == 0
