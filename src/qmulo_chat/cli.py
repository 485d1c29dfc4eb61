import asyncio
import logging
from pathlib import Path
from typing import Callable, Optional, Protocol

import typer
from typing_extensions import Annotated

from qmulo_chat.console.repl_console import ReplConsole
from qmulo_chat.errors import StartupError
from qmulo_chat.logger import setup_logging
from qmulo_chat.runtime_config import (
    DEFAULT_COLLECTION_NAME,
    DEFAULT_EMBEDDING_DIM,
    DEFAULT_EMBEDDING_MODEL,
    DEFAULT_LLM_HOST,
    DEFAULT_QDRANT_URL,
    LLM_HOST_ENV,
    MODEL_CACHE_ENV,
    QDRANT_URL_ENV,
    RuntimeConfig,
    load_envs,
)


class Console(Protocol):
    config: RuntimeConfig

    async def run(self) -> None: ...


# Global factory function - set by create_app()
_console_factory: Optional[Callable[[RuntimeConfig], Console]] = None


def default_console_factory(config: RuntimeConfig) -> Console:
    """Default factory for creating Console instances."""
    return ReplConsole(config)


def main(
    model_cache: Annotated[
        Path,
        typer.Option(
            "--model-cache",
            "-c",
            envvar=MODEL_CACHE_ENV,
            help="The directory where embedding models will be written to and read from on each start",
        ),
    ],
    llm_host: Annotated[
        str,
        typer.Option(
            "--llm-host",
            "-H",
            envvar=LLM_HOST_ENV,
            help="The hostname and port of the Qmulo LLM server",
        ),
    ] = DEFAULT_LLM_HOST,
    qdrant_url: Annotated[
        str,
        typer.Option(envvar=QDRANT_URL_ENV, help="URL of the Qdrant server"),
    ] = DEFAULT_QDRANT_URL,
    collection: Annotated[
        str,
        typer.Option(help="Qdrant collection holding the command embeddings"),
    ] = DEFAULT_COLLECTION_NAME,
    embedding_model: Annotated[
        str,
        typer.Option(help="sentence-transformers model used to embed commands"),
    ] = DEFAULT_EMBEDDING_MODEL,
    embedding_dim: Annotated[
        int,
        typer.Option(help="Vector dimension produced by the embedding model"),
    ] = DEFAULT_EMBEDDING_DIM,
) -> None:
    """A TUI for chatting with Qmulo local AI"""
    logger = logging.getLogger(__name__)

    cfg = RuntimeConfig(
        model_cache=model_cache.expanduser(),
        llm_host=llm_host,
        qdrant_url=qdrant_url,
        collection_name=collection,
        embedding_model=embedding_model,
        embedding_dim=embedding_dim,
    )
    logger.info(f"Starting chat with LLM server {cfg.llm_host}")

    try:
        console_fact = _console_factory or default_console_factory
        console = console_fact(cfg)
        asyncio.run(console.run())
    except StartupError as e:
        logger.error(f"Startup failed: {e}")
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    except KeyboardInterrupt:
        print("\nExiting...")


def create_app(
    console_factory: Optional[Callable[[RuntimeConfig], Console]] = None,
) -> typer.Typer:
    """
    Create and configure the Typer application.

    Args:
        console_factory: Factory function to create Console instances

    Returns:
        Typer application
    """
    setup_logging()

    # Load settings from .env if not already set in the environment
    load_envs()

    global _console_factory
    _console_factory = console_factory

    app = typer.Typer(rich_markup_mode=None)
    app.command()(main)

    return app


app = create_app()


if __name__ == "__main__":
    app()
