"""
Runtime configuration for the Qmulo chat client.

This module provides:
- load_envs(): load QMULO_LLM_HOST, QMULO_MODEL_CACHE and QDRANT_URL from a .env file
  if they are not already present in the environment.
- RuntimeConfig: a dataclass holding runtime settings, including the LLM host,
  embedding model cache directory and Qdrant connection details.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import dotenv_values

# Environment variable names for endpoints and paths
LLM_HOST_ENV: str = "QMULO_LLM_HOST"
MODEL_CACHE_ENV: str = "QMULO_MODEL_CACHE"
QDRANT_URL_ENV: str = "QDRANT_URL"

DEFAULT_LLM_HOST: str = "localhost:8000"
DEFAULT_QDRANT_URL: str = "http://localhost:6333"
DEFAULT_COLLECTION_NAME: str = "commands"
DEFAULT_EMBEDDING_MODEL: str = "BAAI/bge-large-en-v1.5"
DEFAULT_EMBEDDING_DIM: int = 1024


def load_envs(env_file: Optional[str] = None) -> None:
    """
    Load QMULO_LLM_HOST, QMULO_MODEL_CACHE and QDRANT_URL from a .env file
    into the process environment if they are not already set.
    """
    env_values = dotenv_values(env_file) if env_file else dotenv_values()
    for key in (
        LLM_HOST_ENV,
        MODEL_CACHE_ENV,
        QDRANT_URL_ENV,
    ):
        if not os.environ.get(key):
            val = env_values.get(key)
            if val:
                os.environ[key] = str(val)


@dataclass(frozen=True)
class RuntimeConfig:
    """
    Holds runtime configuration for the Qmulo chat client.

    Attributes:
        model_cache: Directory where embedding model files are written to and read from.
        llm_host: The host and port of the Qmulo LLM server.
        qdrant_url: URL of the Qdrant server holding the command index.
        collection_name: Name of the Qdrant collection for command embeddings.
        embedding_model: sentence-transformers model used to embed commands.
        embedding_dim: Vector dimension produced by the embedding model.
    """

    model_cache: Path
    llm_host: str = DEFAULT_LLM_HOST
    qdrant_url: str = DEFAULT_QDRANT_URL
    collection_name: str = DEFAULT_COLLECTION_NAME
    embedding_model: str = DEFAULT_EMBEDDING_MODEL
    embedding_dim: int = DEFAULT_EMBEDDING_DIM

    @property
    def generate_url(self) -> str:
        """Full URL of the LLM server's generate endpoint."""
        return f"http://{self.llm_host}/generate"


def get_data_dir() -> Path:
    """
    Return the Qmulo chat data directory under XDG_DATA_HOME or fallback to ~/.local/share.
    """
    data_home = Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local/share"))
    return data_home / "qmulo_chat"
