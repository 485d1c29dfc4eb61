import logging
import os
from pathlib import Path
from typing import Optional

from qmulo_chat.runtime_config import get_data_dir

LOG_FILE_NAME = "qmulo_chat.log"

# Chatty third-party loggers that would drown out our own records
_NOISY_LOGGERS = ("httpx", "httpcore", "qdrant_client", "sentence_transformers")


def setup_logging(log_dir: Optional[Path] = None, level: int = logging.INFO) -> Path:
    """
    Send log records to a file under the data directory.

    The REPL owns the terminal, so nothing is logged to stdout/stderr.

    Returns:
        Path of the log file.
    """
    log_dir = log_dir or get_data_dir()
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )

    root = logging.getLogger()
    for existing in list(root.handlers):
        if isinstance(existing, logging.FileHandler) and (
            existing.baseFilename == os.path.abspath(log_file)
        ):
            root.removeHandler(existing)
            existing.close()
    root.addHandler(handler)
    root.setLevel(level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return log_file
