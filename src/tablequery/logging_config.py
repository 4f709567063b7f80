"""
Logging Configuration for tablequery.

Provides centralized setup of the ``tablequery`` logger. Modules log through
``logging.getLogger(__name__)`` and inherit the handlers installed here.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from .config import QueryConfig

LOGGER_NAME = "tablequery"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class FlushingStreamHandler(logging.StreamHandler):
    """StreamHandler that flushes after every emit."""
    def emit(self, record):
        super().emit(record)
        self.flush()


def _create_file_handler(log_path: str) -> Optional[logging.FileHandler]:
    """
    Create a file handler for the specified log file.

    Args:
        log_path: Path of the log file

    Returns:
        Configured FileHandler, or None if the file cannot be opened
    """
    try:
        path = Path(log_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, mode='a', encoding='utf-8')
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        return handler
    except OSError:
        return None


def _create_stderr_handler() -> logging.StreamHandler:
    """Create a stderr handler for console output with auto-flush."""
    handler = FlushingStreamHandler(sys.stderr)
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def configure_logging(config: Optional[QueryConfig] = None, force: bool = False) -> logging.Logger:
    """
    Configure the package logger.

    Handlers are installed once; pass ``force=True`` to replace them
    (e.g. after the CLI parsed ``--verbose``).

    Args:
        config: Configuration to apply, read from the environment if omitted
        force: Reconfigure even if handlers are already installed

    Returns:
        Configured logger instance
    """
    config = config or QueryConfig.from_env()
    logger = logging.getLogger(LOGGER_NAME)

    if logger.handlers and not force:
        return logger

    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)

    logger.setLevel(config.level)
    logger.propagate = False

    logger.addHandler(_create_stderr_handler())

    if config.log_file:
        file_handler = _create_file_handler(config.log_file)
        if file_handler:
            logger.addHandler(file_handler)
        else:
            logger.warning(f"Could not open log file {config.log_file}")

    return logger


def get_logger(name: str = LOGGER_NAME) -> logging.Logger:
    """Get a logger below the package logger, configuring it on first use."""
    configure_logging()
    return logging.getLogger(name)
