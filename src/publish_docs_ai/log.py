"""
Logging setup for publish-docs-ai.

Console output goes through Rich; a rotating file keeps the full history.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler

from rich.console import Console
from rich.logging import RichHandler

from publish_docs_ai.config import LoggingConfig

PACKAGE_LOGGER = "publish_docs_ai"


def setup_logging(config: LoggingConfig, console: Console | None = None) -> logging.Logger:
    """
    Configure the package logger from a LoggingConfig.

    Args:
        config: Logging section of the settings.
        console: Rich console shared with the CLI output.

    Returns:
        The configured package logger.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(config.level.upper())

    # Re-running setup (tests, repeated CLI calls) must not stack handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    rich_handler = RichHandler(
        console=console,
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    rich_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(rich_handler)

    log_file = config.file.expanduser()
    log_file.parent.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=config.max_file_size_mb * 1024 * 1024,
        backupCount=config.backup_count,
        encoding="utf-8",
    )
    file_handler.setFormatter(logging.Formatter(config.format))
    logger.addHandler(file_handler)

    logger.propagate = False
    return logger
