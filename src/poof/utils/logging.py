"""Logging setup utilities for poof.

stdout carries the MCP stdio transport, so nothing poof logs may ever
reach it: records go to stderr (and optionally a file) only, and the
``poof`` logger does not propagate to whatever root handlers the host
or a library installed.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from poof.config.settings import LoggingConfig

# The MCP SDK logs every request at INFO; kept at WARNING unless debugging.
CHATTY_LOGGERS = ("mcp",)


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Configure logging for the poof application.

    Sets up the 'poof' logger with the specified level, format, and
    optional file handler. Safe to call more than once.

    Args:
        config: Logging configuration. If None, uses defaults
                (INFO level, stderr output).
    """
    if config is None:
        config = LoggingConfig()

    level = getattr(logging, config.level.upper(), logging.INFO)
    poof_logger = logging.getLogger("poof")
    poof_logger.setLevel(level)
    poof_logger.propagate = False
    for handler in poof_logger.handlers:
        handler.close()
    poof_logger.handlers.clear()

    formatter = logging.Formatter(config.format)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(formatter)
    poof_logger.addHandler(stderr_handler)

    if config.file:
        log_path = Path(config.file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
        file_handler.setFormatter(formatter)
        poof_logger.addHandler(file_handler)

    for name in CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if level <= logging.DEBUG else logging.WARNING)

    poof_logger.debug("Logging initialized at %s level", config.level)
