"""
Logging setup for abs-mcp server.

Console output always goes to stderr (stdout carries the MCP stdio transport).
With file logging enabled, two size-rotated files are kept under the log
directory: abs-info.log (everything at the configured level) and
abs-error.log (errors only).
"""
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
MAX_LOG_BYTES = 5 * 1024 * 1024
LOG_BACKUP_COUNT = 5

_HANDLER_TAG = "_abs_mcp_handler"


def setup_logging(
    level: str = "ERROR",
    log_dir: Optional[str] = None,
    log_to_file: bool = False
) -> logging.Logger:
    """
    Configure the root logger for the server process.

    Calling this again replaces the handlers installed by a previous call,
    so the level and destinations can be changed at startup.

    Args:
        level: Logging level name (DEBUG/INFO/WARNING/ERROR)
        log_dir: Directory for abs-info.log / abs-error.log
        log_to_file: Whether to add the rotating file handlers

    Returns:
        The configured root logger
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.ERROR))

    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_TAG, False):
            root.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(LOG_FORMAT)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    _install(root, console)

    if log_to_file and log_dir:
        os.makedirs(log_dir, exist_ok=True)

        info_file = RotatingFileHandler(
            os.path.join(log_dir, "abs-info.log"),
            maxBytes=MAX_LOG_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8"
        )
        info_file.setFormatter(formatter)
        _install(root, info_file)

        error_file = RotatingFileHandler(
            os.path.join(log_dir, "abs-error.log"),
            maxBytes=MAX_LOG_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8"
        )
        error_file.setLevel(logging.ERROR)
        error_file.setFormatter(formatter)
        _install(root, error_file)

    return root


def _install(root: logging.Logger, handler: logging.Handler) -> None:
    setattr(handler, _HANDLER_TAG, True)
    root.addHandler(handler)
