"""
Logging configuration for repo-rank.

Rich-formatted console logging, with an optional plain-text log file.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def setup_logging(
    level: str = "info", log_file: Optional[str] = None, show_path: bool = False
) -> logging.Logger:
    """
    Configure logging with a rich handler for colored output.

    Args:
        level: One of debug/info/warning/error
        log_file: Optional file path to append logs to
        show_path: Include the emitting module path in console output

    Returns:
        Configured logger instance for repo_rank
    """
    log_level = _LEVELS.get(level.lower(), logging.INFO)

    console = Console(stderr=True)

    handlers: list[logging.Handler] = [
        RichHandler(
            console=console,
            rich_tracebacks=True,
            tracebacks_show_locals=log_level == logging.DEBUG,
            markup=False,
            show_time=True,
            show_path=show_path,
        )
    ]

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a")
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
            )
        )
        handlers.append(file_handler)

    logging.basicConfig(level=log_level, format="%(message)s", datefmt="[%X]", handlers=handlers)

    logger = logging.getLogger("repo_rank")
    logger.setLevel(log_level)

    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger instance for a specific module.

    Args:
        name: Module name (e.g., 'repo_rank.record')
              If None, returns the root repo_rank logger

    Returns:
        Logger instance
    """
    if name is None:
        return logging.getLogger("repo_rank")

    if not name.startswith("repo_rank"):
        name = f"repo_rank.{name}"

    return logging.getLogger(name)
