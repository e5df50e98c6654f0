"""Core logging implementation for devport."""

import logging
import sys
from typing import Optional

__all__ = ["get_logger", "setup_logging"]


def setup_logging(level: int | str = logging.INFO, stream=sys.stderr) -> None:
    """Configure basic logging.

    Logs go to stderr by default so that values printed on stdout
    (e.g. a resolved port) stay usable from shell scripts.

    Args:
        level: Logging level, as a constant or a name such as "DEBUG".
        stream: Output stream.
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=stream,
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Name of the logger.

    Returns:
        Logger instance.
    """
    return logging.getLogger(name or "devport")
