"""Logging micro API for devport."""

from .lib import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
