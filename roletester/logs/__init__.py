"""Logging setup and per-run log files."""

from .console import configure_logging
from .manager import LoggingManager

__all__ = ["configure_logging", "LoggingManager"]
