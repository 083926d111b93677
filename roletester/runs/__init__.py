"""Run directories and role checkouts."""

from .manager import RunManager, RunContext

__all__ = ["RunManager", "RunContext"]
