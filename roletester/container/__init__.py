"""Test target containers."""

from .manager import ContainerManager

__all__ = ["ContainerManager"]
