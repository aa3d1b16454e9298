"""Destination container implementations."""
from .local import LocalChild, LocalDirectoryContainer

__all__ = ["LocalChild", "LocalDirectoryContainer"]
