"""Exception hierarchy shared by containers, engine and CLI."""
from __future__ import annotations


class VideoMoverError(Exception):
    """Base error for the project."""


class ConfigError(VideoMoverError):
    """Configuration file missing or invalid."""


class DestinationError(VideoMoverError):
    """A destination container refused an operation."""


class CreateError(DestinationError):
    """A child entry could not be created (permissions, quota, name taken)."""


class RenameError(DestinationError):
    """A child entry could not be renamed to its final name."""


class TransferCancelled(VideoMoverError):
    """Raised inside a copy loop when the cancellation token is set."""
