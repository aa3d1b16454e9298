"""Run configuration with validation.

Destination, source path and the delete-after flag travel as one explicit
value handed to the coordinator and CLI.
"""
from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import ConfigError


DEFAULT_CHUNK_SIZE = 1024 * 1024  # 1 MiB
DEFAULT_CONTENT_TYPE = "video/*"
MAX_WORKERS = 8


class MoverConfig(BaseModel):
    """Configuration for a transfer run.

    All options can also be supplied via CLI flags. CLI flags override config file values.
    """
    destination: Optional[Path] = Field(
        default=None,
        description="Destination directory for transferred media"
    )
    source_root: Optional[Path] = Field(
        default=None,
        description="Root of the media storage to index (e.g. a mounted phone)"
    )
    source_path: Optional[str] = Field(
        default=None,
        description="Group path prefix to transfer from (None = auto-detect camera folders)"
    )
    delete_after: bool = Field(
        default=True,
        description="Delete verified originals after the batch completes"
    )
    workers: int = Field(
        default=1,
        ge=1,
        le=MAX_WORKERS,
        description="Number of concurrent transfers (1 = sequential)"
    )
    chunk_size: int = Field(
        default=DEFAULT_CHUNK_SIZE,
        gt=0,
        description="Copy buffer size in bytes"
    )
    hash_algorithm: str = Field(
        default="sha256",
        description="hashlib algorithm used to verify content"
    )
    content_type: str = Field(
        default=DEFAULT_CONTENT_TYPE,
        description="Content type hint passed to the destination on create"
    )
    sweep_partials: bool = Field(
        default=True,
        description="Remove leftover .partial files before a batch starts"
    )
    include_images: bool = Field(
        default=False,
        description="Index images as well as videos"
    )
    limit: Optional[int] = Field(
        default=None,
        gt=0,
        description="Maximum number of items to enumerate"
    )

    @field_validator("destination", "source_root")
    @classmethod
    def expand_path(cls, value: Optional[Path]) -> Optional[Path]:
        if value is None:
            return None
        return value.expanduser().resolve()

    @field_validator("source_path")
    @classmethod
    def normalize_source_path(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip().lstrip("/")
        return value or None

    @field_validator("hash_algorithm")
    @classmethod
    def check_algorithm(cls, value: str) -> str:
        value = value.lower()
        if value not in hashlib.algorithms_available:
            raise ValueError(f"Unsupported hash algorithm: {value}")
        return value

    def with_overrides(self, **kwargs) -> "MoverConfig":
        """Create a new validated config, ignoring overrides that are None."""
        current = self.model_dump()
        current.update({k: v for k, v in kwargs.items() if v is not None})
        return MoverConfig(**current)


def load_config(path: Path) -> MoverConfig:
    """Load a MoverConfig from a JSON file.

    Raises:
        ConfigError: If the file is missing or fails validation.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read config {path}: {e}") from e

    try:
        return MoverConfig.model_validate_json(text)
    except ValidationError as e:
        raise ConfigError(f"Invalid config {path}: {e}") from e
