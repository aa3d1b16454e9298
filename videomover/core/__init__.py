"""Core domain models and protocols."""
from .protocols import (
    ChildHandle,
    DestinationContainer,
    SourceReader,
    MediaIndex,
    SourceEnumerator,
    ProgressSink,
)
from .models import (
    PARTIAL_SUFFIX,
    SourceItem,
    TransferErrorKind,
    TransferResult,
    BatchManifest,
)
from .config import MoverConfig, load_config
from .cancellation import CancellationToken
from .errors import (
    VideoMoverError,
    ConfigError,
    DestinationError,
    CreateError,
    RenameError,
    TransferCancelled,
)

__all__ = [
    # Protocols
    "ChildHandle",
    "DestinationContainer",
    "SourceReader",
    "MediaIndex",
    "SourceEnumerator",
    "ProgressSink",
    # Models
    "PARTIAL_SUFFIX",
    "SourceItem",
    "TransferErrorKind",
    "TransferResult",
    "BatchManifest",
    # Config
    "MoverConfig",
    "load_config",
    "CancellationToken",
    # Errors
    "VideoMoverError",
    "ConfigError",
    "DestinationError",
    "CreateError",
    "RenameError",
    "TransferCancelled",
]
