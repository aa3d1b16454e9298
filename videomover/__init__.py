"""Verified media transfer: copy camera media into a destination folder.

Each item is streamed into a '.partial' file while hashed, checked against
its declared size and only then renamed to a collision-free final name.
"""

__version__ = "1.0.0"

# Core exports
from .core.config import MoverConfig, load_config
from .core.models import PARTIAL_SUFFIX, SourceItem, TransferErrorKind, TransferResult, BatchManifest
from .core.protocols import DestinationContainer, SourceReader, MediaIndex, SourceEnumerator, ProgressSink
from .core.cancellation import CancellationToken

# Engine exports
from .engines.hashing import HashingWriter

# Service exports
from .services.naming import UniqueNameResolver
from .services.transfer import TransferEngine
from .services.batch import BatchCoordinator
from .services.discovery import SourceDiscovery
from .services.media_index import DirectoryMediaIndex

# Persistence exports
from .persistence.local import LocalDirectoryContainer

# Logging exports
from .logging.rich_logger import RichProgressReporter

__all__ = [
    # Core
    "MoverConfig",
    "load_config",
    "PARTIAL_SUFFIX",
    "SourceItem",
    "TransferErrorKind",
    "TransferResult",
    "BatchManifest",
    "DestinationContainer",
    "SourceReader",
    "MediaIndex",
    "SourceEnumerator",
    "ProgressSink",
    "CancellationToken",
    # Engines
    "HashingWriter",
    # Services
    "UniqueNameResolver",
    "TransferEngine",
    "BatchCoordinator",
    "SourceDiscovery",
    "DirectoryMediaIndex",
    # Persistence
    "LocalDirectoryContainer",
    # Logging
    "RichProgressReporter",
]
