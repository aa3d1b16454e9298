"""Service layer."""
from .naming import UniqueNameResolver, sanitize_name, split_display_name
from .transfer import TransferEngine
from .batch import BatchCoordinator, sweep_partials
from .discovery import SourceDiscovery, is_excluded
from .media_index import DirectoryMediaIndex

__all__ = [
    "UniqueNameResolver",
    "sanitize_name",
    "split_display_name",
    "TransferEngine",
    "BatchCoordinator",
    "sweep_partials",
    "SourceDiscovery",
    "is_excluded",
    "DirectoryMediaIndex",
]
