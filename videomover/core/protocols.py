"""Protocol definitions (interfaces) for dependency injection."""
from __future__ import annotations

from abc import abstractmethod
from typing import Any, BinaryIO, Iterable, Optional, Protocol

from .models import BatchManifest, SourceItem


class ChildHandle(Protocol):
    """Opaque reference to one child entry of a destination container."""

    @property
    def name(self) -> str:
        ...


class DestinationContainer(Protocol):
    """Write target: a folder-like capability over child entries.

    Implementations:
    - LocalDirectoryContainer: a directory on the local filesystem
    - test doubles: an in-memory tree
    """

    @abstractmethod
    def create_child(self, name: str, content_type: str) -> Any:
        """Create an empty child. Raises CreateError, never overwrites."""
        ...

    @abstractmethod
    def find_child(self, name: str) -> Optional[Any]:
        """Return a handle for an existing child, or None."""
        ...

    @abstractmethod
    def exists(self, name: str) -> bool:
        """Check whether a child with this name exists."""
        ...

    @abstractmethod
    def open_writer(self, handle: Any) -> BinaryIO:
        """Open a binary write stream to a child (context manager)."""
        ...

    @abstractmethod
    def rename(self, handle: Any, new_name: str) -> Any:
        """Rename a child. Raises RenameError, never replaces an entry."""
        ...

    @abstractmethod
    def delete(self, handle: Any) -> bool:
        """Delete a child. Best effort; returns True on success."""
        ...

    @abstractmethod
    def list_names(self) -> list[str]:
        """Names of all children."""
        ...


class SourceReader(Protocol):
    """Opens read streams for source items."""

    @abstractmethod
    def open_source(self, item: SourceItem) -> BinaryIO:
        """Open a binary read stream (context manager)."""
        ...


class MediaIndex(Protocol):
    """Platform media index queried by source discovery."""

    @abstractmethod
    def query(self) -> Iterable[SourceItem]:
        """All indexed items, in any order."""
        ...


class SourceEnumerator(Protocol):
    """The two query shapes the transfer core needs from discovery."""

    @abstractmethod
    def enumerate(self, prefix: Optional[str] = None) -> list[SourceItem]:
        """Ordered items under a group prefix (or the auto-detected camera folders)."""
        ...

    @abstractmethod
    def detect_likely_group(self) -> Optional[str]:
        """Best-guess camera group path, or None."""
        ...


class ProgressSink(Protocol):
    """Receives batch progress. Called from a single delivery path."""

    @abstractmethod
    def on_progress(self, done: int, total: int, succeeded: int, failed: int) -> None:
        """Called once per item after its terminal state is known."""
        ...

    @abstractmethod
    def on_complete(self, manifest: BatchManifest) -> None:
        """Called exactly once when the batch ends."""
        ...
