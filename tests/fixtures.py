"""Test doubles for transfer tests.

In-memory implementations of the destination container, media index and
source reader protocols, plus streams that fail or cancel on demand.
"""
from __future__ import annotations

import io
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from videomover.core.cancellation import CancellationToken
from videomover.core.errors import CreateError, RenameError
from videomover.core.models import PARTIAL_SUFFIX, SourceItem


@dataclass(frozen=True)
class MemoryChild:
    """Handle to a child of a MemoryContainer."""
    name: str


class _MemoryWriter(io.RawIOBase):
    """Write stream appending into a MemoryContainer entry."""

    def __init__(self, container: "MemoryContainer", name: str):
        super().__init__()
        self._container = container
        self._name = name

    def writable(self) -> bool:
        return True

    def write(self, data) -> int:
        if self._container.fail_write_after is not None:
            if len(self._container.files[self._name]) >= self._container.fail_write_after:
                raise OSError("No space left on device")
        with self._container.lock:
            self._container.files[self._name].extend(bytes(data))
            self._container.snapshot()
        return len(data)


class MemoryContainer:
    """In-memory DestinationContainer that records listings during writes."""

    def __init__(self, existing: Optional[dict[str, bytes]] = None):
        self.files: dict[str, bytearray] = {
            name: bytearray(data) for name, data in (existing or {}).items()
        }
        self.content_types: dict[str, str] = {}
        self.listings: list[list[str]] = []
        self.fail_create = False
        self.fail_rename = False
        self.fail_delete = False
        self.fail_exists = False
        self.fail_write_after: Optional[int] = None
        self.on_create: Optional[Callable[[str], None]] = None
        self.lock = threading.RLock()

    def snapshot(self) -> None:
        self.listings.append(self.list_names())

    def completed_names(self) -> list[str]:
        return [n for n in self.list_names() if not n.endswith(PARTIAL_SUFFIX)]

    def content(self, name: str) -> bytes:
        return bytes(self.files[name])

    # --- DestinationContainer ---

    def create_child(self, name: str, content_type: str) -> MemoryChild:
        if self.on_create is not None:
            self.on_create(name)
        if self.fail_create:
            raise CreateError(f"Permission denied: {name}")
        with self.lock:
            if name in self.files:
                raise CreateError(f"Already exists: {name}")
            self.files[name] = bytearray()
            self.content_types[name] = content_type
            self.snapshot()
        return MemoryChild(name)

    def find_child(self, name: str) -> Optional[MemoryChild]:
        return MemoryChild(name) if name in self.files else None

    def exists(self, name: str) -> bool:
        if self.fail_exists:
            raise OSError("Transport endpoint is not connected")
        return name in self.files

    def open_writer(self, handle: MemoryChild):
        return io.BufferedWriter(_MemoryWriter(self, handle.name))

    def rename(self, handle: MemoryChild, new_name: str) -> MemoryChild:
        if self.fail_rename:
            raise RenameError(f"Rename refused: {handle.name}")
        with self.lock:
            if new_name in self.files:
                raise RenameError(f"Target already exists: {new_name}")
            self.files[new_name] = self.files.pop(handle.name)
            self.snapshot()
        return MemoryChild(new_name)

    def delete(self, handle: MemoryChild) -> bool:
        if self.fail_delete:
            raise OSError("Device busy")
        with self.lock:
            self.files.pop(handle.name, None)
            self.snapshot()
        return True

    def list_names(self) -> list[str]:
        with self.lock:
            return sorted(self.files)


class FailingStream(io.BytesIO):
    """Read stream that raises after returning `good_reads` chunks."""

    def __init__(self, data: bytes, good_reads: int = 1):
        super().__init__(data)
        self._good_reads = good_reads

    def read(self, size: int = -1) -> bytes:
        if self._good_reads <= 0:
            raise OSError("Input/output error")
        self._good_reads -= 1
        return super().read(size)


class CancellingStream(io.BytesIO):
    """Read stream that sets a cancellation token after the first chunk."""

    def __init__(self, data: bytes, token: CancellationToken):
        super().__init__(data)
        self._token = token

    def read(self, size: int = -1) -> bytes:
        chunk = super().read(size)
        self._token.cancel()
        return chunk


class MemoryMediaIndex:
    """In-memory MediaIndex and SourceReader."""

    def __init__(self):
        self.items: list[SourceItem] = []
        self.contents: dict[str, bytes] = {}
        self.stream_factories: dict[str, Callable[[bytes], io.BytesIO]] = {}
        self.opened: list[str] = []
        self._clock = datetime(2024, 1, 1, 12, 0, 0)

    def add(
        self,
        name: str,
        content: bytes = b"",
        group_path: str = "DCIM/Camera/",
        size: Optional[int] = None,
        date_taken: Optional[datetime] = None,
        identity: Optional[str] = None,
    ) -> SourceItem:
        """Add an item; dates increase with each call unless given."""
        if date_taken is None:
            self._clock += timedelta(minutes=1)
            date_taken = self._clock
        item = SourceItem(
            identity=identity or f"{group_path}{name}#{len(self.items)}",
            display_name=name,
            size=len(content) if size is None else size,
            group_path=group_path,
            date_taken=date_taken,
        )
        self.items.append(item)
        self.contents[item.identity] = content
        return item

    def fail_reads(self, item: SourceItem, good_reads: int = 1) -> None:
        self.stream_factories[item.identity] = lambda data: FailingStream(data, good_reads)

    def query(self) -> list[SourceItem]:
        return list(self.items)

    def open_source(self, item: SourceItem):
        self.opened.append(item.identity)
        data = self.contents[item.identity]
        factory = self.stream_factories.get(item.identity)
        return factory(data) if factory else io.BytesIO(data)
