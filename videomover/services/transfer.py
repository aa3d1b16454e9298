"""Verified single-item transfer.

Each item is written to '<final>.partial', hashed while streaming, checked
against its declared size and only then renamed to its final name. The
final name never exists before the rename, so a listing of the destination
never shows an unverified file under a completed name.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Optional

from ..core.cancellation import CancellationToken
from ..core.config import DEFAULT_CHUNK_SIZE, DEFAULT_CONTENT_TYPE, MoverConfig
from ..core.errors import TransferCancelled
from ..core.models import PARTIAL_SUFFIX, SourceItem, TransferErrorKind, TransferResult
from ..core.protocols import DestinationContainer, SourceReader
from ..engines.hashing import DEFAULT_ALGORITHM, HashingWriter
from .naming import UniqueNameResolver, sanitize_name, split_display_name


logger = logging.getLogger(__name__)


def describe_error(exc: BaseException) -> str:
    """'ClassName: message' for result diagnostics."""
    message = str(exc)
    name = type(exc).__name__
    return f"{name}: {message}" if message else name


class TransferEngine:
    """Copies one source item into a destination container.

    The engine may be shared by several worker threads. Name resolution and
    temp creation run under one lock, and names claimed by transfers still
    in flight are treated as taken, so two workers never pick the same
    final name.
    """

    def __init__(
        self,
        reader: SourceReader,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        content_type: str = DEFAULT_CONTENT_TYPE,
        algorithm: str = DEFAULT_ALGORITHM,
        resolver: Optional[UniqueNameResolver] = None,
    ):
        """Initialize the engine.

        Args:
            reader: Opens read streams for source items.
            chunk_size: Copy buffer size in bytes.
            content_type: Type hint passed to create_child.
            algorithm: hashlib algorithm for content verification.
            resolver: Name resolver (default UniqueNameResolver).
        """
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self._reader = reader
        self._chunk_size = chunk_size
        self._content_type = content_type
        self._algorithm = algorithm
        self._resolver = resolver or UniqueNameResolver()
        self._name_lock = threading.Lock()
        self._in_flight: set[str] = set()

    @classmethod
    def from_config(cls, reader: SourceReader, config: MoverConfig) -> "TransferEngine":
        return cls(
            reader,
            chunk_size=config.chunk_size,
            content_type=config.content_type,
            algorithm=config.hash_algorithm,
        )

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    def transfer(
        self,
        source: SourceItem,
        destination: DestinationContainer,
        cancel: Optional[CancellationToken] = None,
    ) -> TransferResult:
        """Transfer one item.

        Never raises for item-level problems; every outcome is reported
        through the returned TransferResult.
        """
        base, extension = split_display_name(sanitize_name(source.display_name))

        with self._name_lock:
            try:
                final_name = self._resolver.resolve(
                    destination, base, extension, reserved=self._in_flight
                )
                handle = destination.create_child(final_name + PARTIAL_SUFFIX, self._content_type)
            except Exception as e:
                return self._fail(source, TransferErrorKind.CREATE_FAILED, describe_error(e))
            self._in_flight.add(final_name)

        try:
            return self._copy_and_commit(source, destination, handle, final_name, cancel)
        finally:
            with self._name_lock:
                self._in_flight.discard(final_name)

    def _copy_and_commit(
        self,
        source: SourceItem,
        destination: DestinationContainer,
        handle: Any,
        final_name: str,
        cancel: Optional[CancellationToken],
    ) -> TransferResult:
        """Steps after the temp child exists: stream, verify, rename."""
        written = 0
        try:
            with self._reader.open_source(source) as reader, destination.open_writer(handle) as sink:
                writer = HashingWriter(sink, self._algorithm)
                while True:
                    if cancel is not None:
                        cancel.raise_if_cancelled()
                    chunk = reader.read(self._chunk_size)
                    if not chunk:
                        break
                    writer.write(chunk)
                    written = writer.bytes_written
        except TransferCancelled as e:
            self._discard(destination, handle)
            return self._fail(
                source, TransferErrorKind.CANCELLED, describe_error(e), bytes_written=written
            )
        except Exception as e:
            self._discard(destination, handle)
            return self._fail(
                source, TransferErrorKind.IO_FAILURE, describe_error(e), bytes_written=written
            )

        if source.has_declared_size and written != source.size:
            self._discard(destination, handle)
            return self._fail(
                source,
                TransferErrorKind.SIZE_MISMATCH,
                f"expected {source.size} bytes, wrote {written}",
                bytes_written=written,
            )

        digest = writer.finalize()

        try:
            destination.rename(handle, final_name)
        except Exception as e:
            self._discard(destination, handle)
            return self._fail(
                source,
                TransferErrorKind.RENAME_FAILED,
                describe_error(e),
                bytes_written=written,
                digest=digest,
            )

        logger.debug("Transferred %s -> %s (%d bytes, %s)", source.identity, final_name, written, digest)
        return TransferResult.ok(source.identity, final_name, written, digest)

    def _discard(self, destination: DestinationContainer, handle: Any) -> None:
        """Best-effort removal of a temp child; never masks the original error."""
        try:
            if not destination.delete(handle):
                logger.warning("Could not remove partial file %s", handle.name)
        except Exception as e:
            logger.warning("Could not remove partial file %s: %s", handle.name, e)

    def _fail(
        self,
        source: SourceItem,
        kind: TransferErrorKind,
        error: str,
        bytes_written: int = 0,
        digest: Optional[str] = None,
    ) -> TransferResult:
        logger.warning("Transfer of %s failed (%s): %s", source.display_name, kind.value, error)
        return TransferResult.failed(
            source.identity, kind, error, bytes_written=bytes_written, digest=digest
        )
