"""Streaming content hashing.

HashingWriter mirrors every write into a running digest before passing
the bytes on to the wrapped sink, so the digest always describes exactly
the bytes that reached the destination.
"""
from __future__ import annotations

import hashlib
import threading
from typing import BinaryIO, Optional, Union

DEFAULT_ALGORITHM = "sha256"

Buffer = Union[bytes, bytearray, memoryview]


def hash_bytes(data: bytes, algorithm: str = DEFAULT_ALGORITHM) -> str:
    """Hex digest of an in-memory byte string."""
    return hashlib.new(algorithm, data).hexdigest()


class HashingWriter:
    """Write-through wrapper that hashes everything it forwards.

    Usable for exactly one stream: once finalized, further writes raise.
    """

    def __init__(self, sink: BinaryIO, algorithm: str = DEFAULT_ALGORITHM):
        """Initialize the writer.

        Args:
            sink: Binary stream receiving the bytes.
            algorithm: hashlib algorithm name.
        """
        self._sink = sink
        self._hasher = hashlib.new(algorithm)
        self._lock = threading.Lock()
        self._bytes_written = 0
        self._digest: Optional[bytes] = None

    @property
    def algorithm(self) -> str:
        return self._hasher.name

    @property
    def bytes_written(self) -> int:
        return self._bytes_written

    @property
    def digest(self) -> Optional[bytes]:
        """Raw digest, available after finalize()."""
        return self._digest

    @property
    def finalized(self) -> bool:
        return self._digest is not None

    def write(self, data: Buffer, length: Optional[int] = None) -> int:
        """Hash then forward data[0:length].

        Returns:
            Number of bytes accepted.

        Raises:
            ValueError: If the writer was already finalized.
        """
        view = memoryview(data)
        if length is not None:
            if length < 0 or length > len(view):
                raise ValueError(f"Invalid length {length} for buffer of {len(view)} bytes")
            view = view[:length]

        with self._lock:
            if self._digest is not None:
                raise ValueError("HashingWriter already finalized")
            self._hasher.update(view)
            self._sink.write(view)
            self._bytes_written += len(view)
        return len(view)

    def finalize(self) -> str:
        """Finish the digest and return it hex-encoded."""
        with self._lock:
            if self._digest is None:
                self._digest = self._hasher.digest()
            return self._digest.hex()
