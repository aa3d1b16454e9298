"""Hashing engines."""
from .hashing import DEFAULT_ALGORITHM, HashingWriter, hash_bytes

__all__ = ["DEFAULT_ALGORITHM", "HashingWriter", "hash_bytes"]
