"""Domain models - immutable data classes."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


# Suffix of in-progress transfer objects. A name carrying it is never a
# completed transfer.
PARTIAL_SUFFIX = ".partial"


class TransferErrorKind(Enum):
    """Why a single item failed to transfer."""
    CREATE_FAILED = "CreateFailed"
    IO_FAILURE = "IoFailure"
    SIZE_MISMATCH = "SizeMismatch"
    RENAME_FAILED = "RenameFailed"
    CANCELLED = "Cancelled"


@dataclass(frozen=True, slots=True)
class SourceItem:
    """One discoverable media object eligible for transfer."""
    identity: str
    display_name: str
    size: int = 0  # 0 = unknown
    group_path: str = ""
    date_taken: Optional[datetime] = None

    @property
    def bucket(self) -> str:
        """Last non-empty component of the group path (e.g. 'Camera')."""
        parts = [p for p in self.group_path.split("/") if p]
        return parts[-1] if parts else ""

    @property
    def has_declared_size(self) -> bool:
        return self.size > 0


@dataclass(frozen=True, slots=True)
class TransferResult:
    """Outcome of transferring a single item.

    final_name is set iff success; error_kind and error are set iff failure.
    digest is set on success and on RenameFailed (bytes were fully written).
    """
    source_id: str
    success: bool
    final_name: Optional[str] = None
    bytes_written: int = 0
    digest: Optional[str] = None
    error_kind: Optional[TransferErrorKind] = None
    error: Optional[str] = None

    def __post_init__(self) -> None:
        if self.success:
            if self.final_name is None or self.error_kind is not None:
                raise ValueError("Successful result needs a final name and no error kind")
        elif self.final_name is not None or self.error_kind is None:
            raise ValueError("Failed result needs an error kind and no final name")

    @classmethod
    def ok(cls, source_id: str, final_name: str, bytes_written: int, digest: str) -> "TransferResult":
        return cls(
            source_id=source_id,
            success=True,
            final_name=final_name,
            bytes_written=bytes_written,
            digest=digest,
        )

    @classmethod
    def failed(
        cls,
        source_id: str,
        kind: TransferErrorKind,
        error: str,
        bytes_written: int = 0,
        digest: Optional[str] = None,
    ) -> "TransferResult":
        return cls(
            source_id=source_id,
            success=False,
            bytes_written=bytes_written,
            digest=digest,
            error_kind=kind,
            error=error,
        )

    @property
    def is_cancelled(self) -> bool:
        return self.error_kind is TransferErrorKind.CANCELLED


@dataclass(slots=True)
class BatchManifest:
    """Mutable summary of one batch run.

    Owned by the batch coordinator while the run is in progress and handed
    to the caller afterwards. deletion_candidates lists source identities
    that were transferred and verified.
    """
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    deletion_candidates: list[str] = field(default_factory=list)
    results: list[TransferResult] = field(default_factory=list)
    cancelled: bool = False

    @property
    def done(self) -> int:
        return self.succeeded + self.failed

    @property
    def remaining(self) -> int:
        return self.total - self.done

    def record(self, result: TransferResult) -> None:
        """Record a terminal item result."""
        self.results.append(result)
        if result.success:
            self.succeeded += 1
            self.deletion_candidates.append(result.source_id)
        else:
            self.failed += 1

    def errors_by_kind(self) -> dict[TransferErrorKind, int]:
        counts: dict[TransferErrorKind, int] = {}
        for result in self.results:
            if result.error_kind is not None:
                counts[result.error_kind] = counts.get(result.error_kind, 0) + 1
        return counts

    def summary(self) -> dict[str, int]:
        return {
            "total": self.total,
            "done": self.done,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "bytes": sum(r.bytes_written for r in self.results if r.success),
        }
