"""Batch coordinator - runs the transfer engine over an ordered item list."""
from __future__ import annotations

import logging
import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Callable, Optional, Sequence

from ..core.cancellation import CancellationToken
from ..core.config import MoverConfig
from ..core.models import PARTIAL_SUFFIX, BatchManifest, SourceItem, TransferResult
from ..core.protocols import DestinationContainer
from .transfer import TransferEngine


logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, int, int], None]
CompleteCallback = Callable[[BatchManifest], None]


def sweep_partials(destination: DestinationContainer) -> list[str]:
    """Delete leftover '.partial' children from an interrupted run.

    Returns:
        Names that were removed.
    """
    removed = []
    try:
        names = destination.list_names()
    except Exception as e:
        logger.warning("Could not list destination for stale partial files: %s", e)
        return removed

    for name in names:
        if not name.endswith(PARTIAL_SUFFIX):
            continue
        try:
            handle = destination.find_child(name)
            deleted = handle is not None and destination.delete(handle)
        except Exception as e:
            logger.warning("Could not remove stale partial file %s: %s", name, e)
            continue
        if deleted:
            removed.append(name)
        else:
            logger.warning("Could not remove stale partial file %s", name)
    if removed:
        logger.info("Removed %d stale partial file(s)", len(removed))
    return removed


class BatchCoordinator:
    """Transfers items in the order given and accumulates a manifest.

    With workers == 1 items run one after another on the caller's thread.
    With more workers a bounded thread pool is used; progress delivery is
    still serialized and done counts advance by exactly one per call.
    """

    def __init__(
        self,
        engine: TransferEngine,
        *,
        workers: int = 1,
        sweep_partials: bool = True,
    ):
        """Initialize the coordinator.

        Args:
            engine: Transfer engine shared by all items.
            workers: Concurrent transfers (1 = sequential).
            sweep_partials: Remove stale .partial children before starting.
        """
        if workers < 1:
            raise ValueError("Workers must be at least 1")
        self._engine = engine
        self._workers = workers
        self._sweep_partials = sweep_partials
        self._progress_lock = threading.Lock()

    @classmethod
    def from_config(cls, engine: TransferEngine, config: MoverConfig) -> "BatchCoordinator":
        return cls(engine, workers=config.workers, sweep_partials=config.sweep_partials)

    def run(
        self,
        items: Sequence[SourceItem],
        destination: DestinationContainer,
        on_progress: Optional[ProgressCallback] = None,
        on_complete: Optional[CompleteCallback] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> BatchManifest:
        """Run the batch.

        Args:
            items: Items in the order they should be transferred.
            destination: Target container.
            on_progress: Called as (done, total, succeeded, failed) after each item.
            on_complete: Called once with the final manifest.
            cancel: Cooperative cancellation token.

        Returns:
            The manifest; deletion_candidates lists verified source identities.
        """
        items = list(items)
        manifest = BatchManifest(total=len(items))

        if items and self._sweep_partials:
            sweep_partials(destination)

        logger.info("Starting batch of %d item(s) with %d worker(s)", len(items), self._workers)

        if self._workers == 1 or len(items) <= 1:
            self._run_sequential(items, destination, manifest, on_progress, cancel)
        else:
            self._run_pooled(items, destination, manifest, on_progress, cancel)

        logger.info(
            "Batch finished: %d succeeded, %d failed, %d total%s",
            manifest.succeeded,
            manifest.failed,
            manifest.total,
            " (cancelled)" if manifest.cancelled else "",
        )
        if on_complete is not None:
            on_complete(manifest)
        return manifest

    def _run_sequential(
        self,
        items: list[SourceItem],
        destination: DestinationContainer,
        manifest: BatchManifest,
        on_progress: Optional[ProgressCallback],
        cancel: Optional[CancellationToken],
    ) -> None:
        for item in items:
            if cancel is not None and cancel.is_cancelled:
                manifest.cancelled = True
                return

            result = self._engine.transfer(item, destination, cancel)
            self._record(manifest, result, on_progress)

            if result.is_cancelled:
                manifest.cancelled = True
                return

    def _run_pooled(
        self,
        items: list[SourceItem],
        destination: DestinationContainer,
        manifest: BatchManifest,
        on_progress: Optional[ProgressCallback],
        cancel: Optional[CancellationToken],
    ) -> None:
        # Items are fed to the pool no faster than workers free up, so a
        # cancellation stops new items from starting.
        position = {item.identity: i for i, item in enumerate(items)}
        pending = iter(items)
        running: set[Future[TransferResult]] = set()

        def submit_next(executor: ThreadPoolExecutor) -> bool:
            if cancel is not None and cancel.is_cancelled:
                return False
            item = next(pending, None)
            if item is None:
                return False
            running.add(executor.submit(self._engine.transfer, item, destination, cancel))
            return True

        with ThreadPoolExecutor(max_workers=self._workers) as executor:
            for _ in range(self._workers):
                if not submit_next(executor):
                    break

            while running:
                finished, _ = wait(running, return_when=FIRST_COMPLETED)
                for future in finished:
                    running.discard(future)
                    result = future.result()
                    self._record(manifest, result, on_progress)
                    if result.is_cancelled:
                        manifest.cancelled = True
                if not manifest.cancelled:
                    while len(running) < self._workers and submit_next(executor):
                        pass

        if cancel is not None and cancel.is_cancelled:
            manifest.cancelled = True
        manifest.deletion_candidates.sort(key=lambda identity: position.get(identity, len(items)))

    def _record(
        self,
        manifest: BatchManifest,
        result: TransferResult,
        on_progress: Optional[ProgressCallback],
    ) -> None:
        """Record one terminal result and deliver progress (single delivery path)."""
        with self._progress_lock:
            manifest.record(result)
            if on_progress is not None:
                on_progress(manifest.done, manifest.total, manifest.succeeded, manifest.failed)
