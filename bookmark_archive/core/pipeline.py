"""Batch enrichment pipeline for Bookmark Archive.

Drives one analysis run end-to-end:
candidates → batcher → classification client → reconciler → archive store

Batches are classified strictly one after another with a cooldown in
between. A failed batch never stops the run: its bookmarks are carried
forward unchanged and the failure is recorded. The archive store is touched
once, when the run finishes, followed by a single commit.
"""

import asyncio
import logging
import time
from collections.abc import Iterable
from typing import Protocol

from bookmark_archive.core.archive_store import ArchiveStore
from bookmark_archive.core.batcher import DEFAULT_BATCH_SIZE, make_batches
from bookmark_archive.core.bookmark import Bookmark
from bookmark_archive.core.classification_client import Classifier
from bookmark_archive.core.config import Config
from bookmark_archive.core.exceptions import (
    ClassificationError,
    FailureKind,
    RunInProgressError,
)
from bookmark_archive.core.logger import get_batch_logger
from bookmark_archive.core.reconciler import ThemeTaxonomy, reconcile_batch
from bookmark_archive.core.retry import retry_async
from bookmark_archive.core.summary import BatchFailure, RunSummary, format_summary

logger = logging.getLogger(__name__)

# Seconds to wait between batches to stay under the service's rate limits
DEFAULT_BATCH_DELAY = 1.0


class ProgressObserver(Protocol):
    """Receives advisory progress updates; return values are ignored."""

    def on_progress(self, current: int, total: int) -> None: ...

    def on_complete(self, message: str) -> None: ...


class EnrichmentPipeline:
    """Enriches bookmarks with themes and insights, one batch at a time.

    The caller decides which bookmarks to analyze (normally
    store.pending()); the pipeline never selects candidates itself.

    Example:
        pipeline = EnrichmentPipeline(store, ClassificationClient())
        summary = await pipeline.run(store.pending())
    """

    def __init__(
        self,
        store: ArchiveStore,
        classifier: Classifier,
        batch_size: int = DEFAULT_BATCH_SIZE,
        batch_delay: float = DEFAULT_BATCH_DELAY,
        max_attempts: int = 1,
        retry_base_delay: float = 2.0,
    ):
        """Initialize pipeline.

        Args:
            store: Archive the run's results are merged into.
            classifier: Client used to classify each batch.
            batch_size: Bookmarks per classification request.
            batch_delay: Cooldown in seconds after every batch but the last.
            max_attempts: Attempts per batch for retryable failures.
            retry_base_delay: Initial backoff between attempts.
        """
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {batch_size}")
        if batch_delay < 0:
            raise ValueError(f"batch_delay must be non-negative, got {batch_delay}")
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")

        self.store = store
        self.classifier = classifier
        self.batch_size = batch_size
        self.batch_delay = batch_delay
        self.max_attempts = max_attempts
        self.retry_base_delay = retry_base_delay
        self._running = False

    @classmethod
    def from_config(
        cls,
        store: ArchiveStore,
        classifier: Classifier,
        config: Config,
    ) -> "EnrichmentPipeline":
        return cls(
            store,
            classifier,
            batch_size=config.batch_size,
            batch_delay=config.batch_delay,
            max_attempts=config.max_attempts,
        )

    @property
    def is_running(self) -> bool:
        return self._running

    async def run(
        self,
        candidates: Iterable[Bookmark],
        observer: ProgressObserver | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> RunSummary:
        """Analyze the given bookmarks and merge the results into the store.

        Args:
            candidates: Bookmarks to analyze, in submission order.
            observer: Optional progress observer.
            cancel_event: When set, no further batch is submitted; results
                of batches already classified are still committed.

        Returns:
            RunSummary with counts and per-batch failures.

        Raises:
            RunInProgressError: If a run is already active on this pipeline.
        """
        if self._running:
            raise RunInProgressError("An analysis run is already in progress")

        self._running = True
        try:
            return await self._run(list(candidates), observer, cancel_event)
        finally:
            self._running = False

    async def _run(
        self,
        candidates: list[Bookmark],
        observer: ProgressObserver | None,
        cancel_event: asyncio.Event | None,
    ) -> RunSummary:
        start = time.monotonic()
        summary = RunSummary(processed=len(candidates))

        batches = make_batches(candidates, self.batch_size)
        summary.batches_total = len(batches)

        if not batches:
            logger.info("No bookmarks to analyze")
            self._notify_complete(observer, format_summary(summary))
            return summary

        logger.info(
            "Processing %d bookmarks in %d batches",
            len(candidates),
            len(batches),
        )

        taxonomy = ThemeTaxonomy(theme.name for theme in self.store.themes)
        output: list[Bookmark] = []

        for index, batch in enumerate(batches):
            if cancel_event is not None and cancel_event.is_set():
                summary.cancelled = True
                logger.warning(
                    "Run cancelled before batch %d/%d", index + 1, len(batches)
                )
                break

            self._notify_progress(observer, index, len(batches))
            batch_logger = get_batch_logger(__name__, index + 1, len(batches))
            batch_logger.info("Classifying %d bookmarks", len(batch))

            try:
                result = await retry_async(
                    self.classifier.classify_batch,
                    batch,
                    max_attempts=self.max_attempts,
                    base_delay=self.retry_base_delay,
                )
            except ClassificationError as e:
                batch_logger.error("Batch failed (%s): %s", e.kind.value, e)
                summary.failures.append(
                    BatchFailure(
                        index=index,
                        kind=e.kind,
                        detail=str(e),
                        size=len(batch),
                        status_code=e.status_code,
                    )
                )
                output.extend(batch)
            except Exception as e:
                # Results of earlier batches must still reach the commit
                batch_logger.exception("Batch failed with unexpected error")
                summary.failures.append(
                    BatchFailure(
                        index=index,
                        kind=FailureKind.UNEXPECTED,
                        detail=f"{type(e).__name__}: {e}",
                        size=len(batch),
                    )
                )
                output.extend(batch)
            else:
                merged = reconcile_batch(batch, result, taxonomy)
                enriched = sum(
                    1 for old, new in zip(batch, merged) if new is not old and new.is_analyzed
                )
                summary.enriched += enriched
                output.extend(merged)
                batch_logger.info(
                    "Batch complete: %d/%d enriched", enriched, len(batch)
                )

            summary.batches_completed += 1

            if index < len(batches) - 1:
                await self._cooldown(cancel_event)

        if output:
            merge = self.store.apply_run(output, taxonomy.added)
            self.store.commit()
            logger.info(
                "Archive updated: %d bookmarks changed, %d themes added",
                merge.updated + merge.added,
                merge.themes_added,
            )

        summary.themes = len(taxonomy.produced_names)
        # Bookmarks never submitted because of a cancel count as well
        unsubmitted = candidates[len(output) :]
        summary.still_pending = sum(1 for b in output + unsubmitted if b.is_pending)
        summary.duration_seconds = time.monotonic() - start

        logger.info(
            "Run complete: processed=%d, themes=%d, failed_batches=%d, cancelled=%s",
            summary.processed,
            summary.themes,
            summary.failed_batches,
            summary.cancelled,
        )
        self._notify_complete(observer, format_summary(summary))
        return summary

    async def _cooldown(self, cancel_event: asyncio.Event | None) -> None:
        """Wait batch_delay seconds, returning early if cancelled."""
        if self.batch_delay <= 0:
            return
        if cancel_event is None:
            await asyncio.sleep(self.batch_delay)
            return
        try:
            await asyncio.wait_for(cancel_event.wait(), timeout=self.batch_delay)
        except asyncio.TimeoutError:
            pass

    @staticmethod
    def _notify_progress(
        observer: ProgressObserver | None, current: int, total: int
    ) -> None:
        if observer is None:
            return
        try:
            observer.on_progress(current, total)
        except Exception:
            logger.warning("Progress observer failed", exc_info=True)

    @staticmethod
    def _notify_complete(observer: ProgressObserver | None, message: str) -> None:
        if observer is None:
            return
        try:
            observer.on_complete(message)
        except Exception:
            logger.warning("Progress observer failed", exc_info=True)
