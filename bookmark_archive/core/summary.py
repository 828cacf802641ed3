"""Run summary module for Bookmark Archive.

Collects the outcome of one enrichment run and formats it for the user.
"""

from dataclasses import dataclass, field

from bookmark_archive.core.exceptions import FailureKind


@dataclass
class BatchFailure:
    """A batch that could not be classified.

    Attributes:
        index: 0-based position of the batch in the run
        kind: Failure category
        detail: Error message for logging
        size: Number of bookmarks left unchanged
        status_code: HTTP status, when the service answered
    """

    index: int
    kind: FailureKind
    detail: str
    size: int = 0
    status_code: int | None = None

    def describe(self) -> str:
        status = f" [{self.status_code}]" if self.status_code is not None else ""
        return f"Batch {self.index + 1}: {self.kind.value}{status}: {self.detail}"


@dataclass
class RunSummary:
    """Outcome of one enrichment run.

    processed is the number of candidates handed to the run, including
    any left unsubmitted by a cancel.
    """

    processed: int = 0
    themes: int = 0
    enriched: int = 0
    still_pending: int = 0
    batches_total: int = 0
    batches_completed: int = 0
    failures: list[BatchFailure] = field(default_factory=list)
    cancelled: bool = False
    duration_seconds: float = 0.0

    @property
    def failed_batches(self) -> int:
        return len(self.failures)

    @property
    def succeeded(self) -> bool:
        """True when every batch ran and none failed."""
        return not self.failures and not self.cancelled


def format_summary(summary: RunSummary) -> str:
    """Format a RunSummary as a human-readable string.

    Args:
        summary: The summary to format.

    Returns:
        Multi-line message for the progress observer / console.
    """
    if summary.batches_total == 0:
        return "Nothing to analyze: no bookmarks selected."

    title = "Analysis cancelled." if summary.cancelled else "Analysis complete!"
    lines = [
        f"{title} Processed {summary.processed} bookmarks into {summary.themes} themes."
    ]
    lines.append(
        f"Enriched: {summary.enriched}, still pending: {summary.still_pending}"
    )

    if summary.cancelled:
        lines.append(
            f"Stopped after {summary.batches_completed} of {summary.batches_total} batches."
        )

    if summary.failures:
        lines.append(
            f"❌ {summary.failed_batches} of {summary.batches_total} batches failed. "
            "Run analyze again to retry pending bookmarks."
        )
        for failure in summary.failures[:10]:
            lines.append(f"  - {failure.describe()}")
        if len(summary.failures) > 10:
            lines.append(f"  ... and {len(summary.failures) - 10} more")

    if summary.duration_seconds > 0:
        lines.append(f"⏱️ {summary.duration_seconds:.1f}s")

    return "\n".join(lines)
