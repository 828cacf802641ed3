"""Batcher for the enrichment pipeline.

Splits bookmarks into ordered, contiguous, fixed-size batches so each
classification request stays within the service's context window.
"""

from collections.abc import Sequence
from typing import TypeVar

T = TypeVar("T")

# Bookmarks per classification request
DEFAULT_BATCH_SIZE = 20


def make_batches(items: Sequence[T], batch_size: int = DEFAULT_BATCH_SIZE) -> list[list[T]]:
    """Split items into ceil(len(items) / batch_size) ordered batches.

    Every item appears in exactly one batch and order is preserved.
    Only the last batch may be shorter than batch_size. An empty input
    yields no batches.

    Args:
        items: Sequence to split.
        batch_size: Maximum items per batch (must be at least 1).

    Returns:
        List of batches.

    Raises:
        ValueError: If batch_size is less than 1.
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be at least 1, got {batch_size}")

    return [list(items[i : i + batch_size]) for i in range(0, len(items), batch_size)]
