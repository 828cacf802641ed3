"""Shared test fixtures for Bookmark Archive.

Provides bookmark factories, a scripted classifier standing in for the
Claude client, and temporary archive paths so tests never touch real data.
"""

from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

import pytest

from bookmark_archive.core.bookmark import Bookmark
from bookmark_archive.core.config import reset_config
from bookmark_archive.core.models import ClassificationResult


def annotate_all(
    batch: Sequence[Bookmark],
    theme: str = "General",
    description: str = "Everything else",
    color: str = "#123456",
) -> ClassificationResult:
    """Build a reply that annotates every bookmark in the batch with one theme."""
    return ClassificationResult.model_validate(
        {
            "themes": [{"name": theme, "description": description, "color": color}],
            "bookmarks": [
                {
                    "id": b.id,
                    "theme": theme,
                    "insight": f"Insight for {b.id}",
                    "action": f"Action for {b.id}",
                    "isLikelyThread": False,
                }
                for b in batch
            ],
        }
    )


class ScriptedClassifier:
    """Classifier that replays scripted outcomes, one per batch.

    Each outcome is an Exception (raised), a callable taking the batch,
    or a ClassificationResult. When the script runs out, every bookmark
    is annotated with the default theme.
    """

    def __init__(self, outcomes: Sequence[Any] = (), theme: str = "General"):
        self.outcomes = list(outcomes)
        self.theme = theme
        self.calls: list[list[str]] = []

    async def classify_batch(self, batch: Sequence[Bookmark]) -> ClassificationResult:
        self.calls.append([b.id for b in batch])
        outcome = self.outcomes.pop(0) if self.outcomes else None
        if isinstance(outcome, Exception):
            raise outcome
        if outcome is None:
            return annotate_all(batch, self.theme)
        if callable(outcome):
            return outcome(batch)
        return outcome


@pytest.fixture(autouse=True)
def reset_config_state():
    """Reset the cached configuration before and after each test."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def make_bookmarks() -> Callable[..., list[Bookmark]]:
    """Factory for n pending bookmarks with ids "1".."n"."""

    def _make(count: int, start: int = 1) -> list[Bookmark]:
        return [
            Bookmark(
                id=str(i),
                text=f"Post number {i} about productivity",
                author=f"user{i}",
                url=f"https://twitter.com/user{i}/status/{i}",
                date=f"2024-01-{(i % 28) + 1:02d}T10:00:00Z",
                engagement={"replies": i, "likes": i * 10},
            )
            for i in range(start, start + count)
        ]

    return _make


@pytest.fixture
def archive_file(tmp_path: Path) -> Path:
    """Path for a temporary archive file (not created)."""
    return tmp_path / "data" / "archive.json"


@pytest.fixture
def scripted_classifier() -> type[ScriptedClassifier]:
    """The ScriptedClassifier class, for building per-test scripts."""
    return ScriptedClassifier


@pytest.fixture
def annotate() -> Callable[..., ClassificationResult]:
    """Helper building a reply that annotates a whole batch."""
    return annotate_all
