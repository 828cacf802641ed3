"""Reconciler for the enrichment pipeline.

Merges one batch's ClassificationResult into the batch's bookmarks and into
the run's theme taxonomy. Pure with respect to the archive: it only returns
new bookmark records and grows the run-scoped ThemeTaxonomy.
"""

import logging
from collections.abc import Iterable, Sequence

from bookmark_archive.core.bookmark import Bookmark, Theme
from bookmark_archive.core.models import BookmarkAnnotation, ClassificationResult

logger = logging.getLogger(__name__)


class ThemeTaxonomy:
    """Themes a run adds to the archive, deduplicated by exact name.

    Seeded with the names already in the archive so a theme the archive
    knows is never redefined. Order of first appearance is kept.
    """

    def __init__(self, existing_names: Iterable[str] = ()):
        self._known: set[str] = set(existing_names)
        self._added: dict[str, Theme] = {}
        self._produced: dict[str, None] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._known

    def add(self, theme: Theme) -> bool:
        """Offer a theme; the first definition of a name wins.

        Returns:
            True if the theme is new to both the archive and the run.
        """
        self._produced.setdefault(theme.name, None)
        if theme.name in self._known:
            return False
        self._known.add(theme.name)
        self._added[theme.name] = theme
        return True

    @property
    def added(self) -> list[Theme]:
        """Themes new to the archive, in order of first appearance."""
        return list(self._added.values())

    @property
    def produced_names(self) -> list[str]:
        """Every distinct theme name the run reported, new or not."""
        return list(self._produced)


def merge_annotation(bookmark: Bookmark, annotation: BookmarkAnnotation) -> Bookmark:
    """Apply all four enrichment fields of an annotation to a bookmark."""
    return bookmark.with_enrichment(
        theme=annotation.theme,
        insight=annotation.insight,
        action=annotation.action,
        is_likely_thread=annotation.is_likely_thread,
    )


def reconcile_batch(
    batch: Sequence[Bookmark],
    result: ClassificationResult,
    taxonomy: ThemeTaxonomy,
) -> list[Bookmark]:
    """Merge a successful classification into a batch.

    Bookmarks the service did not annotate pass through unchanged and
    stay pending. Theme names used by annotations but missing from the
    reply's theme list get a placeholder theme.

    Args:
        batch: Bookmarks that were submitted, in submission order.
        result: Validated reply for that batch.
        taxonomy: Run-scoped taxonomy, updated in place.

    Returns:
        The batch's bookmarks, enriched where an annotation exists.
    """
    for spec in result.themes:
        taxonomy.add(spec.to_theme())

    merged: list[Bookmark] = []
    omitted: list[str] = []
    for bookmark in batch:
        annotation = result.annotation_for(bookmark.id)
        if annotation is None:
            omitted.append(bookmark.id)
            merged.append(bookmark)
            continue

        if annotation.theme:
            # No-op for names already defined
            taxonomy.add(Theme(name=annotation.theme))
        merged.append(merge_annotation(bookmark, annotation))

    if omitted:
        logger.warning(
            "Service omitted %d of %d bookmarks; they stay pending: %s",
            len(omitted),
            len(batch),
            ", ".join(omitted),
        )

    return merged
