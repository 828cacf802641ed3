"""In-memory Archive Store for Bookmark Archive.

Holds the bookmark set and the theme taxonomy in insertion order.
Changes become visible to persistence only through commit(), which
notifies subscribed listeners once per logical unit of work.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace

from bookmark_archive.core.bookmark import Bookmark, Theme

logger = logging.getLogger(__name__)

CommitListener = Callable[["ArchiveStore"], None]


@dataclass
class MergeStats:
    """Outcome of merging a run's output into the store.

    Attributes:
        updated: Existing bookmarks whose record changed
        added: Bookmarks appended because their id was unknown
        themes_added: Themes appended because their name was unknown
    """

    updated: int = 0
    added: int = 0
    themes_added: int = 0


class ArchiveStore:
    """Ordered collection of bookmarks (keyed by id) and themes (keyed by name).

    The store is owned exclusively by whoever is mutating it; the
    enrichment pipeline touches it once per run, at completion.

    Example:
        >>> store = ArchiveStore()
        >>> store.insert_if_absent(Bookmark(id="1", text="hello"))
        True
        >>> store.insert_if_absent(Bookmark(id="1", text="other"))
        False
    """

    def __init__(
        self,
        bookmarks: Iterable[Bookmark] | None = None,
        themes: Iterable[Theme] | None = None,
    ):
        self._bookmarks: dict[str, Bookmark] = {}
        self._themes: dict[str, Theme] = {}
        self._listeners: list[CommitListener] = []

        for bookmark in bookmarks or []:
            self.insert_if_absent(bookmark)
        for theme in themes or []:
            self.add_theme_if_absent(theme)

    def __len__(self) -> int:
        return len(self._bookmarks)

    def __contains__(self, bookmark_id: object) -> bool:
        return bookmark_id in self._bookmarks

    @property
    def bookmarks(self) -> list[Bookmark]:
        """All bookmarks in archive order."""
        return list(self._bookmarks.values())

    @property
    def themes(self) -> list[Theme]:
        """All themes in order of first appearance."""
        return list(self._themes.values())

    def get(self, bookmark_id: str) -> Bookmark | None:
        return self._bookmarks.get(bookmark_id)

    def get_theme(self, name: str) -> Theme | None:
        return self._themes.get(name)

    def has_theme(self, name: str) -> bool:
        return name in self._themes

    def pending(self) -> list[Bookmark]:
        """Bookmarks that have not been analyzed yet, in archive order."""
        return [b for b in self._bookmarks.values() if b.is_pending]

    def insert_if_absent(self, bookmark: Bookmark) -> bool:
        """Add a bookmark unless its id is already present.

        Returns:
            True if the bookmark was added.
        """
        if bookmark.id in self._bookmarks:
            return False
        self._bookmarks[bookmark.id] = bookmark
        return True

    def add_theme_if_absent(self, theme: Theme) -> bool:
        """Add a theme unless one with the same name exists (first writer wins).

        Returns:
            True if the theme was added.
        """
        if theme.name in self._themes:
            return False
        self._themes[theme.name] = theme
        return True

    def apply_run(
        self,
        bookmarks: Iterable[Bookmark],
        themes: Iterable[Theme] = (),
    ) -> MergeStats:
        """Merge a finished run's output into the store.

        Existing bookmarks are replaced by id, unknown ids are appended,
        and the taxonomy is extended with themes whose name is new.
        Applying the same output twice leaves the store unchanged.
        """
        stats = MergeStats()

        for bookmark in bookmarks:
            existing = self._bookmarks.get(bookmark.id)
            if existing is None:
                stats.added += 1
            elif existing != bookmark:
                stats.updated += 1
            else:
                continue
            self._bookmarks[bookmark.id] = bookmark

        for theme in themes:
            if self.add_theme_if_absent(theme):
                stats.themes_added += 1

        logger.debug(
            "Merged run output: updated=%d, added=%d, themes_added=%d",
            stats.updated,
            stats.added,
            stats.themes_added,
        )
        return stats

    def delete(self, bookmark_ids: Iterable[str]) -> int:
        """Remove bookmarks by id. Themes are left in place.

        Returns:
            Number of bookmarks removed.
        """
        removed = 0
        for bookmark_id in bookmark_ids:
            if self._bookmarks.pop(bookmark_id, None) is not None:
                removed += 1
        return removed

    def tag(self, bookmark_ids: Iterable[str], theme_name: str) -> int:
        """Manually set the theme of the given bookmarks.

        Only the theme field changes; a theme record is created for an
        unknown name so every referenced theme stays in the taxonomy.

        Returns:
            Number of bookmarks re-tagged.
        """
        tagged = 0
        for bookmark_id in bookmark_ids:
            bookmark = self._bookmarks.get(bookmark_id)
            if bookmark is None:
                continue
            self._bookmarks[bookmark_id] = replace(bookmark, theme=theme_name)
            tagged += 1

        if tagged:
            self.add_theme_if_absent(Theme(name=theme_name))
        return tagged

    def subscribe(self, listener: CommitListener) -> None:
        """Register a callback invoked with the store on every commit."""
        self._listeners.append(listener)

    def commit(self) -> None:
        """Publish the current state to all listeners."""
        logger.debug(
            "Committing archive: %d bookmarks, %d themes",
            len(self._bookmarks),
            len(self._themes),
        )
        for listener in self._listeners:
            listener(self)
