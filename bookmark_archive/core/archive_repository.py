"""Archive Repository for Bookmark Archive.

Persists the archive ({bookmarks, themes}) to a JSON file so it survives
restarts. The repository never decides when to save: it subscribes to the
store's commit() notifications.
"""

import json
import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any

from bookmark_archive.core.archive_store import ArchiveStore
from bookmark_archive.core.bookmark import Bookmark, Theme
from bookmark_archive.core.exceptions import ParseError

logger = logging.getLogger(__name__)


class ArchiveRepository:
    """Loads and saves the archive as a JSON document.

    Attributes:
        archive_file: Path to the JSON archive file.
    """

    def __init__(self, archive_file: str | Path):
        """Initialize ArchiveRepository with a file path.

        Args:
            archive_file: Path to the JSON file for archive persistence.
        """
        self.archive_file = Path(archive_file)

    def load(self) -> tuple[list[Bookmark], list[Theme]]:
        """Load bookmarks and themes from the archive file.

        Returns:
            (bookmarks, themes), or two empty lists if the file doesn't exist.

        Raises:
            ParseError: If the file is not a valid archive document.
        """
        if not self.archive_file.exists():
            logger.info("No archive at %s, starting empty", self.archive_file)
            return [], []

        try:
            with open(self.archive_file, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ParseError(f"Invalid JSON in archive file: {e}")

        if not isinstance(data, dict):
            raise ParseError("Archive file must contain a JSON object")

        try:
            bookmarks = [Bookmark.from_dict(item) for item in data.get("bookmarks") or []]
            themes = [Theme.from_dict(item) for item in data.get("themes") or []]
        except (KeyError, TypeError, AttributeError) as e:
            raise ParseError(f"Malformed archive file {self.archive_file}: {e}")

        logger.info(
            "Loaded %d bookmarks and %d themes from %s",
            len(bookmarks),
            len(themes),
            self.archive_file,
        )
        return bookmarks, themes

    def load_store(self) -> ArchiveStore:
        """Load the archive into a new store that saves back here on commit."""
        bookmarks, themes = self.load()
        store = ArchiveStore(bookmarks, themes)
        self.attach(store)
        return store

    def attach(self, store: ArchiveStore) -> None:
        """Persist the store every time it commits."""
        store.subscribe(self.save)

    def save(self, store: ArchiveStore) -> None:
        """Write the store's bookmarks and themes to the archive file.

        Creates parent directories if they don't exist. The previous
        archive stays intact if writing fails part way.
        """
        document: dict[str, Any] = {
            "bookmarks": [b.to_dict() for b in store.bookmarks],
            "themes": [t.to_dict() for t in store.themes],
            "last_updated": datetime.now().isoformat(),
        }

        self.archive_file.parent.mkdir(parents=True, exist_ok=True)

        # Write to temp file first, then atomically rename
        fd, temp_path = tempfile.mkstemp(
            dir=self.archive_file.parent,
            prefix=".archive_",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2, ensure_ascii=False)
            os.replace(temp_path, self.archive_file)
        except Exception:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
            raise

        logger.debug("Saved archive to %s", self.archive_file)
