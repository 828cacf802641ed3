"""JSON bookmark import for Bookmark Archive.

Parses bookmark exports (a file, text pasted on stdin, or already-decoded
data) into Bookmark instances and adds them to the archive.

Accepted shapes:
- a JSON array of bookmark objects
- an archive snapshot object with a "bookmarks" array and an optional
  "themes" array (as written by the JSON exporter)

Import only ever adds: an id already in the archive is never overwritten,
and neither is a theme name.
"""

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Union

from bookmark_archive.core.archive_store import ArchiveStore
from bookmark_archive.core.bookmark import Bookmark, Theme
from bookmark_archive.core.exceptions import ParseError

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    """Statistics from one import.

    Attributes:
        received: Number of records in the input
        added: Number of bookmarks added to the archive
        duplicates: Records skipped because their id was already present
        themes_added: Themes new to the archive's taxonomy
    """

    received: int = 0
    added: int = 0
    duplicates: int = 0
    themes_added: int = 0


@dataclass
class ImportPayload:
    """Parsed import content: bookmarks plus any themes a snapshot carried."""

    bookmarks: list[Bookmark] = field(default_factory=list)
    themes: list[Theme] = field(default_factory=list)


def _decode(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(f"Invalid JSON in bookmark import: {e}")


def _parse_themes(data: Any) -> list[Theme]:
    if data is None:
        return []
    if not isinstance(data, list):
        raise ParseError("Snapshot 'themes' must be a JSON array")

    themes = []
    for i, item in enumerate(data):
        if not isinstance(item, dict):
            raise ParseError(f"Theme at index {i} is not an object")
        try:
            themes.append(Theme.from_dict(item))
        except KeyError as e:
            raise ParseError(f"Failed to parse theme at index {i}: missing {e}")
    return themes


def parse_import(source: Union[str, Path, list, dict]) -> ImportPayload:
    """Parse a bookmark export or archive snapshot.

    Args:
        source: A file path (Path), raw JSON text (str, e.g. pasted from
            the clipboard), or already-decoded JSON data.

    Returns:
        ImportPayload with bookmarks in input order, and the snapshot's
        themes when the input is a snapshot object.

    Raises:
        ParseError: If the JSON is malformed or a record is invalid.
        FileNotFoundError: If the source file doesn't exist.
    """
    if isinstance(source, str):
        data = _decode(source)
    elif isinstance(source, Path):
        path = source
        if not path.exists():
            raise FileNotFoundError(f"Import file not found: {path}")
        data = _decode(path.read_text(encoding="utf-8"))
    else:
        data = source

    themes: list[Theme] = []
    if isinstance(data, dict):
        if "bookmarks" not in data:
            raise ParseError("Import object must contain a 'bookmarks' array")
        themes = _parse_themes(data.get("themes"))
        data = data["bookmarks"]

    if not isinstance(data, list):
        raise ParseError("Bookmark import must be a JSON array")

    bookmarks = []
    for i, item in enumerate(data):
        if not isinstance(item, dict):
            raise ParseError(f"Bookmark at index {i} is not an object")
        try:
            bookmarks.append(Bookmark.from_dict(item))
        except (KeyError, TypeError) as e:
            raise ParseError(f"Failed to parse bookmark at index {i}: {e}")

    return ImportPayload(bookmarks=bookmarks, themes=themes)


def parse_bookmarks(source: Union[str, Path, list, dict]) -> list[Bookmark]:
    """Parse a bookmark export, ignoring any snapshot themes."""
    return parse_import(source).bookmarks


def import_bookmarks(
    store: ArchiveStore,
    bookmarks: list[Bookmark],
    themes: Iterable[Theme] = (),
) -> ImportResult:
    """Add bookmarks whose id is not yet in the archive, then commit once.

    Repeated ids within the same input keep their first occurrence.
    Themes are added unless the name already exists. A theme named by an
    added bookmark but defined nowhere gets a placeholder entry so every
    bookmark theme stays in the taxonomy.
    """
    result = ImportResult(received=len(bookmarks))

    for theme in themes:
        if store.add_theme_if_absent(theme):
            result.themes_added += 1

    for bookmark in bookmarks:
        if store.insert_if_absent(bookmark):
            result.added += 1
            if bookmark.theme and store.add_theme_if_absent(Theme(bookmark.theme)):
                result.themes_added += 1
        else:
            result.duplicates += 1
            logger.debug("Skipping duplicate bookmark: %s", bookmark.id)

    if result.added or result.themes_added:
        store.commit()

    logger.info(
        "Import complete: %d received, %d added, %d duplicates, %d themes added",
        result.received,
        result.added,
        result.duplicates,
        result.themes_added,
    )
    return result
