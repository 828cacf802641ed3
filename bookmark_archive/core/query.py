"""Browsing helpers for Bookmark Archive.

Search, theme filtering, sorting and archive statistics used by the
list and stats commands.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Literal

from bookmark_archive.core.archive_store import ArchiveStore
from bookmark_archive.core.bookmark import Bookmark

SortKey = Literal["date", "author", "theme"]

ALL_THEMES = "all"

# Twitter's classic created_at format, e.g. "Wed Oct 10 20:19:24 +0000 2018"
_TWITTER_DATE_FORMAT = "%a %b %d %H:%M:%S %z %Y"


@dataclass
class ArchiveStats:
    total: int = 0
    themes: int = 0
    analyzed: int = 0
    pending: int = 0
    threads: int = 0


def parse_date(value: str) -> datetime | None:
    """Parse an ISO-8601 or Twitter-style date; None if unrecognized."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        try:
            parsed = datetime.strptime(value, _TWITTER_DATE_FORMAT)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _sort_key_date(bookmark: Bookmark) -> tuple[int, float]:
    parsed = parse_date(bookmark.date)
    # Undated bookmarks go last
    if parsed is None:
        return (1, 0.0)
    return (0, -parsed.timestamp())


def filter_bookmarks(
    bookmarks: Iterable[Bookmark],
    search: str = "",
    theme: str = ALL_THEMES,
    sort_by: SortKey = "date",
) -> list[Bookmark]:
    """Filter and sort bookmarks for display.

    Args:
        bookmarks: Bookmarks to filter.
        search: Case-insensitive substring matched against text and author.
        theme: Theme name to keep, or "all".
        sort_by: "date" (newest first), "author" or "theme".

    Returns:
        Matching bookmarks in display order.
    """
    needle = search.lower()
    matches = [
        b
        for b in bookmarks
        if (not needle or needle in b.text.lower() or needle in b.author.lower())
        and (theme == ALL_THEMES or b.theme == theme)
    ]

    if sort_by == "date":
        matches.sort(key=_sort_key_date)
    elif sort_by == "author":
        matches.sort(key=lambda b: b.author.lower())
    elif sort_by == "theme":
        matches.sort(key=lambda b: (b.theme or "").lower())
    else:
        raise ValueError(f"Unknown sort key: {sort_by}")

    return matches


def archive_stats(store: ArchiveStore) -> ArchiveStats:
    bookmarks = store.bookmarks
    return ArchiveStats(
        total=len(bookmarks),
        themes=len(store.themes),
        analyzed=sum(1 for b in bookmarks if b.is_analyzed),
        pending=sum(1 for b in bookmarks if b.is_pending),
        threads=sum(1 for b in bookmarks if b.is_likely_thread),
    )
