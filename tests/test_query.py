"""Tests for search, filtering and statistics."""

from datetime import datetime, timezone

import pytest

from bookmark_archive.core.archive_store import ArchiveStore
from bookmark_archive.core.bookmark import Bookmark, Theme
from bookmark_archive.core.query import archive_stats, filter_bookmarks, parse_date


def _bookmark(id, text="", author="", date="", theme=None, thread=None):
    bookmark = Bookmark(id=id, text=text, author=author, date=date)
    if theme is not None:
        bookmark = bookmark.with_enrichment(
            theme=theme, insight="i", action="a", is_likely_thread=bool(thread)
        )
    return bookmark


@pytest.fixture
def bookmarks() -> list[Bookmark]:
    return [
        _bookmark("1", "Deep work matters", "Cal", "2024-01-10T09:00:00Z", "Focus"),
        _bookmark(
            "2", "Compounding knowledge", "naval", "Mon Jan 15 10:00:00 +0000 2024", "Growth", True
        ),
        _bookmark("3", "No date on this one", "anon"),
        _bookmark("4", "Focus on one thing", "bob", "2024-01-12", "Focus"),
    ]


class TestParseDate:
    """Tests for parse_date()."""

    def test_iso_with_z(self):
        expected = datetime(2024, 1, 10, 9, tzinfo=timezone.utc)
        assert parse_date("2024-01-10T09:00:00Z") == expected

    def test_twitter_format(self):
        assert parse_date("Mon Jan 15 10:00:00 +0000 2024") == datetime(
            2024, 1, 15, 10, tzinfo=timezone.utc
        )

    def test_naive_date_is_utc(self):
        assert parse_date("2024-01-12").tzinfo == timezone.utc

    @pytest.mark.parametrize("value", ["", "yesterday", "15/01/2024"])
    def test_unrecognized(self, value):
        assert parse_date(value) is None


class TestFilterBookmarks:
    """Tests for filter_bookmarks()."""

    def test_default_sort_newest_first_undated_last(self, bookmarks):
        assert [b.id for b in filter_bookmarks(bookmarks)] == ["2", "4", "1", "3"]

    def test_search_matches_text_case_insensitive(self, bookmarks):
        assert [b.id for b in filter_bookmarks(bookmarks, search="FOCUS")] == ["4"]

    def test_search_matches_author(self, bookmarks):
        assert [b.id for b in filter_bookmarks(bookmarks, search="nav")] == ["2"]

    def test_theme_filter(self, bookmarks):
        result = filter_bookmarks(bookmarks, theme="Focus")
        assert [b.id for b in result] == ["4", "1"]

    def test_theme_and_search_combined(self, bookmarks):
        assert [b.id for b in filter_bookmarks(bookmarks, search="deep", theme="Focus")] == ["1"]

    def test_sort_by_author(self, bookmarks):
        result = filter_bookmarks(bookmarks, sort_by="author")
        assert [b.author for b in result] == ["anon", "bob", "Cal", "naval"]

    def test_sort_by_theme_puts_pending_first(self, bookmarks):
        result = filter_bookmarks(bookmarks, sort_by="theme")
        assert [b.theme for b in result] == [None, "Focus", "Focus", "Growth"]

    def test_unknown_sort_key(self, bookmarks):
        with pytest.raises(ValueError):
            filter_bookmarks(bookmarks, sort_by="likes")

    def test_does_not_modify_input(self, bookmarks):
        ids = [b.id for b in bookmarks]
        filter_bookmarks(bookmarks, sort_by="author")
        assert [b.id for b in bookmarks] == ids


class TestArchiveStats:
    """Tests for archive_stats()."""

    def test_counts(self, bookmarks):
        store = ArchiveStore(bookmarks, [Theme("Focus"), Theme("Growth")])
        stats = archive_stats(store)
        assert stats.total == 4
        assert stats.themes == 2
        assert stats.analyzed == 3
        assert stats.pending == 1
        assert stats.threads == 1

    def test_empty_archive(self):
        stats = archive_stats(ArchiveStore())
        assert (stats.total, stats.analyzed, stats.pending, stats.threads) == (0, 0, 0, 0)
