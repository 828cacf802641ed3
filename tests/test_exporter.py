"""Tests for archive exports."""

import json
from datetime import date

import pytest

from bookmark_archive.core.archive_store import ArchiveStore
from bookmark_archive.core.bookmark import Bookmark, Theme
from bookmark_archive.output.exporter import (
    TEMPLATES_DIR,
    digest_sections,
    export_filename,
    export_json,
    render_digest,
    write_export,
)
from bookmark_archive.sources.json_import import parse_bookmarks


@pytest.fixture
def store() -> ArchiveStore:
    """Archive with two themes, one thread and one pending bookmark."""
    bookmarks = [
        Bookmark(
            id="1",
            text="Say no to almost everything.",
            author="naval",
            url="https://twitter.com/naval/status/1",
        ).with_enrichment(
            theme="Focus",
            insight="Saying no protects deep work",
            action="Decline one meeting this week",
            is_likely_thread=True,
        ),
        Bookmark(
            id="2",
            text="Compounding works on skills too.",
            author="paulg",
            url="https://twitter.com/paulg/status/2",
        ).with_enrichment(
            theme="Growth", insight="Small gains add up", action="", is_likely_thread=False
        ),
        Bookmark(id="3", text="Not analyzed yet", author="someone"),
    ]
    themes = [
        Theme("Growth", "Getting better over time", "#00ff88"),
        Theme("Focus", "Protecting attention", "#ff6b6b"),
        Theme("Empty", "No bookmarks here"),
    ]
    return ArchiveStore(bookmarks, themes)


class TestExportJson:
    """Tests for the raw JSON snapshot."""

    def test_contains_bookmarks_and_themes(self, store):
        data = json.loads(export_json(store))
        assert [b["id"] for b in data["bookmarks"]] == ["1", "2", "3"]
        assert [t["name"] for t in data["themes"]] == ["Growth", "Focus", "Empty"]
        assert data["bookmarks"][0]["isLikelyThread"] is True

    def test_pending_bookmark_has_no_enrichment(self, store):
        data = json.loads(export_json(store))
        assert "insight" not in data["bookmarks"][2]

    def test_snapshot_can_be_imported_back(self, store):
        bookmarks = parse_bookmarks(export_json(store))
        assert bookmarks == store.bookmarks

    def test_indented(self, store):
        assert export_json(store).startswith('{\n  "bookmarks"')


class TestDigest:
    """Tests for the markdown digest."""

    def test_template_exists(self):
        assert (TEMPLATES_DIR / "digest.md.j2").exists()

    def test_sections_follow_taxonomy_order(self, store):
        sections = digest_sections(store)
        assert [s.theme.name for s in sections] == ["Growth", "Focus"]
        assert [b.id for b in sections[1].bookmarks] == ["1"]

    def test_render_structure(self, store):
        digest = render_digest(store)

        assert digest.startswith("# Twitter Bookmarks Digest\n")
        assert digest.index("## Growth") < digest.index("## Focus")
        assert "Protecting attention" in digest
        assert "### naval\nSay no to almost everything." in digest
        assert "**Key Insight:** Saying no protects deep work" in digest
        assert "**Action Step:** Decline one meeting this week" in digest
        assert "[View Tweet](https://twitter.com/naval/status/1)" in digest
        assert digest.count("---") == 2

    def test_thread_marker_only_for_threads(self, store):
        digest = render_digest(store)
        assert digest.count("🧵 *Likely a thread - check full conversation*") == 1

    def test_empty_action_omitted(self, store):
        growth = render_digest(store).split("## Focus")[0]
        assert "**Action Step:**" not in growth

    def test_pending_and_empty_themes_left_out(self, store):
        digest = render_digest(store)
        assert "Not analyzed yet" not in digest
        assert "## Empty" not in digest

    def test_empty_archive(self):
        assert render_digest(ArchiveStore()).strip() == "# Twitter Bookmarks Digest"


class TestWriteExport:
    """Tests for export files."""

    @pytest.mark.parametrize(
        "fmt,expected",
        [
            ("json", "bookmarks-2024-03-05.json"),
            ("markdown", "newsletter-content-2024-03-05.md"),
        ],
    )
    def test_filename(self, fmt, expected):
        assert export_filename(fmt, date(2024, 3, 5)) == expected

    def test_writes_json_file(self, store, tmp_path):
        output_dir = tmp_path / "exports"
        path = write_export(store, output_dir, "json", today=date(2024, 3, 5))

        assert path == output_dir / "bookmarks-2024-03-05.json"
        assert json.loads(path.read_text(encoding="utf-8"))["themes"][0]["name"] == "Growth"

    def test_writes_markdown_file(self, store, tmp_path):
        path = write_export(store, tmp_path, "markdown", today=date(2024, 3, 5))
        assert path.read_text(encoding="utf-8") == render_digest(store)

    def test_unknown_format(self, store, tmp_path):
        with pytest.raises(ValueError):
            write_export(store, tmp_path, "csv")

    def test_export_does_not_modify_archive(self, store, tmp_path):
        before = (store.bookmarks, store.themes)
        write_export(store, tmp_path, "markdown")
        assert (store.bookmarks, store.themes) == before
