"""Archive exports for Bookmark Archive.

Two read-only views of the archive:
- a raw JSON snapshot ({bookmarks, themes}) that the importer accepts back
- a markdown digest grouped by theme, rendered with a Jinja2 template
"""

import json
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Literal

from jinja2 import Environment, FileSystemLoader

from bookmark_archive.core.archive_store import ArchiveStore
from bookmark_archive.core.bookmark import Bookmark, Theme

# Path to templates directory
TEMPLATES_DIR = Path(__file__).parent / "templates"

ExportFormat = Literal["json", "markdown"]


@dataclass
class DigestSection:
    theme: Theme
    bookmarks: list[Bookmark]


def _create_jinja_env() -> Environment:
    """Create and configure Jinja2 environment."""
    return Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


def export_json(store: ArchiveStore) -> str:
    """Serialize the whole archive as indented JSON."""
    document = {
        "bookmarks": [b.to_dict() for b in store.bookmarks],
        "themes": [t.to_dict() for t in store.themes],
    }
    return json.dumps(document, indent=2, ensure_ascii=False)


def digest_sections(store: ArchiveStore) -> list[DigestSection]:
    """Group bookmarks under their theme, in taxonomy order.

    Themes with no bookmarks are left out, as are bookmarks whose
    theme is not in the taxonomy.
    """
    sections = []
    for theme in store.themes:
        members = [b for b in store.bookmarks if b.theme == theme.name]
        if members:
            sections.append(DigestSection(theme=theme, bookmarks=members))
    return sections


def render_digest(store: ArchiveStore) -> str:
    """Render the themed markdown digest."""
    template = _create_jinja_env().get_template("digest.md.j2")
    return template.render(sections=digest_sections(store))


def export_filename(fmt: ExportFormat, today: date) -> str:
    if fmt == "json":
        return f"bookmarks-{today.isoformat()}.json"
    return f"newsletter-content-{today.isoformat()}.md"


def write_export(
    store: ArchiveStore,
    output_dir: Path,
    fmt: ExportFormat,
    today: date | None = None,
) -> Path:
    """Write an export file named after the current date.

    Args:
        store: Archive to export.
        output_dir: Directory for the file (created if missing).
        fmt: "json" for the raw snapshot, "markdown" for the digest.
        today: Date used in the filename (defaults to today).

    Returns:
        Path of the written file.

    Raises:
        ValueError: If fmt is not a known format.
    """
    if fmt == "json":
        content = export_json(store)
    elif fmt == "markdown":
        content = render_digest(store)
    else:
        raise ValueError(f"Unknown export format: {fmt}")

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / export_filename(fmt, today or date.today())
    path.write_text(content, encoding="utf-8")
    return path
