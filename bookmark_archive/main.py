"""Main Entry Point for Bookmark Archive.

Imports saved posts, enriches them with Claude, and browses/exports the archive.

Usage:
    python -m bookmark_archive.main import bookmarks.json   # Import a JSON export
    pbpaste | python -m bookmark_archive.main import -      # Import pasted JSON
    python -m bookmark_archive.main analyze                 # Analyze pending bookmarks
    python -m bookmark_archive.main analyze --all           # Re-analyze everything
    python -m bookmark_archive.main export markdown         # Write themed digest
    python -m bookmark_archive.main list --theme Productivity
    python -m bookmark_archive.main stats
    python -m bookmark_archive.main tag --theme "AI Tools" 123 456
    python -m bookmark_archive.main delete 123 456
"""

import argparse
import asyncio
import signal
import sys
from dataclasses import replace
from pathlib import Path

from bookmark_archive.core.archive_repository import ArchiveRepository
from bookmark_archive.core.archive_store import ArchiveStore
from bookmark_archive.core.bookmark import Bookmark
from bookmark_archive.core.classification_client import ClassificationClient, Classifier
from bookmark_archive.core.config import Config, get_config
from bookmark_archive.core.exceptions import ConfigurationError, ParseError
from bookmark_archive.core.logger import get_logger, setup_logging
from bookmark_archive.core.pipeline import EnrichmentPipeline
from bookmark_archive.core.query import ALL_THEMES, archive_stats, filter_bookmarks
from bookmark_archive.core.summary import RunSummary
from bookmark_archive.output.exporter import write_export
from bookmark_archive.sources.json_import import import_bookmarks, parse_import

logger = get_logger(__name__)


class ConsoleProgress:
    """Progress observer that reports batches on stderr and the summary on stdout."""

    def on_progress(self, current: int, total: int) -> None:
        print(f"Analyzing batch {current + 1}/{total}...", file=sys.stderr)

    def on_complete(self, message: str) -> None:
        print(message)


async def run_analysis(
    store: ArchiveStore,
    candidates: list[Bookmark],
    config: Config,
    classifier: Classifier | None = None,
) -> RunSummary:
    """Run the enrichment pipeline, stopping between batches on SIGINT/SIGTERM.

    Args:
        store: Archive to enrich (saved on completion).
        candidates: Bookmarks to analyze.
        config: Application configuration.
        classifier: Classifier override; defaults to the Claude client.

    Returns:
        RunSummary from the pipeline.
    """
    cancel_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    def signal_handler(sig: int) -> None:
        logger.info("Received signal %s, stopping after the current batch...", sig)
        cancel_event.set()

    registered = []
    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, lambda s=sig: signal_handler(s))
            registered.append(sig)
        except (NotImplementedError, RuntimeError):
            # Windows / non-main thread
            pass

    try:
        pipeline = EnrichmentPipeline.from_config(
            store,
            classifier or ClassificationClient.from_config(config),
            config,
        )
        return await pipeline.run(candidates, ConsoleProgress(), cancel_event)
    finally:
        for sig in registered:
            loop.remove_signal_handler(sig)


def create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser.

    Returns:
        Configured ArgumentParser instance.
    """
    parser = argparse.ArgumentParser(
        prog="bookmark-archive",
        description="Import, enrich and export saved social-media bookmarks.",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    import_parser = subparsers.add_parser(
        "import", help="Import bookmarks from a JSON file or stdin"
    )
    import_parser.add_argument(
        "source",
        nargs="?",
        default="-",
        help="JSON file to import, or '-' to read pasted JSON from stdin (default)",
    )

    analyze_parser = subparsers.add_parser(
        "analyze", help="Classify bookmarks into themes with insights"
    )
    analyze_parser.add_argument(
        "--all",
        action="store_true",
        help="Re-analyze every bookmark, not only pending ones",
    )
    analyze_parser.add_argument(
        "--ids",
        nargs="+",
        metavar="ID",
        help="Analyze only these bookmark ids",
    )
    analyze_parser.add_argument(
        "--batch-size",
        type=int,
        default=None,
        metavar="N",
        help="Bookmarks per request (default: from config)",
    )
    analyze_parser.add_argument(
        "--delay",
        type=float,
        default=None,
        metavar="SECONDS",
        help="Cooldown between batches (default: from config)",
    )
    analyze_parser.add_argument(
        "--limit",
        type=int,
        default=None,
        metavar="N",
        help="Limit number of bookmarks to analyze",
    )

    export_parser = subparsers.add_parser("export", help="Export the archive")
    export_parser.add_argument("format", choices=["json", "markdown"])
    export_parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        metavar="DIR",
        help="Directory for the export file (default: from config)",
    )

    list_parser = subparsers.add_parser("list", help="List bookmarks")
    list_parser.add_argument("--search", default="", help="Match text or author")
    list_parser.add_argument("--theme", default=ALL_THEMES, help="Only this theme")
    list_parser.add_argument(
        "--sort", choices=["date", "author", "theme"], default="date"
    )
    list_parser.add_argument("--limit", type=int, default=None, metavar="N")

    subparsers.add_parser("stats", help="Show archive statistics")

    delete_parser = subparsers.add_parser("delete", help="Delete bookmarks by id")
    delete_parser.add_argument("ids", nargs="+", metavar="ID")

    tag_parser = subparsers.add_parser("tag", help="Set the theme of bookmarks")
    tag_parser.add_argument("--theme", required=True, help="Theme name to assign")
    tag_parser.add_argument("ids", nargs="+", metavar="ID")

    return parser


def _select_candidates(store: ArchiveStore, parsed_args: argparse.Namespace) -> list[Bookmark]:
    if parsed_args.ids:
        candidates = [b for b in (store.get(i) for i in parsed_args.ids) if b is not None]
    elif parsed_args.all:
        candidates = store.bookmarks
    else:
        candidates = store.pending()

    if parsed_args.limit is not None:
        candidates = candidates[: parsed_args.limit]
    return candidates


def _cmd_import(store: ArchiveStore, parsed_args: argparse.Namespace) -> int:
    source = sys.stdin.read() if parsed_args.source == "-" else Path(parsed_args.source)
    try:
        payload = parse_import(source)
    except (ParseError, FileNotFoundError) as e:
        print(f"Import failed: {e}", file=sys.stderr)
        return 1

    result = import_bookmarks(store, payload.bookmarks, payload.themes)
    print(
        f"Imported {result.added} of {result.received} bookmarks "
        f"({result.duplicates} already in archive)"
    )
    if result.themes_added:
        print(f"Added {result.themes_added} themes to the taxonomy")
    return 0


def _cmd_analyze(
    store: ArchiveStore, parsed_args: argparse.Namespace, config: Config
) -> int:
    overrides = {}
    if parsed_args.batch_size is not None:
        overrides["batch_size"] = parsed_args.batch_size
    if parsed_args.delay is not None:
        overrides["batch_delay"] = parsed_args.delay
    try:
        config = replace(config, **overrides)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    candidates = _select_candidates(store, parsed_args)
    summary = asyncio.run(run_analysis(store, candidates, config))
    return 0 if summary.succeeded else 1


def _cmd_export(store: ArchiveStore, parsed_args: argparse.Namespace, config: Config) -> int:
    output_dir = parsed_args.output_dir or config.export_dir
    path = write_export(store, output_dir, parsed_args.format)
    print(f"Exported to {path}")
    return 0


def _cmd_list(store: ArchiveStore, parsed_args: argparse.Namespace) -> int:
    bookmarks = filter_bookmarks(
        store.bookmarks,
        search=parsed_args.search,
        theme=parsed_args.theme,
        sort_by=parsed_args.sort,
    )
    if parsed_args.limit is not None:
        bookmarks = bookmarks[: parsed_args.limit]

    for bookmark in bookmarks:
        theme = f" [{bookmark.theme}]" if bookmark.theme else ""
        text = bookmark.text.replace("\n", " ")
        if len(text) > 80:
            text = text[:77] + "..."
        print(f"{bookmark.id}  @{bookmark.author}{theme}  {text}")
        if bookmark.insight:
            print(f"    💡 {bookmark.insight}")
    print(f"\n{len(bookmarks)} bookmarks")
    return 0


def _cmd_stats(store: ArchiveStore) -> int:
    stats = archive_stats(store)
    print("=== Archive ===")
    print(f"Total:    {stats.total}")
    print(f"Themes:   {stats.themes}")
    print(f"Analyzed: {stats.analyzed}")
    print(f"Pending:  {stats.pending}")
    print(f"Threads:  {stats.threads}")
    return 0


def main(args: list[str] | None = None) -> int:
    """Main entry point.

    Args:
        args: Command line arguments (defaults to sys.argv[1:]).

    Returns:
        Exit code (0 for success, 1 for errors).
    """
    parser = create_argument_parser()
    parsed_args = parser.parse_args(args)

    # Only analysis talks to the classification service
    require_api_key = parsed_args.command == "analyze"

    try:
        config = get_config(require_api_key=require_api_key)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    log_level = "DEBUG" if parsed_args.verbose else config.log_level
    setup_logging(log_level)

    repository = ArchiveRepository(config.archive_file)
    try:
        store = repository.load_store()
    except ParseError as e:
        print(f"Could not load archive: {e}", file=sys.stderr)
        return 1

    if parsed_args.command == "import":
        return _cmd_import(store, parsed_args)
    if parsed_args.command == "analyze":
        return _cmd_analyze(store, parsed_args, config)
    if parsed_args.command == "export":
        return _cmd_export(store, parsed_args, config)
    if parsed_args.command == "list":
        return _cmd_list(store, parsed_args)
    if parsed_args.command == "stats":
        return _cmd_stats(store)
    if parsed_args.command == "delete":
        removed = store.delete(parsed_args.ids)
        store.commit()
        print(f"Deleted {removed} bookmarks")
        return 0
    if parsed_args.command == "tag":
        tagged = store.tag(parsed_args.ids, parsed_args.theme)
        store.commit()
        print(f"Tagged {tagged} bookmarks as '{parsed_args.theme}'")
        return 0

    parser.error(f"Unknown command: {parsed_args.command}")
    return 2


if __name__ == "__main__":
    sys.exit(main())
