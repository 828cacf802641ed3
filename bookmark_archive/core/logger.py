"""JSON logging for Bookmark Archive.

One JSON object per line on stderr, so run logs can be piped into jq or
a log collector while the console summary stays on stdout. Pipeline
records carry the batch position (batch, batch_total) to tie every line
of a run to the request it belongs to.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

# Attributes of a bare LogRecord; anything else arrived through extra=
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__
) | {"message", "asctime"}


class JSONFormatter(logging.Formatter):
    """Renders a record as a single JSON line.

    Example line:
        {"ts": "2026-01-23T10:30:00.123456+00:00", "level": "INFO",
         "msg": "Classifying 20 bookmarks", "logger": "bookmark_archive.core.pipeline",
         "batch": 2, "batch_total": 3}
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(timespec="microseconds"),
            "level": record.levelname,
            "msg": record.getMessage(),
        }
        if record.name and record.name != "root":
            entry["logger"] = record.name

        entry.update(
            (key, value)
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS
        )

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class BatchLoggerAdapter(logging.LoggerAdapter):
    """Tags every record with the batch being classified.

    Caller-supplied extra= fields are kept; batch and batch_total win on
    a name clash.
    """

    def __init__(self, logger: logging.Logger, batch: int, batch_total: int):
        super().__init__(logger, {"batch": batch, "batch_total": batch_total})

    def process(
        self, msg: str, kwargs: dict[str, Any]
    ) -> tuple[str, dict[str, Any]]:
        kwargs["extra"] = {**kwargs.get("extra", {}), **self.extra}
        return msg, kwargs


def setup_logging(level: str = "INFO", stream: Any = None) -> None:
    """Route all logging through one JSON handler.

    Safe to call more than once; earlier root handlers are replaced.

    Args:
        level: Level name such as "DEBUG" or "WARNING" (from LOG_LEVEL).
        stream: Destination, stderr when omitted.
    """
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(JSONFormatter())

    reset_logging()
    root_logger = logging.getLogger()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level.upper()))


def get_logger(name: str | None = None) -> logging.Logger:
    return logging.getLogger(name)


def get_batch_logger(name: str, batch: int, batch_total: int) -> BatchLoggerAdapter:
    """Logger for one batch of a run; batch is 1-based."""
    return BatchLoggerAdapter(get_logger(name), batch, batch_total)


def reset_logging() -> None:
    """Detach every root handler (used between CLI invocations and tests)."""
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
