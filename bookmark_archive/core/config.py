"""Configuration Manager for Bookmark Archive.

Centralized configuration loading from environment variables with sensible defaults.
All configuration is validated at load time to fail fast on invalid values.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from bookmark_archive.core.exceptions import ConfigurationError


@dataclass
class Config:
    """Application configuration loaded from environment variables.

    Required (for analysis only):
        anthropic_api_key: API key for the Claude classification service.

    Optional (with defaults):
        archive_file: Path to the JSON archive file.
        export_dir: Directory for JSON and markdown exports.
        model: Claude model used for classification.
        max_tokens: Maximum tokens in a classification reply.
        batch_size: Bookmarks submitted per classification request.
        batch_delay: Cooldown in seconds between batches.
        text_limit: Characters of post text sent per bookmark.
        request_timeout: Seconds before a classification call times out.
        max_attempts: Attempts per batch for retryable failures (1 = no retry).
        log_level: Logging verbosity (DEBUG, INFO, WARNING, ERROR).
    """

    # Required
    anthropic_api_key: str

    # Optional with defaults
    archive_file: Path = field(default_factory=lambda: Path("data/archive.json"))
    export_dir: Path = field(default_factory=lambda: Path("exports"))
    model: str = "claude-sonnet-4-20250514"
    max_tokens: int = 4000
    batch_size: int = 20
    batch_delay: float = 1.0
    text_limit: int = 280
    request_timeout: float = 120.0
    max_attempts: int = 1
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        # Ensure paths are Path objects
        if isinstance(self.archive_file, str):
            self.archive_file = Path(self.archive_file)
        if isinstance(self.export_dir, str):
            self.export_dir = Path(self.export_dir)

        # Validate log level
        valid_log_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if self.log_level.upper() not in valid_log_levels:
            raise ConfigurationError(
                f"Invalid LOG_LEVEL '{self.log_level}'. "
                f"Must be one of: {', '.join(sorted(valid_log_levels))}"
            )
        self.log_level = self.log_level.upper()

        # Validate batching
        if self.batch_size < 1:
            raise ConfigurationError("BOOKMARKS_BATCH_SIZE must be at least 1")
        if self.batch_delay < 0:
            raise ConfigurationError("BOOKMARKS_BATCH_DELAY must be non-negative")
        if self.text_limit < 1:
            raise ConfigurationError("BOOKMARKS_TEXT_LIMIT must be at least 1")

        # Validate service call settings
        if self.max_tokens < 1:
            raise ConfigurationError("BOOKMARKS_MAX_TOKENS must be at least 1")
        if self.request_timeout <= 0:
            raise ConfigurationError("BOOKMARKS_REQUEST_TIMEOUT must be positive")
        if self.max_attempts < 1:
            raise ConfigurationError("BOOKMARKS_MAX_ATTEMPTS must be at least 1")


def load_config(*, require_api_key: bool = True) -> Config:
    """Load configuration from environment variables.

    Args:
        require_api_key: If True (default), raises ConfigurationError when
            ANTHROPIC_API_KEY is missing. Set to False for commands that
            never call the classification service.

    Returns:
        Config object with all settings loaded.

    Raises:
        ConfigurationError: If required config is missing or values are invalid.
    """
    api_key = os.environ.get("ANTHROPIC_API_KEY", "")

    if require_api_key and not api_key:
        raise ConfigurationError(
            "ANTHROPIC_API_KEY environment variable is required but not set"
        )

    def get_float(key: str, default: float) -> float:
        """Parse float from env var with default."""
        value = os.environ.get(key)
        if value is None:
            return default
        try:
            return float(value)
        except ValueError:
            raise ConfigurationError(f"{key} must be a valid number, got '{value}'")

    def get_int(key: str, default: int) -> int:
        """Parse int from env var with default."""
        value = os.environ.get(key)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            raise ConfigurationError(f"{key} must be a valid integer, got '{value}'")

    return Config(
        anthropic_api_key=api_key,
        archive_file=Path(
            os.environ.get("BOOKMARKS_ARCHIVE_FILE", "data/archive.json")
        ),
        export_dir=Path(os.environ.get("BOOKMARKS_EXPORT_DIR", "exports")),
        model=os.environ.get("BOOKMARKS_MODEL", "claude-sonnet-4-20250514"),
        max_tokens=get_int("BOOKMARKS_MAX_TOKENS", 4000),
        batch_size=get_int("BOOKMARKS_BATCH_SIZE", 20),
        batch_delay=get_float("BOOKMARKS_BATCH_DELAY", 1.0),
        text_limit=get_int("BOOKMARKS_TEXT_LIMIT", 280),
        request_timeout=get_float("BOOKMARKS_REQUEST_TIMEOUT", 120.0),
        max_attempts=get_int("BOOKMARKS_MAX_ATTEMPTS", 1),
        log_level=os.environ.get("LOG_LEVEL", "INFO"),
    )


# Singleton instance for convenience
_config: Config | None = None


def get_config(*, require_api_key: bool = True) -> Config:
    """Get the global configuration instance.

    Loads configuration on first call and caches it for subsequent calls.
    Use reset_config() to force a reload.

    Args:
        require_api_key: If True (default), raises ConfigurationError when
            ANTHROPIC_API_KEY is missing.

    Returns:
        The global Config instance.
    """
    global _config
    if _config is None:
        _config = load_config(require_api_key=require_api_key)
    elif require_api_key and not _config.anthropic_api_key:
        raise ConfigurationError(
            "ANTHROPIC_API_KEY environment variable is required but not set"
        )
    return _config


def reset_config() -> None:
    """Reset the global configuration instance.

    Forces the next get_config() call to reload from environment variables.
    Useful for testing.
    """
    global _config
    _config = None
