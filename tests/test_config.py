"""Tests for Configuration Manager."""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from bookmark_archive.core.config import (
    Config,
    ConfigurationError,
    get_config,
    load_config,
    reset_config,
)


class TestConfigDefaults:
    """Test Config default values."""

    def test_config_has_correct_defaults(self):
        """Config should have sensible defaults for optional fields."""
        config = Config(anthropic_api_key="test-key")

        assert config.archive_file == Path("data/archive.json")
        assert config.export_dir == Path("exports")
        assert config.batch_size == 20
        assert config.batch_delay == 1.0
        assert config.text_limit == 280
        assert config.max_tokens == 4000
        assert config.max_attempts == 1
        assert config.log_level == "INFO"

    def test_config_accepts_string_paths(self):
        """Config should convert string paths to Path objects."""
        config = Config(
            anthropic_api_key="test-key",
            archive_file="/custom/archive.json",  # type: ignore[arg-type]
            export_dir="/custom/exports",  # type: ignore[arg-type]
        )

        assert isinstance(config.archive_file, Path)
        assert isinstance(config.export_dir, Path)
        assert config.export_dir == Path("/custom/exports")


class TestConfigValidation:
    """Test Config validation."""

    def test_config_validates_log_level(self):
        """Config should reject invalid log levels."""
        with pytest.raises(ConfigurationError) as exc_info:
            Config(anthropic_api_key="test-key", log_level="INVALID")
        assert "Invalid LOG_LEVEL" in str(exc_info.value)

    def test_config_normalizes_log_level_case(self):
        """Log level is accepted in any case and stored upper-case."""
        assert Config(anthropic_api_key="k", log_level="debug").log_level == "DEBUG"

    @pytest.mark.parametrize(
        "field,value,name",
        [
            ("batch_size", 0, "BOOKMARKS_BATCH_SIZE"),
            ("batch_delay", -0.5, "BOOKMARKS_BATCH_DELAY"),
            ("text_limit", 0, "BOOKMARKS_TEXT_LIMIT"),
            ("max_tokens", 0, "BOOKMARKS_MAX_TOKENS"),
            ("request_timeout", 0, "BOOKMARKS_REQUEST_TIMEOUT"),
            ("max_attempts", 0, "BOOKMARKS_MAX_ATTEMPTS"),
        ],
    )
    def test_config_rejects_out_of_range_values(self, field, value, name):
        """Numeric settings outside their range are rejected with the env var name."""
        with pytest.raises(ConfigurationError) as exc_info:
            Config(anthropic_api_key="test-key", **{field: value})
        assert name in str(exc_info.value)

    def test_zero_batch_delay_is_allowed(self):
        """A zero cooldown disables pacing."""
        assert Config(anthropic_api_key="k", batch_delay=0).batch_delay == 0


class TestLoadConfig:
    """Test loading configuration from environment variables."""

    def test_load_config_from_env(self):
        """Every setting can be overridden from the environment."""
        env = {
            "ANTHROPIC_API_KEY": "sk-test",
            "BOOKMARKS_ARCHIVE_FILE": "/tmp/archive.json",
            "BOOKMARKS_EXPORT_DIR": "/tmp/exports",
            "BOOKMARKS_MODEL": "claude-3-haiku-20240307",
            "BOOKMARKS_MAX_TOKENS": "2000",
            "BOOKMARKS_BATCH_SIZE": "10",
            "BOOKMARKS_BATCH_DELAY": "0.5",
            "BOOKMARKS_TEXT_LIMIT": "140",
            "BOOKMARKS_REQUEST_TIMEOUT": "30",
            "BOOKMARKS_MAX_ATTEMPTS": "3",
            "LOG_LEVEL": "warning",
        }
        with patch.dict(os.environ, env, clear=True):
            config = load_config()

        assert config.anthropic_api_key == "sk-test"
        assert config.archive_file == Path("/tmp/archive.json")
        assert config.export_dir == Path("/tmp/exports")
        assert config.model == "claude-3-haiku-20240307"
        assert config.max_tokens == 2000
        assert config.batch_size == 10
        assert config.batch_delay == 0.5
        assert config.text_limit == 140
        assert config.request_timeout == 30.0
        assert config.max_attempts == 3
        assert config.log_level == "WARNING"

    def test_load_config_requires_api_key(self):
        """Missing API key is an error by default."""
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(ConfigurationError) as exc_info:
                load_config()
        assert "ANTHROPIC_API_KEY" in str(exc_info.value)

    def test_load_config_without_api_key_when_not_required(self):
        """Commands that never call the service can run without a key."""
        with patch.dict(os.environ, {}, clear=True):
            config = load_config(require_api_key=False)
        assert config.anthropic_api_key == ""
        assert config.batch_size == 20

    def test_load_config_rejects_non_integer(self):
        """Non-numeric integer settings produce a clear error."""
        env = {"ANTHROPIC_API_KEY": "k", "BOOKMARKS_BATCH_SIZE": "twenty"}
        with patch.dict(os.environ, env, clear=True):
            with pytest.raises(ConfigurationError) as exc_info:
                load_config()
        assert "BOOKMARKS_BATCH_SIZE must be a valid integer" in str(exc_info.value)

    def test_load_config_rejects_non_number(self):
        """Non-numeric float settings produce a clear error."""
        env = {"ANTHROPIC_API_KEY": "k", "BOOKMARKS_BATCH_DELAY": "soon"}
        with patch.dict(os.environ, env, clear=True):
            with pytest.raises(ConfigurationError) as exc_info:
                load_config()
        assert "BOOKMARKS_BATCH_DELAY must be a valid number" in str(exc_info.value)


class TestGetConfig:
    """Test the cached configuration singleton."""

    def test_get_config_caches_instance(self):
        """Subsequent calls return the same object."""
        with patch.dict(os.environ, {"ANTHROPIC_API_KEY": "k"}, clear=True):
            assert get_config() is get_config()

    def test_reset_config_forces_reload(self):
        """reset_config() makes the next call read the environment again."""
        with patch.dict(os.environ, {"ANTHROPIC_API_KEY": "first"}, clear=True):
            first = get_config()
        reset_config()
        with patch.dict(os.environ, {"ANTHROPIC_API_KEY": "second"}, clear=True):
            second = get_config()

        assert first.anthropic_api_key == "first"
        assert second.anthropic_api_key == "second"

    def test_cached_config_without_key_rejected_when_key_required(self):
        """A config cached for a key-less command cannot be reused for analysis."""
        with patch.dict(os.environ, {}, clear=True):
            get_config(require_api_key=False)
            with pytest.raises(ConfigurationError):
                get_config(require_api_key=True)
