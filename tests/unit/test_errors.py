"""Tests for custom exception hierarchy in docshard.lib.errors."""

import pytest

from docshard.lib.errors import (
    ConfigError,
    DocShardError,
    ShardFormatError,
    ShardNotFoundError,
    ShardWriteError,
    SourceReadError,
)


class TestDocShardError:
    """Tests for base DocShardError exception."""

    def test_docshard_error_creates_with_message(self) -> None:
        """Test that DocShardError can be created with a message."""
        error = DocShardError("Test error message")
        assert str(error) == "Test error message"

    def test_docshard_error_is_exception(self) -> None:
        """Test that DocShardError is an Exception subclass."""
        assert isinstance(DocShardError("Test"), Exception)


class TestConfigError:
    """Tests for ConfigError exception."""

    def test_config_error_formats_message_with_field(self) -> None:
        """Test that ConfigError formats messages with field information."""
        error = ConfigError("max_lines", "must be at least 2")
        assert str(error) == "Configuration error in 'max_lines': must be at least 2"
        assert error.field == "max_lines"
        assert error.message == "must be at least 2"

    def test_config_error_is_docshard_error(self) -> None:
        """Test that ConfigError is a DocShardError subclass."""
        assert isinstance(ConfigError("field", "msg"), DocShardError)

    def test_config_error_with_multiline_message(self) -> None:
        """Test ConfigError handles multiline messages."""
        error = ConfigError("config", "Line 1\nLine 2")
        assert "Line 1" in str(error)
        assert "Line 2" in str(error)


class TestIOErrors:
    """Tests for the source and write failures."""

    def test_source_read_error_is_os_error(self) -> None:
        """Test that SourceReadError can be caught as an OSError."""
        error = SourceReadError("spec.md", "file does not exist")
        assert isinstance(error, OSError)
        assert isinstance(error, DocShardError)
        assert str(error) == "Cannot read source document spec.md: file does not exist"
        assert error.path == "spec.md"

    def test_shard_write_error_is_os_error(self) -> None:
        """Test that ShardWriteError can be caught as an OSError."""
        error = ShardWriteError("out/spec", "Permission denied")
        assert isinstance(error, OSError)
        assert "Failed to write shards to out/spec" in str(error)

    def test_source_read_error_caught_by_os_error_handler(self) -> None:
        """Test raising SourceReadError is handled by an OSError clause."""
        with pytest.raises(OSError):
            raise SourceReadError("missing.md", "file does not exist")


class TestShardLoadErrors:
    """Tests for errors raised while reloading shards."""

    def test_shard_not_found_is_lookup_error(self) -> None:
        """Test that ShardNotFoundError is a LookupError."""
        error = ShardNotFoundError("out/spec/index.json", "No index")
        assert isinstance(error, LookupError)
        assert str(error) == "Shard not found: out/spec/index.json\nNo index"

    def test_shard_format_error_message(self) -> None:
        """Test ShardFormatError names the file."""
        error = ShardFormatError("epics/a.md", "missing front matter")
        assert str(error) == "Malformed shard file epics/a.md: missing front matter"
        assert not isinstance(error, OSError)
