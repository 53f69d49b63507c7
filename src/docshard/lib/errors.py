"""Custom exception hierarchy for docshard configuration and operations."""


class DocShardError(Exception):
    """Base exception for all docshard errors.

    All docshard-specific exceptions inherit from this class, enabling
    centralized exception handling in the command line layer.
    """

    pass


class ConfigError(DocShardError):
    """Exception raised for configuration errors.

    Raised when a configuration file cannot be loaded or parsed, or when a
    configuration value is rejected by the ShardConfig model.

    Attributes:
        field: The configuration field that caused the error
        message: Human-readable error message describing the issue
    """

    def __init__(self, field: str, message: str) -> None:
        """Initialize ConfigError with field and message.

        Args:
            field: Configuration field name where error occurred
            message: Descriptive error message
        """
        self.field = field
        self.message = message
        super().__init__(f"Configuration error in '{field}': {message}")


class SourceReadError(DocShardError, OSError):
    """Exception raised when the source document cannot be read.

    Covers missing paths, paths that are not regular files, and I/O or
    decoding failures. Sharding never retries after this error.

    Attributes:
        path: Path to the source document
        message: Human-readable error message
    """

    def __init__(self, path: str, message: str) -> None:
        """Initialize SourceReadError with path and message."""
        self.path = path
        self.message = message
        DocShardError.__init__(self, f"Cannot read source document {path}: {message}")


class ShardWriteError(DocShardError, OSError):
    """Exception raised when shard output cannot be written.

    The staging directory is removed before this error propagates, so no
    partially written output is left behind.

    Attributes:
        path: Path that failed to be written
        message: Human-readable error message
    """

    def __init__(self, path: str, message: str) -> None:
        """Initialize ShardWriteError with path and message."""
        self.path = path
        self.message = message
        DocShardError.__init__(self, f"Failed to write shards to {path}: {message}")


class ShardNotFoundError(DocShardError, LookupError):
    """Exception raised when a persisted shard or index file is missing.

    Attributes:
        path: Path to the file that was not found
        message: Human-readable error message
    """

    def __init__(self, path: str, message: str) -> None:
        """Initialize ShardNotFoundError with path and message."""
        self.path = path
        self.message = message
        DocShardError.__init__(self, f"Shard not found: {path}\n{message}")


class ShardFormatError(DocShardError):
    """Exception raised when a persisted shard file cannot be parsed."""

    def __init__(self, path: str, message: str) -> None:
        """Create a format error for a shard file."""
        self.path = path
        self.message = message
        super().__init__(f"Malformed shard file {path}: {message}")
