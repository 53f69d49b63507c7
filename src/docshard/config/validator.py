"""Validation utilities for docshard configuration."""

from pydantic import ValidationError as PydanticValidationError

from docshard.lib.errors import ConfigError


def flatten_pydantic_errors(exc: PydanticValidationError) -> list[str]:
    """Flatten a Pydantic ValidationError into human-readable messages.

    Args:
        exc: Pydantic ValidationError raised while building ShardConfig.

    Returns:
        List of messages, one per field error.

    Example:
        >>> from docshard.models.config import ShardConfig
        >>> try:
        ...     ShardConfig(max_lines=0)
        ... except PydanticValidationError as e:
        ...     flatten_pydantic_errors(e)
        ["Field 'maxLines': Value error, max_lines must be at least 2 (received: 0)"]
    """
    errors: list[str] = []

    for error in exc.errors():
        loc = error.get("loc", ())
        field_path = ".".join(str(item) for item in loc) if loc else "unknown"

        msg = error.get("msg", "Unknown error")
        if error.get("type", "") == "value_error":
            received = error.get("input")
            formatted = f"Field '{field_path}': {msg} (received: {received!r})"
        else:
            formatted = f"Field '{field_path}': {msg}"

        errors.append(formatted)

    return errors if errors else ["Validation failed with unknown error"]


def config_error_from_pydantic(
    exc: PydanticValidationError, source: str = "config"
) -> ConfigError:
    """Wrap a Pydantic ValidationError into a ConfigError.

    Args:
        exc: The validation failure.
        source: Where the configuration came from, used as the error field.

    Returns:
        ConfigError listing every field error on its own line.
    """
    return ConfigError(source, "\n".join(flatten_pydantic_errors(exc)))
