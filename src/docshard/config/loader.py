"""Configuration loader for docshard.

Builds a ShardConfig by layering, from lowest to highest precedence:
built-in defaults, a YAML configuration file, ``DOCSHARD_*`` environment
variables and explicit overrides (usually command line flags).
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from docshard.config.defaults import DEFAULT_CONFIG_FILENAME
from docshard.config.validator import config_error_from_pydantic
from docshard.lib.errors import ConfigError
from docshard.models.config import ShardConfig

logger = logging.getLogger(__name__)

# Environment variable to field name mapping
ENV_VAR_MAP = {
    "max_lines": "DOCSHARD_MAX_LINES",
    "preserve_context": "DOCSHARD_PRESERVE_CONTEXT",
    "output_dir": "DOCSHARD_OUTPUT_DIR",
    "write_workers": "DOCSHARD_WRITE_WORKERS",
}

# Accepted spellings in YAML files, normalized to field names
_KEY_ALIASES = {
    "maxLines": "max_lines",
    "preserveContext": "preserve_context",
    "hierarchyLevels": "hierarchy_levels",
    "outputDir": "output_dir",
    "epicCategories": "epic_categories",
    "referencePhrases": "reference_phrases",
    "writeWorkers": "write_workers",
    "formatVersion": "format_version",
}


def _parse_env_value(field_name: str, value: str) -> Any:
    """Parse environment variable value to appropriate type.

    Args:
        field_name: Name of the field (used to determine type)
        value: String value from environment variable

    Returns:
        Parsed value in correct type (int, bool, or str)

    Raises:
        ValueError: If value cannot be parsed
    """
    if field_name in ("max_lines", "write_workers"):
        return int(value)
    elif field_name == "preserve_context":
        return value.lower() in ("true", "1", "yes", "on")
    else:
        return value


def _get_env_overrides(env_vars: os._Environ[str] | dict[str, str]) -> dict[str, Any]:
    """Collect configuration values set through environment variables.

    Unparseable values are skipped with a warning so a stray variable
    cannot break every run.

    Args:
        env_vars: Environment variables mapping

    Returns:
        Field name to parsed value mapping
    """
    overrides: dict[str, Any] = {}
    for field_name, env_var_name in ENV_VAR_MAP.items():
        if env_var_name not in env_vars:
            continue
        try:
            overrides[field_name] = _parse_env_value(field_name, env_vars[env_var_name])
        except ValueError:
            logger.warning(
                f"Ignoring {env_var_name}={env_vars[env_var_name]!r}: not a valid value"
            )
    return overrides


def _normalize_keys(data: dict[str, Any]) -> dict[str, Any]:
    """Map camelCase keys onto field names so layers merge cleanly."""
    return {_KEY_ALIASES.get(key, key): value for key, value in data.items()}


def _read_yaml(path: Path) -> dict[str, Any]:
    """Read a YAML configuration file.

    Args:
        path: Path to YAML file

    Returns:
        Parsed mapping (empty for an empty file)

    Raises:
        ConfigError: If the file cannot be read, parsed, or is not a mapping
    """
    try:
        content = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(str(path), f"Cannot read configuration file: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(str(path), f"Invalid YAML: {e}") from e

    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ConfigError(str(path), "Configuration file must contain a mapping")

    # Allow the settings to live under a top-level "sharding" key
    if isinstance(content.get("sharding"), dict):
        content = content["sharding"]
    return content


def load_shard_config(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
    env_vars: os._Environ[str] | dict[str, str] | None = None,
    base_dir: str | Path | None = None,
) -> ShardConfig:
    """Load sharding configuration from file, environment and overrides.

    When no explicit path is given, ``.docshard.yaml`` in ``base_dir`` (or the
    working directory) is used if it exists.

    Args:
        config_path: Optional explicit YAML configuration file.
        overrides: Highest-precedence values; ``None`` entries are ignored.
        env_vars: Environment mapping, defaults to ``os.environ``.
        base_dir: Directory searched for the default configuration file.

    Returns:
        Validated ShardConfig.

    Raises:
        ConfigError: If the file is missing, unreadable or the merged
            values fail validation.
    """
    merged: dict[str, Any] = {}

    if config_path is not None:
        path = Path(config_path)
        if not path.is_file():
            raise ConfigError(str(path), "Configuration file not found")
        logger.debug(f"Loading configuration from {path}")
        merged.update(_normalize_keys(_read_yaml(path)))
    else:
        default_path = Path(base_dir or Path.cwd()) / DEFAULT_CONFIG_FILENAME
        if default_path.is_file():
            logger.debug(f"Loading configuration from {default_path}")
            merged.update(_normalize_keys(_read_yaml(default_path)))

    merged.update(_get_env_overrides(os.environ if env_vars is None else env_vars))

    if overrides:
        merged.update(
            {
                key: value
                for key, value in _normalize_keys(overrides).items()
                if value is not None
            }
        )

    try:
        return ShardConfig.model_validate(merged)
    except PydanticValidationError as e:
        raise config_error_from_pydantic(
            e, str(config_path) if config_path else "config"
        ) from e
