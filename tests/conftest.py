"""Pytest configuration and shared fixtures for docshard tests."""

import os
import shutil
import tempfile
from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest

from docshard.models.config import ShardConfig

SAMPLE_DOCUMENT = """# Product Spec

Intro paragraph describing the product.

## Functional Requirements

REQ-001 The system must shard documents.
REQ-002 Shards must link to their parent.

## System Architecture

The sharder is built from small components.
See Functional Requirements for the contract.

## Test Scenarios

Verify REQ-001 with a large document.
"""


@pytest.fixture
def temp_dir() -> Generator[Path]:
    """Create a temporary directory for test file operations.

    Yields:
        Path to temporary directory

    Cleanup:
        Automatically removes directory after test
    """
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def isolated_env() -> Generator[dict[str, str]]:
    """Provide isolated environment variables for testing.

    Saves current environment and restores after test.

    Yields:
        Dictionary of original environment variables

    Cleanup:
        Restores original environment after test
    """
    original_env = os.environ.copy()
    for name in list(os.environ):
        if name.startswith("DOCSHARD_"):
            del os.environ[name]
    yield original_env
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def sample_document() -> str:
    """Small document with three classified sections and a preamble."""
    return SAMPLE_DOCUMENT


@pytest.fixture
def shard_config(temp_dir: Path) -> ShardConfig:
    """Configuration writing into the temporary directory."""
    return ShardConfig(max_lines=20, output_dir=str(temp_dir / "out"))


# Configure pytest
def pytest_configure(config: Any) -> None:
    """Configure pytest with marker options."""
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests",
    )
    config.addinivalue_line(
        "markers",
        "unit: marks tests as unit tests",
    )
