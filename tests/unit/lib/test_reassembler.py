"""Tests for reassembling persisted shards."""

import json
from pathlib import Path

import pytest

from docshard.lib.document_sharder import DocumentSharder
from docshard.lib.errors import ShardNotFoundError
from docshard.lib.persistence import ShardWriter, shard_file_path
from docshard.lib.reassembler import calculate_similarity, reassemble_document
from docshard.models.config import ShardConfig


def _long_section(title: str, body_lines: int) -> list[str]:
    return [f"## {title}", *(f"{title} line {i}" for i in range(body_lines))]


def _write(config: ShardConfig, text: str, name: str = "spec.md") -> Path:
    result = DocumentSharder(config).shard_text(text, name)
    return ShardWriter(config).write(result.session, name)


class TestReassembleDocument:
    """Tests for reassemble_document()."""

    def test_small_document_round_trips(
        self, shard_config: ShardConfig, sample_document: str
    ) -> None:
        """Test a document in epic order is reproduced exactly."""
        target = _write(shard_config, sample_document)
        assert reassemble_document(target) == sample_document

    def test_task_level_content_is_included(self, temp_dir: Path) -> None:
        """Test stories split into tasks are reassembled from their tasks."""
        config = ShardConfig(max_lines=20, output_dir=str(temp_dir))
        text = "\n".join(_long_section("System Design", 45))
        result = DocumentSharder(config).shard_text(text, "big.md")
        assert any(len(tasks) > 1 for tasks in result.hierarchy.tasks.values())

        target = ShardWriter(config).write(result.session, "big.md")
        assert reassemble_document(target) == text

    def test_grouping_reorders_sections(self, temp_dir: Path) -> None:
        """Test sections regrouped by epic keep every line."""
        config = ShardConfig(max_lines=50, output_dir=str(temp_dir))
        lines = (
            _long_section("Design Goals", 3)
            + _long_section("Overview", 3)
            + _long_section("Component Design", 3)
        )
        text = "\n".join(lines)
        reassembled = reassemble_document(_write(config, text))
        assert reassembled.split("\n")[:8] == lines[:4] + lines[8:12]
        assert sorted(reassembled.split("\n")) == sorted(lines)
        assert calculate_similarity(text, reassembled) == 1.0

    def test_missing_shard_file(
        self, shard_config: ShardConfig, sample_document: str
    ) -> None:
        """Test a deleted shard file is reported."""
        target = _write(shard_config, sample_document)
        first_task = next((target / "tasks").iterdir())
        first_task.unlink()
        with pytest.raises(ShardNotFoundError):
            reassemble_document(target)

    def test_epic_without_stories_uses_epic_content(
        self, shard_config: ShardConfig, sample_document: str
    ) -> None:
        """Test an index listing an epic with no stories falls back to the epic."""
        target = _write(shard_config, sample_document)
        index_path = target / "index.json"
        index = json.loads(index_path.read_text())
        index["stories"] = []
        index_path.write_text(json.dumps(index))
        for epic in index["epics"]:
            assert shard_file_path(target, "epic", epic["id"]).is_file()
        assert reassemble_document(target) == sample_document

    def test_missing_directory(self, temp_dir: Path) -> None:
        """Test a directory without index raises ShardNotFoundError."""
        with pytest.raises(ShardNotFoundError):
            reassemble_document(temp_dir / "absent")


class TestCalculateSimilarity:
    """Tests for calculate_similarity()."""

    def test_identical(self) -> None:
        """Test identical text scores 1.0."""
        assert calculate_similarity("a\nb", "a\nb") == 1.0

    def test_blank_lines_ignored(self) -> None:
        """Test blank lines do not affect the score."""
        assert calculate_similarity("a\n\nb\n", "a\nb") == 1.0

    def test_missing_lines_lower_score(self) -> None:
        """Test lost lines reduce the score proportionally."""
        assert calculate_similarity("a\nb\nc\nd", "a\nb") == 0.5

    def test_extra_lines_lower_score(self) -> None:
        """Test added lines also reduce the score."""
        assert calculate_similarity("a\nb", "a\nb\nc\nd") == 0.5

    def test_both_empty(self) -> None:
        """Test two empty documents are identical."""
        assert calculate_similarity("", "\n") == 1.0
