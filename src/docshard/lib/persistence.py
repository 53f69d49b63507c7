"""Shard file persistence.

Layout of a sharded document::

    <output_dir>/<document>/
        index.json
        epics/<id>.md
        stories/<id>.md
        tasks/<id>.md

Each shard file holds a YAML front matter block delimited by ``---`` lines,
a generated navigation section (parent, child and related links), a ``---``
separator line followed by a blank line, and finally the raw shard content.

Output is written into a staging directory beside the destination and moved
into place only once every file has been written. A failed write removes the
staging directory and leaves any previous output untouched.
"""

from __future__ import annotations

import json
import logging
import shutil
import tempfile
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml
from opentelemetry import trace

from docshard.config.defaults import DEFAULT_HIERARCHY_LEVELS, plural_level_name
from docshard.lib.errors import ShardFormatError, ShardNotFoundError, ShardWriteError
from docshard.models.shard import FORMAT_VERSION, Shard, ShardMetadata

if TYPE_CHECKING:
    from docshard.lib.document_sharder import ShardingSession
    from docshard.lib.metrics import ShardingMetrics
    from docshard.models.config import ShardConfig

logger = logging.getLogger(__name__)

tracer = trace.get_tracer("docshard.persistence")

INDEX_FILENAME = "index.json"
SHARD_EXTENSION = ".md"
FRONT_MATTER_DELIMITER = "---"


def shard_file_path(doc_dir: Path, shard_type: str, shard_id: str) -> Path:
    """Return the path of a shard file inside a sharded document directory."""
    return doc_dir / plural_level_name(shard_type) / f"{shard_id}{SHARD_EXTENSION}"


def _relative_link(shard: Shard) -> str:
    return f"../{plural_level_name(shard.type)}/{shard.id}{SHARD_EXTENSION}"


def format_navigation(shard: Shard, lookup: dict[str, Shard]) -> list[str]:
    """Build the navigation lines for a shard.

    Args:
        shard: Shard being written.
        lookup: Every shard of the run by id.

    Returns:
        Navigation lines; empty when the shard has no links.
    """
    navigation: list[str] = []

    parent = lookup.get(shard.parent) if shard.parent else None
    if parent is not None:
        navigation.append(f"← [{parent.title}]({_relative_link(parent)})")

    children = [lookup[child] for child in shard.children if child in lookup]
    if children:
        navigation.extend(["", "### Sub-sections:"])
        navigation.extend(
            f"- [{child.title}]({_relative_link(child)})" for child in children
        )

    related = [lookup[ref] for ref in shard.cross_references if ref in lookup]
    if related:
        navigation.extend(["", "### Related:"])
        navigation.extend(f"- [{ref.title}]({_relative_link(ref)})" for ref in related)

    return navigation


def format_shard_content(shard: Shard, lookup: dict[str, Shard]) -> str:
    """Render a shard as file text.

    Args:
        shard: Shard to render.
        lookup: Every shard of the run by id, used for navigation titles.

    Returns:
        Front matter, navigation, separator and raw content.
    """
    front_matter = yaml.safe_dump(
        shard.to_front_matter(),
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=None,
        width=4096,
    ).rstrip("\n")

    parts = [
        FRONT_MATTER_DELIMITER,
        front_matter,
        FRONT_MATTER_DELIMITER,
        *format_navigation(shard, lookup),
        "",
        FRONT_MATTER_DELIMITER,
        "",
        shard.content,
    ]
    return "\n".join(parts)


def parse_shard_text(text: str, source: str = "<text>") -> Shard:
    """Parse shard file text back into a Shard.

    Cross-references are taken as persisted; nothing is recomputed.

    Args:
        text: Full shard file text.
        source: Name used in error messages.

    Returns:
        Reconstructed Shard.

    Raises:
        ShardFormatError: If the front matter or separator is missing or
            the header lacks required fields.
    """
    lines = text.split("\n")
    if not lines or lines[0] != FRONT_MATTER_DELIMITER:
        raise ShardFormatError(source, "missing front matter")

    try:
        header_end = lines.index(FRONT_MATTER_DELIMITER, 1)
        separator = lines.index(FRONT_MATTER_DELIMITER, header_end + 1)
    except ValueError as e:
        raise ShardFormatError(source, "missing front matter delimiter") from e

    try:
        header = yaml.safe_load("\n".join(lines[1:header_end]))
    except yaml.YAMLError as e:
        raise ShardFormatError(source, f"invalid front matter: {e}") from e
    if not isinstance(header, dict):
        raise ShardFormatError(source, "front matter is not a mapping")

    missing = [key for key in ("id", "type", "title", "lines") if key not in header]
    if missing:
        raise ShardFormatError(source, f"front matter lacks {', '.join(missing)}")

    created = header.get("created")
    if isinstance(created, str):
        try:
            created = datetime.fromisoformat(created)
        except ValueError as e:
            raise ShardFormatError(
                source, f"invalid created timestamp: {created}"
            ) from e

    original_lines = header.get("original_lines") or [0, 0]
    metadata = ShardMetadata(
        original_file=str(header.get("source") or ""),
        original_lines=(int(original_lines[0]), int(original_lines[1])),
        version=str(header.get("version", FORMAT_VERSION)),
    )
    if isinstance(created, datetime):
        metadata.created_at = created

    return Shard(
        id=str(header["id"]),
        type=str(header["type"]),
        title=str(header["title"]),
        content="\n".join(lines[separator + 2 :]),
        line_count=int(header["lines"]),
        parent=header.get("parent"),
        children=[str(child) for child in header.get("children") or []],
        cross_references=[str(ref) for ref in header.get("references") or []],
        context_scope=[str(tag) for tag in header.get("context") or []],
        metadata=metadata,
    )


def load_shard(path: str | Path) -> Shard:
    """Load one shard file.

    Args:
        path: Path to the shard file.

    Returns:
        Reconstructed Shard.

    Raises:
        ShardNotFoundError: If the file does not exist.
        ShardFormatError: If the file is malformed.
    """
    shard_path = Path(path)
    if not shard_path.is_file():
        raise ShardNotFoundError(str(shard_path), "Shard file is missing")
    return parse_shard_text(shard_path.read_text(encoding="utf-8"), str(shard_path))


def load_index(doc_dir: str | Path) -> dict[str, Any]:
    """Load the ``index.json`` summary of a sharded document.

    Raises:
        ShardNotFoundError: If the index does not exist.
        ShardFormatError: If the index is not valid JSON.
    """
    index_path = Path(doc_dir) / INDEX_FILENAME
    if not index_path.is_file():
        raise ShardNotFoundError(
            str(index_path), "No index.json found; is this a sharded document?"
        )
    try:
        index = json.loads(index_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ShardFormatError(str(index_path), f"invalid JSON: {e}") from e
    if not isinstance(index, dict):
        raise ShardFormatError(str(index_path), "index is not a JSON object")
    return index


def index_levels(index: dict[str, Any]) -> list[str]:
    """Return the hierarchy level labels recorded in an index."""
    return list(index.get("hierarchy_levels") or DEFAULT_HIERARCHY_LEVELS)


def iter_index_entries(index: dict[str, Any]) -> list[tuple[str, dict[str, Any]]]:
    """Flatten an index into (level, entry) pairs in hierarchy order.

    Epics come in index order, each followed by its stories, each story
    followed by its tasks.
    """
    epic_level, story_level, task_level = index_levels(index)
    stories = {group["epic_id"]: group["stories"] for group in index.get("stories", [])}
    tasks = {group["story_id"]: group["tasks"] for group in index.get("tasks", [])}

    entries: list[tuple[str, dict[str, Any]]] = []
    for epic in index.get("epics", []):
        entries.append((epic_level, epic))
        for story in stories.get(epic["id"], []):
            entries.append((story_level, story))
            entries.extend((task_level, task) for task in tasks.get(story["id"], []))
    return entries


def load_shards(doc_dir: str | Path) -> list[Shard]:
    """Reload every shard of a sharded document in hierarchy order.

    Raises:
        ShardNotFoundError: If the index or any listed shard is missing.
    """
    directory = Path(doc_dir)
    index = load_index(directory)
    return [
        load_shard(shard_file_path(directory, level, entry["id"]))
        for level, entry in iter_index_entries(index)
    ]


def build_index_data(
    session: ShardingSession,
    source_path: Path,
    metrics: ShardingMetrics | None = None,
) -> dict[str, Any]:
    """Build the ``index.json`` summary for a session."""
    hierarchy = session.hierarchy
    data: dict[str, Any] = {
        "original_file": str(source_path),
        "document": source_path.stem,
        "version": session.config.format_version,
        "created": session.created_at.isoformat(),
        "hierarchy_levels": list(session.config.hierarchy_levels),
        "max_lines": session.config.max_lines,
        "total_shards": len(session.shards),
        "epics": [epic.to_summary_dict() for epic in hierarchy.epics],
        "stories": [
            {"epic_id": epic_id, "stories": [s.to_summary_dict() for s in stories]}
            for epic_id, stories in hierarchy.stories.items()
        ],
        "tasks": [
            {"story_id": story_id, "tasks": [t.to_summary_dict() for t in tasks]}
            for story_id, tasks in hierarchy.tasks.items()
        ],
        "cross_references": [
            {"from": shard.id, "to": list(shard.cross_references)}
            for shard in session.ordered_shards()
        ],
    }
    if metrics is not None:
        data["metrics"] = metrics.to_dict()
    return data


class ShardWriter:
    """Write a sharding session to disk.

    Attributes:
        config: Sharding configuration (output root, levels, workers).
    """

    def __init__(self, config: ShardConfig) -> None:
        """Initialize the writer with the run configuration."""
        self.config = config

    def document_dir(self, source_path: str | Path) -> Path:
        """Return the output directory for a source document."""
        return Path(self.config.output_dir) / Path(source_path).stem

    def _write_shard(
        self, staging: Path, shard: Shard, lookup: dict[str, Shard]
    ) -> None:
        path = shard_file_path(staging, shard.type, shard.id)
        path.write_text(format_shard_content(shard, lookup), encoding="utf-8")

    def _write_all(self, staging: Path, shards: Sequence[Shard]) -> None:
        lookup = {shard.id: shard for shard in shards}
        for level in self.config.hierarchy_levels:
            (staging / plural_level_name(level)).mkdir(parents=True, exist_ok=True)

        # Directories exist before any write, so file writes are independent
        if self.config.write_workers > 1:
            with ThreadPoolExecutor(max_workers=self.config.write_workers) as executor:
                futures = [
                    executor.submit(self._write_shard, staging, shard, lookup)
                    for shard in shards
                ]
                for future in futures:
                    future.result()
        else:
            for shard in shards:
                self._write_shard(staging, shard, lookup)

    def _replace(self, staging: Path, target: Path) -> None:
        backup: Path | None = None
        if target.exists():
            backup = target.with_name(f".{target.name}.previous")
            if backup.exists():
                shutil.rmtree(backup)
            target.rename(backup)
        try:
            staging.rename(target)
        except OSError:
            if backup is not None:
                backup.rename(target)
            raise
        if backup is not None:
            shutil.rmtree(backup, ignore_errors=True)

    def write(
        self,
        session: ShardingSession,
        source_path: str | Path,
        metrics: ShardingMetrics | None = None,
    ) -> Path:
        """Persist every shard and the index for a session.

        Args:
            session: Completed sharding session.
            source_path: Path of the source document (names the output dir).
            metrics: Optional run metrics stored in the index.

        Returns:
            The document output directory.

        Raises:
            ShardWriteError: If any directory or file cannot be written.
        """
        source = Path(source_path)
        target = self.document_dir(source)
        shards = session.ordered_shards()

        with tracer.start_as_current_span(
            "docshard.write_shards",
            attributes={
                "docshard.output_dir": str(target),
                "docshard.shard_count": len(shards),
            },
        ) as span:
            staging: Path | None = None
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                staging = Path(
                    tempfile.mkdtemp(prefix=f".{target.name}.", dir=target.parent)
                )
                staging.chmod(0o755)
                self._write_all(staging, shards)
                index_data = build_index_data(session, source, metrics)
                (staging / INDEX_FILENAME).write_text(
                    json.dumps(index_data, indent=2, ensure_ascii=False) + "\n",
                    encoding="utf-8",
                )
                self._replace(staging, target)
            except OSError as e:
                span.record_exception(e)
                if staging is not None and staging.exists():
                    shutil.rmtree(staging, ignore_errors=True)
                raise ShardWriteError(str(target), str(e)) from e

        logger.info(f"Wrote {len(shards)} shards to {target}")
        return target
