"""Hierarchical document sharding.

This module orchestrates a complete sharding run: structure parsing, epic
grouping, recursive splitting into stories and tasks, cross-reference
detection, navigation indexing, metrics and persistence.

All state accumulated during a run lives in a ShardingSession created for
that run, so one DocumentSharder can serve any number of independent runs.

Usage:
    from docshard.lib.document_sharder import DocumentSharder
    from docshard.models.config import ShardConfig

    sharder = DocumentSharder(ShardConfig(max_lines=500, output_dir="out"))
    result = sharder.shard_document("docs/spec.md")
    print(result.total_shards, result.output_path)
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from opentelemetry import trace

from docshard.lib.chunk_splitter import ChunkSplitter
from docshard.lib.cross_references import (
    CrossReferenceDetector,
    apply_cross_references,
)
from docshard.lib.epic_grouper import group_into_epics
from docshard.lib.errors import SourceReadError
from docshard.lib.metrics import ShardingMetrics, calculate_metrics
from docshard.lib.navigation_index import NavigationIndex, build_navigation_index
from docshard.lib.persistence import ShardWriter
from docshard.lib.reassembler import reassemble_document
from docshard.lib.structure_parser import Section, parse_sections
from docshard.models.config import ShardConfig
from docshard.models.shard import Shard, ShardMetadata, generate_shard_id

logger = logging.getLogger(__name__)

tracer = trace.get_tracer("docshard.sharder")


@dataclass
class ShardHierarchy:
    """Three-level view of a shard set.

    Attributes:
        epics: Epic shards in creation order.
        stories: Epic id to its story shards.
        tasks: Story id to its task shards.
    """

    epics: list[Shard] = field(default_factory=list)
    stories: dict[str, list[Shard]] = field(default_factory=dict)
    tasks: dict[str, list[Shard]] = field(default_factory=dict)


@dataclass
class _LineSource:
    """Lines of a shard paired with where each line came from."""

    lines: list[str]
    line_numbers: list[int]
    section_titles: list[str]

    def slice(self, start: int, end: int) -> _LineSource:
        return _LineSource(
            lines=self.lines[start:end],
            line_numbers=self.line_numbers[start:end],
            section_titles=self.section_titles[start:end],
        )

    @property
    def original_lines(self) -> tuple[int, int]:
        if not self.line_numbers:
            return (0, 0)
        return (min(self.line_numbers), max(self.line_numbers) + 1)

    @property
    def context_scope(self) -> list[str]:
        return list(dict.fromkeys(self.section_titles))


class ShardingSession:
    """Caller-owned state for one sharding run.

    Attributes:
        config: Configuration of the run.
        source_path: Path of the source document (may be empty).
        shards: Shard id to shard, in creation order.
        hierarchy: Epic/story/task view of the shards.
        cross_references: Symmetric adjacency mapping.
        created_at: Timestamp stamped on every shard as provenance.
    """

    def __init__(self, config: ShardConfig, source_path: str = "") -> None:
        """Create an empty session."""
        self.config = config
        self.source_path = source_path
        self.shards: dict[str, Shard] = {}
        self.hierarchy = ShardHierarchy()
        self.cross_references: dict[str, set[str]] = {}
        self.created_at = datetime.now(timezone.utc)

    def _unique_id(self, shard_type: str, title: str, content: str) -> str:
        base_id = generate_shard_id(shard_type, title, content)
        shard_id = base_id
        suffix = 1
        while shard_id in self.shards:
            suffix += 1
            shard_id = f"{base_id}-{suffix}"
        return shard_id

    def add_shard(
        self,
        shard_type: str,
        title: str,
        source: _LineSource,
        parent: Shard | None = None,
        context_scope: list[str] | None = None,
    ) -> Shard:
        """Create a shard, register it and link it to its parent.

        Args:
            shard_type: Level label.
            title: Shard title.
            source: Lines of the shard and their origin.
            parent: Owning shard, if any.
            context_scope: Tags; defaults to the originating section titles.

        Returns:
            The registered shard.
        """
        content = "\n".join(source.lines)
        shard = Shard(
            id=self._unique_id(shard_type, title, content),
            type=shard_type,
            title=title,
            content=content,
            line_count=len(source.lines),
            parent=parent.id if parent else None,
            context_scope=(
                list(context_scope)
                if context_scope is not None
                else source.context_scope
            ),
            metadata=ShardMetadata(
                original_file=self.source_path,
                original_lines=source.original_lines,
                created_at=self.created_at,
                version=self.config.format_version,
            ),
        )
        self.shards[shard.id] = shard
        if parent is not None:
            parent.children.append(shard.id)
        return shard

    def ordered_shards(self) -> list[Shard]:
        """Return every shard in creation order."""
        return list(self.shards.values())


@dataclass
class ShardingResult:
    """Outcome of a sharding run.

    Attributes:
        total_shards: Number of shards created.
        hierarchy: Epic/story/task view.
        navigation_index: Lookup structures over the shards.
        cross_reference_map: Symmetric adjacency mapping.
        metrics: Run statistics.
        session: The session that owns the shards.
        output_path: Directory the shards were written to, if written.
    """

    total_shards: int
    hierarchy: ShardHierarchy
    navigation_index: NavigationIndex
    cross_reference_map: dict[str, set[str]]
    metrics: ShardingMetrics
    session: ShardingSession
    output_path: Path | None = None


class DocumentSharder:
    """Partition a document into an epic/story/task hierarchy of shards.

    Attributes:
        config: Sharding configuration.

    Example:
        >>> sharder = DocumentSharder(ShardConfig(max_lines=200))
        >>> result = sharder.shard_text(text, "spec.md")
        >>> [epic.title for epic in result.hierarchy.epics]
        ['requirements', 'architecture', 'validation']
    """

    def __init__(self, config: ShardConfig | None = None) -> None:
        """Initialize the sharder.

        Args:
            config: Sharding configuration; defaults to ``ShardConfig()``.
        """
        self.config = config or ShardConfig()
        self._splitter = ChunkSplitter(preserve_context=self.config.preserve_context)
        self._detector = CrossReferenceDetector(self.config.reference_phrases)
        self._writer = ShardWriter(self.config)

    def output_path_for(self, file_path: str | Path) -> Path:
        """Return the directory a document's shards are written to."""
        return self._writer.document_dir(file_path)

    def _read_source(self, file_path: Path) -> str:
        if not file_path.exists():
            raise SourceReadError(str(file_path), "file does not exist")
        if not file_path.is_file():
            raise SourceReadError(str(file_path), "not a regular file")
        try:
            return file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise SourceReadError(str(file_path), str(e)) from e

    def _create_epics(
        self, session: ShardingSession, sections: list[Section]
    ) -> list[tuple[Shard, _LineSource]]:
        by_title = {section.title: section for section in sections}
        grouping = group_into_epics(by_title, self.config.epic_categories)

        epics: list[tuple[Shard, _LineSource]] = []
        for epic_name, section_names in grouping.items():
            source = _LineSource(lines=[], line_numbers=[], section_titles=[])
            for name in section_names:
                section = by_title[name]
                source.lines.extend(section.lines)
                source.line_numbers.extend(range(section.start_line, section.end_line))
                source.section_titles.extend([name] * len(section.lines))

            epic = session.add_shard(
                self.config.epic_level,
                epic_name,
                source,
                context_scope=list(section_names),
            )
            session.hierarchy.epics.append(epic)
            epics.append((epic, source))

        return epics

    def _create_stories(
        self, session: ShardingSession, epic: Shard, source: _LineSource
    ) -> list[tuple[Shard, _LineSource]]:
        level = self.config.story_level
        if len(source.lines) <= self.config.max_lines:
            story = session.add_shard(
                level,
                f"{epic.title} - Main Story",
                source,
                parent=epic,
                context_scope=epic.context_scope,
            )
            return [(story, source)]

        stories: list[tuple[Shard, _LineSource]] = []
        spans = self._splitter.split_spans(source.lines, self.config.story_split_size)
        for number, (start, end) in enumerate(spans, start=1):
            part = source.slice(start, end)
            story = session.add_shard(
                level, f"{epic.title} - Part {number}", part, parent=epic
            )
            stories.append((story, part))
        return stories

    def _create_tasks(
        self, session: ShardingSession, story: Shard, source: _LineSource
    ) -> list[Shard]:
        level = self.config.task_level
        if len(source.lines) <= self.config.task_threshold:
            task = session.add_shard(
                level,
                f"{story.title} - Implementation",
                source,
                parent=story,
                context_scope=story.context_scope,
            )
            return [task]

        tasks: list[Shard] = []
        spans = self._splitter.split_spans(source.lines, self.config.task_split_size)
        for number, (start, end) in enumerate(spans, start=1):
            tasks.append(
                session.add_shard(
                    level,
                    f"{story.title} - Task {number}",
                    source.slice(start, end),
                    parent=story,
                )
            )
        return tasks

    def build_session(self, text: str, source_path: str = "") -> ShardingSession:
        """Run parsing, grouping, splitting and cross-referencing.

        Args:
            text: Full document text.
            source_path: Path recorded as shard provenance.

        Returns:
            Populated session.
        """
        session = ShardingSession(self.config, source_path)
        sections = parse_sections(text.split("\n"))
        logger.debug(f"Parsed {len(sections)} sections from {source_path or '<text>'}")

        for epic, epic_source in self._create_epics(session, sections):
            stories = self._create_stories(session, epic, epic_source)
            session.hierarchy.stories[epic.id] = [story for story, _ in stories]
            for story, story_source in stories:
                session.hierarchy.tasks[story.id] = self._create_tasks(
                    session, story, story_source
                )

        shards = session.ordered_shards()
        session.cross_references = self._detector.detect(shards)
        apply_cross_references(shards, session.cross_references)
        return session

    def shard_text(self, text: str, source_path: str = "") -> ShardingResult:
        """Shard document text without writing anything to disk.

        Args:
            text: Full document text.
            source_path: Path recorded as shard provenance.

        Returns:
            ShardingResult with ``output_path`` set to None.
        """
        start_time = time.perf_counter()
        with tracer.start_as_current_span(
            "docshard.shard_text",
            attributes={"docshard.source": source_path},
        ) as span:
            session = self.build_session(text, source_path)
            shards = session.ordered_shards()
            navigation_index = build_navigation_index(shards)
            metrics = calculate_metrics(
                shards,
                original_lines=len(text.split("\n")),
                cross_references=session.cross_references,
                max_lines=self.config.max_lines,
                bounded_levels=self.config.hierarchy_levels[1:],
                start_time=start_time,
            )
            span.set_attribute("docshard.total_shards", len(shards))
            span.set_attribute(
                "docshard.cross_references", metrics.cross_reference_count
            )

        if metrics.oversized_shards:
            logger.info(
                f"{len(metrics.oversized_shards)} shard(s) exceed "
                f"{self.config.max_lines} lines because they hold a single "
                "indivisible block"
            )

        return ShardingResult(
            total_shards=len(shards),
            hierarchy=session.hierarchy,
            navigation_index=navigation_index,
            cross_reference_map=session.cross_references,
            metrics=metrics,
            session=session,
        )

    def shard_document(
        self, file_path: str | Path, write: bool = True
    ) -> ShardingResult:
        """Shard a document file and persist the result.

        Args:
            file_path: Path to the source document.
            write: When False, nothing is written (preview).

        Returns:
            ShardingResult; ``output_path`` is set when written.

        Raises:
            SourceReadError: If the source cannot be read.
            ShardWriteError: If the output cannot be written.
        """
        path = Path(file_path)
        with tracer.start_as_current_span(
            "docshard.shard_document",
            attributes={"docshard.source": str(path), "docshard.write": write},
        ) as span:
            try:
                text = self._read_source(path)
                result = self.shard_text(text, str(path))
                if write:
                    result.output_path = self._writer.write(
                        result.session, path, metrics=result.metrics
                    )
            except Exception as e:
                span.record_exception(e)
                raise

        logger.info(
            f"Sharded {path} into {result.total_shards} shards "
            f"({len(result.hierarchy.epics)} epics) in "
            f"{result.metrics.processing_time_ms}ms"
        )
        return result

    def reassemble_document(self, shard_dir: str | Path) -> str:
        """Reassemble a persisted document; see ``reassemble_document``."""
        return reassemble_document(shard_dir)
