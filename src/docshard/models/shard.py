"""Shard data structures.

A shard is a bounded chunk of a larger document tagged with a hierarchy
level. Shards are produced in a single sharding run, persisted as markdown
files with YAML front matter, and may be reloaded for reassembly.
"""

import hashlib
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

FORMAT_VERSION = "1.0.0"

_SLUG_CLEANUP = re.compile(r"[^a-z0-9]+")


def slugify(text: str, max_length: int = 30) -> str:
    """Normalize a title into a lowercase, hyphen-separated slug.

    Args:
        text: Text to normalize.
        max_length: Maximum slug length.

    Returns:
        Slug, possibly empty if the text holds no alphanumerics.

    Example:
        >>> slugify("System Architecture - Part 1")
        'system-architecture-part-1'
    """
    slug = _SLUG_CLEANUP.sub("-", text.lower()).strip("-")
    return slug[:max_length].strip("-")


def generate_shard_id(shard_type: str, title: str, content: str) -> str:
    """Generate a reproducible shard identifier.

    The identity depends only on type, title and content, so sharding the
    same document twice yields the same ids.

    Args:
        shard_type: Hierarchy level label (e.g. "epic").
        title: Shard title.
        content: Shard content.

    Returns:
        Identifier of the form ``<type>-<slug>-<hash8>``.
    """
    digest = hashlib.sha256(
        f"{shard_type}\x00{title}\x00{content}".encode()
    ).hexdigest()[:8]
    slug = slugify(title)
    if not slug:
        return f"{shard_type}-{digest}"
    return f"{shard_type}-{slug}-{digest}"


@dataclass
class ShardMetadata:
    """Provenance information for a shard.

    Attributes:
        original_file: Path of the source document.
        original_lines: (start, end) line range in the source, end exclusive.
        created_at: Creation timestamp. Never part of the shard identity.
        version: Shard file format version.
    """

    original_file: str = ""
    original_lines: tuple[int, int] = (0, 0)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    version: str = FORMAT_VERSION


@dataclass
class Shard:
    """A single node of the epic/story/task hierarchy.

    Attributes:
        id: Unique, reproducible identifier.
        type: Hierarchy level label.
        title: Human-readable title.
        content: Raw text of the shard.
        line_count: Number of lines in content.
        parent: Owning shard id, if any.
        children: Ordered ids of owned shards.
        cross_references: Ids of related shards (kept symmetric).
        context_scope: Free-form tags inherited from originating sections.
        metadata: Provenance information.

    Example:
        >>> shard = Shard(
        ...     id="epic-architecture-1a2b3c4d",
        ...     type="epic",
        ...     title="architecture",
        ...     content="## System Architecture\\n...",
        ...     line_count=2,
        ...     context_scope=["System Architecture"],
        ... )
    """

    id: str
    type: str
    title: str
    content: str
    line_count: int
    parent: str | None = None
    children: list[str] = field(default_factory=list)
    cross_references: list[str] = field(default_factory=list)
    context_scope: list[str] = field(default_factory=list)
    metadata: ShardMetadata = field(default_factory=ShardMetadata)

    def to_summary_dict(self) -> dict[str, Any]:
        """Return the id/title pair stored in index.json."""
        return {"id": self.id, "title": self.title}

    def to_front_matter(self) -> dict[str, Any]:
        """Serialize shard fields for the YAML front matter block.

        Returns:
            Ordered dictionary of header fields. Empty optional fields
            are omitted, matching the persisted file format.
        """
        header: dict[str, Any] = {
            "id": self.id,
            "type": self.type,
            "title": self.title,
        }
        if self.parent:
            header["parent"] = self.parent
        if self.children:
            header["children"] = list(self.children)
        if self.cross_references:
            header["references"] = list(self.cross_references)
        header["context"] = list(self.context_scope)
        header["lines"] = self.line_count
        header["original_lines"] = list(self.metadata.original_lines)
        header["source"] = self.metadata.original_file
        header["created"] = self.metadata.created_at.isoformat()
        header["version"] = self.metadata.version
        return header
