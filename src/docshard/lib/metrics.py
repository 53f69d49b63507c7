"""Statistics for a sharding run."""

import time
from collections.abc import Sequence
from dataclasses import asdict, dataclass, field
from typing import Any

from docshard.models.shard import Shard


@dataclass
class ShardingMetrics:
    """Summary statistics for one sharding run.

    Attributes:
        original_lines: Line count of the source document.
        total_shard_lines: Sum of line counts over every shard.
        compression_ratio: ``1 - total_shard_lines / original_lines``. Usually
            negative, since each level repeats the content of the level above.
        average_shard_size: Mean shard size in lines, rounded.
        max_shard_size: Largest shard size.
        min_shard_size: Smallest shard size.
        cross_reference_count: Number of undirected cross-reference edges.
        oversized_shards: Story/task ids above max_lines (single indivisible
            blocks kept intact).
        processing_time_ms: Wall-clock duration of the run.
    """

    original_lines: int = 0
    total_shard_lines: int = 0
    compression_ratio: float = 0.0
    average_shard_size: int = 0
    max_shard_size: int = 0
    min_shard_size: int = 0
    cross_reference_count: int = 0
    oversized_shards: list[str] = field(default_factory=list)
    processing_time_ms: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return asdict(self)


def calculate_metrics(
    shards: Sequence[Shard],
    original_lines: int,
    cross_references: dict[str, set[str]],
    max_lines: int,
    bounded_levels: Sequence[str],
    start_time: float,
) -> ShardingMetrics:
    """Calculate run metrics.

    Args:
        shards: Every shard of the run.
        original_lines: Line count of the source document.
        cross_references: Symmetric adjacency mapping.
        max_lines: Configured size bound.
        bounded_levels: Levels the size bound applies to.
        start_time: ``time.perf_counter()`` value taken when the run started.

    Returns:
        Populated ShardingMetrics.
    """
    sizes = [shard.line_count for shard in shards]
    total = sum(sizes)

    return ShardingMetrics(
        original_lines=original_lines,
        total_shard_lines=total,
        compression_ratio=1 - (total / original_lines) if original_lines else 0.0,
        average_shard_size=round(total / len(sizes)) if sizes else 0,
        max_shard_size=max(sizes, default=0),
        min_shard_size=min(sizes, default=0),
        cross_reference_count=sum(len(refs) for refs in cross_references.values()) // 2,
        oversized_shards=[
            shard.id
            for shard in shards
            if shard.type in bounded_levels and shard.line_count > max_lines
        ],
        processing_time_ms=int((time.perf_counter() - start_time) * 1000),
    )
