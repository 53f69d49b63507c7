"""Reassembly of persisted shards into a linear document.

The reassembler walks ``index.json`` in hierarchy order and always descends
to the finest level available: task content when a story has tasks, story
content when it has none, and epic content only for an epic without
stories. Because every level partitions the lines of the level above,
joining the leaves of an epic with newlines reproduces the epic exactly,
and joining epics reproduces the document whenever the epic grouping kept
the sections in document order.
"""

import logging
from pathlib import Path

from opentelemetry import trace

from docshard.lib.persistence import (
    index_levels,
    load_index,
    load_shard,
    shard_file_path,
)

logger = logging.getLogger(__name__)

tracer = trace.get_tracer("docshard.reassembler")


def reassemble_document(shard_dir: str | Path) -> str:
    """Reconstruct a document from its persisted shards.

    Args:
        shard_dir: Sharded document directory (the one holding index.json).

    Returns:
        Reassembled document text.

    Raises:
        ShardNotFoundError: If the index or any referenced shard is missing.
        ShardFormatError: If a shard file cannot be parsed.
    """
    directory = Path(shard_dir)
    index = load_index(directory)
    epic_level, story_level, task_level = index_levels(index)
    stories_by_epic = {
        group["epic_id"]: group["stories"] for group in index.get("stories", [])
    }
    tasks_by_story = {
        group["story_id"]: group["tasks"] for group in index.get("tasks", [])
    }

    with tracer.start_as_current_span(
        "docshard.reassemble",
        attributes={"docshard.shard_dir": str(directory)},
    ) as span:
        epic_parts: list[str] = []
        loaded = 0

        for epic in index.get("epics", []):
            stories = stories_by_epic.get(epic["id"], [])
            if not stories:
                path = shard_file_path(directory, epic_level, epic["id"])
                epic_parts.append(load_shard(path).content)
                loaded += 1
                continue

            leaves: list[str] = []
            for story in stories:
                tasks = tasks_by_story.get(story["id"], [])
                if not tasks:
                    path = shard_file_path(directory, story_level, story["id"])
                    leaves.append(load_shard(path).content)
                    loaded += 1
                    continue
                for task in tasks:
                    path = shard_file_path(directory, task_level, task["id"])
                    leaves.append(load_shard(path).content)
                    loaded += 1

            epic_parts.append("\n".join(leaves))

        span.set_attribute("docshard.loaded_shards", loaded)

    logger.debug(f"Reassembled {len(epic_parts)} epics from {loaded} shard files")
    return "\n".join(epic_parts)


def calculate_similarity(original: str, reassembled: str) -> float:
    """Estimate how much of a document survived reassembly.

    Args:
        original: Original document text.
        reassembled: Reassembled text.

    Returns:
        Fraction (0.0 to 1.0) of non-blank original lines found in the
        reassembled text, relative to the longer of the two line counts.
    """
    original_lines = [line for line in original.split("\n") if line.strip()]
    reassembled_lines = [line for line in reassembled.split("\n") if line.strip()]
    longest = max(len(original_lines), len(reassembled_lines))
    if longest == 0:
        return 1.0

    available = set(reassembled_lines)
    matches = sum(1 for line in original_lines if line in available)
    return matches / longest
