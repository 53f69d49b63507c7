"""Cross-reference detection between shards.

Two kinds of references are recognized:

- Phrase references: a lead-in phrase ("see", "refer to", "as described in",
  "defined in") followed by text that names another shard's title.
- Identifier references: tokens such as ``REQ-001`` or ``FR-1234`` that also
  occur in another shard.

Detection is directional, but every edge is recorded in both directions so
the resulting graph is symmetric. Shards on the same ancestor/descendant
line are never linked, since a parent always contains its children's text.
"""

import logging
import re
from collections.abc import Iterable, Sequence

from docshard.config.defaults import DEFAULT_REFERENCE_PHRASES
from docshard.models.shard import Shard

logger = logging.getLogger(__name__)

IDENTIFIER_PATTERN = re.compile(r"\b([A-Z]{2,4}-\d{3,4})\b")

_TRAILING_PUNCTUATION = ".,;:!?)]}"


def build_phrase_pattern(phrases: Sequence[str]) -> re.Pattern[str]:
    """Compile the phrase-reference regex for the given lead-in phrases.

    Args:
        phrases: Lead-in phrases, matched case-insensitively.

    Returns:
        Pattern whose first group captures the referenced text.
    """
    # Longest first so "refer to" wins over a shorter overlapping phrase
    alternatives = "|".join(
        r"\s+".join(re.escape(word) for word in phrase.split())
        for phrase in sorted(phrases, key=len, reverse=True)
    )
    return re.compile(
        rf"\b(?:{alternatives})\s+(?:section\s+)?[\"']?([^\"'\n]+)[\"']?",
        re.IGNORECASE,
    )


class CrossReferenceDetector:
    """Detect references between shards and build a symmetric graph.

    Attributes:
        phrase_pattern: Compiled phrase-reference regex.

    Example:
        >>> detector = CrossReferenceDetector()
        >>> graph = detector.detect(shards)
        >>> all(a in graph[b] for a in graph for b in graph[a])
        True
    """

    def __init__(self, phrases: Sequence[str] | None = None) -> None:
        """Initialize the detector.

        Args:
            phrases: Lead-in phrases; defaults to the built-in set.
        """
        self.phrase_pattern = build_phrase_pattern(
            list(phrases) if phrases else DEFAULT_REFERENCE_PHRASES
        )

    def find_phrase_targets(self, content: str) -> list[str]:
        """Extract referenced text that follows a lead-in phrase.

        Args:
            content: Shard content.

        Returns:
            Lowercased referenced phrases in order of appearance.
        """
        targets: list[str] = []
        for match in self.phrase_pattern.finditer(content):
            target = match.group(1).strip().rstrip(_TRAILING_PUNCTUATION).strip()
            if target:
                targets.append(target.lower())
        return targets

    @staticmethod
    def find_identifiers(content: str) -> list[str]:
        """Extract identifier-style tokens (e.g. ``REQ-001``) in order."""
        seen: dict[str, None] = {}
        for match in IDENTIFIER_PATTERN.finditer(content):
            seen.setdefault(match.group(1), None)
        return list(seen)

    @staticmethod
    def _lineage(shard_id: str, shards: dict[str, Shard]) -> set[str]:
        """Collect the ids of a shard's ancestors and descendants."""
        related: set[str] = set()

        parent = shards[shard_id].parent
        while parent is not None and parent in shards and parent not in related:
            related.add(parent)
            parent = shards[parent].parent

        pending = list(shards[shard_id].children)
        while pending:
            child = pending.pop()
            if child in related or child not in shards:
                continue
            related.add(child)
            pending.extend(shards[child].children)

        return related

    @staticmethod
    def _title_matches(title: str, target: str) -> bool:
        # Either side may contain the other, so short titles match long phrases
        lowered = title.lower()
        return bool(lowered) and (target in lowered or lowered in target)

    def detect(self, shards: Iterable[Shard]) -> dict[str, set[str]]:
        """Detect cross-references across a complete shard set.

        Args:
            shards: Every shard of the run, in creation order.

        Returns:
            Symmetric adjacency mapping with an entry for every shard.
        """
        by_id = {shard.id: shard for shard in shards}
        graph: dict[str, set[str]] = {shard_id: set() for shard_id in by_id}

        for shard_id, shard in by_id.items():
            excluded = self._lineage(shard_id, by_id) | {shard_id}
            candidates = [other for oid, other in by_id.items() if oid not in excluded]

            for target in self.find_phrase_targets(shard.content):
                for other in candidates:
                    if self._title_matches(other.title, target):
                        graph[shard_id].add(other.id)
                        graph[other.id].add(shard_id)

            for identifier in self.find_identifiers(shard.content):
                for other in candidates:
                    if identifier in other.content:
                        graph[shard_id].add(other.id)
                        graph[other.id].add(shard_id)

        edge_count = sum(len(refs) for refs in graph.values()) // 2
        logger.debug(
            f"Detected {edge_count} cross-references across {len(by_id)} shards"
        )
        return graph


def apply_cross_references(
    shards: Sequence[Shard], graph: dict[str, set[str]]
) -> None:
    """Store graph edges on the shards in deterministic shard order.

    Args:
        shards: Shards in creation order.
        graph: Symmetric adjacency mapping from ``CrossReferenceDetector``.
    """
    order = {shard.id: position for position, shard in enumerate(shards)}
    for shard in shards:
        shard.cross_references = sorted(graph.get(shard.id, ()), key=order.__getitem__)
