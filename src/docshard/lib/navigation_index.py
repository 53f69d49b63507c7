"""Navigation and token search index over a shard set."""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field

from docshard.models.shard import Shard

logger = logging.getLogger(__name__)

WORD_PATTERN = re.compile(r"\b[a-z]+\b")
# REQ-001 style ids, snake_case, camelCase and words mixing letters and digits
IDENTIFIER_PATTERN = re.compile(
    r"\b[A-Z]{2,4}-\d{3,4}\b"
    r"|\b[A-Za-z]+_[A-Za-z0-9_]*\b"
    r"|\b[a-z]+[A-Z][A-Za-z0-9]*\b"
    r"|\b[A-Za-z]+\d[A-Za-z0-9]*\b"
)
MIN_WORD_LENGTH = 4


def tokenize_content(content: str) -> set[str]:
    """Extract normalized search tokens from text.

    Args:
        content: Text to tokenize.

    Returns:
        Lowercase words longer than three letters plus lowercased
        identifier-shaped tokens.

    Example:
        >>> sorted(tokenize_content("See REQ-001 for the shard_writer API"))
        ['req-001', 'shard_writer']
    """
    tokens = {
        word
        for word in WORD_PATTERN.findall(content.lower())
        if len(word) >= MIN_WORD_LENGTH
    }
    tokens.update(
        match.group(0).lower() for match in IDENTIFIER_PATTERN.finditer(content)
    )
    return tokens


@dataclass
class NavigationIndex:
    """Lookup structures for retrieving shards.

    Attributes:
        by_id: Shard id to shard.
        by_type: Level label to shards in creation order.
        by_context: Context tag to shards in creation order.
        search_index: Token to ids of shards whose content contains it.
    """

    by_id: dict[str, Shard] = field(default_factory=dict)
    by_type: dict[str, list[Shard]] = field(default_factory=dict)
    by_context: dict[str, list[Shard]] = field(default_factory=dict)
    search_index: dict[str, list[str]] = field(default_factory=dict)

    def get(self, shard_id: str) -> Shard | None:
        """Look up a shard by id."""
        return self.by_id.get(shard_id)

    def search(self, query: str) -> list[str]:
        """Find shards containing every token of a query.

        Args:
            query: Free text; tokenized like shard content.

        Returns:
            Matching shard ids in creation order. Empty if the query has no
            indexable tokens.
        """
        tokens = tokenize_content(query)
        if not tokens:
            return []

        matches: set[str] | None = None
        for token in tokens:
            ids = set(self.search_index.get(token, ()))
            matches = ids if matches is None else matches & ids
            if not matches:
                return []

        return [shard_id for shard_id in self.by_id if shard_id in (matches or ())]


def build_navigation_index(shards: Iterable[Shard]) -> NavigationIndex:
    """Build the navigation index for a shard set.

    Deterministic and idempotent: the same shards in the same order always
    produce equal indices.

    Args:
        shards: Shards in creation order.

    Returns:
        Populated NavigationIndex.
    """
    index = NavigationIndex()

    for shard in shards:
        index.by_id[shard.id] = shard
        index.by_type.setdefault(shard.type, []).append(shard)

        for context in shard.context_scope:
            index.by_context.setdefault(context, []).append(shard)

        for token in sorted(tokenize_content(shard.content)):
            shard_ids = index.search_index.setdefault(token, [])
            if shard.id not in shard_ids:
                shard_ids.append(shard.id)

    logger.debug(
        f"Built navigation index: {len(index.by_id)} shards, "
        f"{len(index.search_index)} tokens"
    )
    return index
