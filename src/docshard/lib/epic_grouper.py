"""Keyword-driven grouping of document sections into epics."""

import logging
from collections.abc import Iterable, Sequence

from docshard.config.defaults import DEFAULT_EPIC
from docshard.models.config import EpicCategory

logger = logging.getLogger(__name__)


def classify_section(
    section_name: str,
    categories: Sequence[EpicCategory],
    default: str = DEFAULT_EPIC,
) -> str:
    """Return the epic a section belongs to.

    Args:
        section_name: Section title.
        categories: Ordered classification table; the first match wins.
        default: Epic used when no category matches.

    Returns:
        Epic name.
    """
    for category in categories:
        if category.matches(section_name):
            return category.name
    return default


def group_into_epics(
    section_names: Iterable[str],
    categories: Sequence[EpicCategory],
    default: str = DEFAULT_EPIC,
) -> dict[str, list[str]]:
    """Assign every section to exactly one epic.

    Epics appear in the order they first receive a section, and sections
    keep their document order inside each epic.

    Args:
        section_names: Section titles in document order.
        categories: Ordered classification table.
        default: Epic for unmatched sections.

    Returns:
        Mapping of epic name to its section titles.

    Example:
        >>> from docshard.models.config import ShardConfig
        >>> group_into_epics(
        ...     ["Functional Requirements", "Overview"],
        ...     ShardConfig().epic_categories,
        ... )
        {'requirements': ['Functional Requirements'], 'general': ['Overview']}
    """
    epics: dict[str, list[str]] = {}
    for name in section_names:
        epic = classify_section(name, categories, default)
        epics.setdefault(epic, []).append(name)

    logger.debug(
        f"Grouped sections into {len(epics)} epics: "
        + ", ".join(f"{epic}={len(names)}" for epic, names in epics.items())
    )
    return epics
