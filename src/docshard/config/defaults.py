"""Default configuration values for docshard."""

DEFAULT_MAX_LINES = 500
DEFAULT_OUTPUT_DIR = ".nexus/specs/sharded"
DEFAULT_HIERARCHY_LEVELS: list[str] = ["epic", "story", "task"]

# Ratios of max_lines that drive the recursive split
STORY_SPLIT_RATIO = 0.7
TASK_THRESHOLD_RATIO = 0.5
TASK_SPLIT_RATIO = 0.3

# Only the final share of a full chunk is searched for a clean break
BREAK_SEARCH_WINDOW = 0.3

DEFAULT_CONFIG_FILENAME = ".docshard.yaml"

PREAMBLE_SECTION = "preamble"
DEFAULT_EPIC = "general"

# Ordered (category, keywords) table; first match wins
DEFAULT_EPIC_CATEGORIES: list[dict[str, list[str] | str]] = [
    {
        "name": "requirements",
        "keywords": ["functional", "non-functional", "requirement", "criteria"],
    },
    {
        "name": "architecture",
        "keywords": ["architecture", "design", "system", "component", "technical"],
    },
    {
        "name": "implementation",
        "keywords": ["implementation", "code", "api", "interface", "integration"],
    },
    {
        "name": "validation",
        "keywords": ["test", "validation", "quality", "acceptance", "scenario"],
    },
    {
        "name": "deployment",
        "keywords": [
            "deployment",
            "release",
            "operations",
            "monitoring",
            "infrastructure",
        ],
    },
    {
        "name": "documentation",
        "keywords": ["documentation", "user", "guide", "manual", "reference"],
    },
]

DEFAULT_REFERENCE_PHRASES: list[str] = [
    "see",
    "refer to",
    "as described in",
    "defined in",
]


def plural_level_name(level: str) -> str:
    """Return the directory name used for a hierarchy level.

    Args:
        level: Level label such as "story".

    Returns:
        Plural form, e.g. "stories" for "story" and "epics" for "epic".
    """
    if level.endswith("y") and len(level) > 1 and level[-2] not in "aeiou":
        return level[:-1] + "ies"
    if level.endswith(("s", "x", "ch", "sh")):
        return level + "es"
    return level + "s"
