"""Configuration models for the document sharder.

ShardConfig is the single source of truth for a sharding run. It accepts
both snake_case names and the camelCase aliases used by existing
configuration files (``maxLines``, ``preserveContext``, ``hierarchyLevels``,
``outputDir``).
"""

import math
import re

from pydantic import BaseModel, ConfigDict, Field, field_validator

from docshard.config.defaults import (
    DEFAULT_EPIC_CATEGORIES,
    DEFAULT_HIERARCHY_LEVELS,
    DEFAULT_MAX_LINES,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_REFERENCE_PHRASES,
    STORY_SPLIT_RATIO,
    TASK_SPLIT_RATIO,
    TASK_THRESHOLD_RATIO,
)
from docshard.models.shard import FORMAT_VERSION

_LEVEL_NAME_PATTERN = re.compile(r"^[a-z][a-z0-9_]*$")


class EpicCategory(BaseModel):
    """One row of the ordered epic classification table.

    A section belongs to the first category whose keywords appear
    (case-insensitively) in the section title.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(..., description="Epic name assigned to matching sections")
    keywords: list[str] = Field(
        ..., description="Substrings tested against section titles"
    )

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate category name is not blank."""
        if not v.strip():
            raise ValueError("category name must be non-empty")
        return v.strip()

    @field_validator("keywords")
    @classmethod
    def validate_keywords(cls, v: list[str]) -> list[str]:
        """Normalize keywords to lowercase and reject empty lists."""
        keywords = [k.strip().lower() for k in v if k.strip()]
        if not keywords:
            raise ValueError("keywords must contain at least one non-empty entry")
        return keywords

    def matches(self, section_name: str) -> bool:
        """Check whether a section title falls into this category."""
        lowered = section_name.lower()
        return any(keyword in lowered for keyword in self.keywords)


def _default_epic_categories() -> list[EpicCategory]:
    return [EpicCategory.model_validate(row) for row in DEFAULT_EPIC_CATEGORIES]


class ShardConfig(BaseModel):
    """Configuration for a document sharding run."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    max_lines: int = Field(
        DEFAULT_MAX_LINES,
        alias="maxLines",
        description="Maximum lines per story/task shard",
    )
    preserve_context: bool = Field(
        True,
        alias="preserveContext",
        description=(
            "Structure-aware splitting that never breaks code fences or "
            "lists. When false, a plain fixed line-count splitter is used."
        ),
    )
    hierarchy_levels: list[str] = Field(
        default_factory=lambda: list(DEFAULT_HIERARCHY_LEVELS),
        alias="hierarchyLevels",
        description="Level labels from coarsest to finest (exactly three)",
    )
    output_dir: str = Field(
        DEFAULT_OUTPUT_DIR,
        alias="outputDir",
        description="Destination root for sharded output",
    )
    epic_categories: list[EpicCategory] = Field(
        default_factory=_default_epic_categories,
        alias="epicCategories",
        description="Ordered section classification table",
    )
    reference_phrases: list[str] = Field(
        default_factory=lambda: list(DEFAULT_REFERENCE_PHRASES),
        alias="referencePhrases",
        description="Lead-in phrases that introduce a cross-reference",
    )
    write_workers: int = Field(
        1,
        alias="writeWorkers",
        description="Threads used to write shard files (1 writes sequentially)",
    )
    format_version: str = Field(
        FORMAT_VERSION,
        alias="formatVersion",
        description="Version stamped into every shard file",
    )

    @field_validator("max_lines")
    @classmethod
    def validate_max_lines(cls, v: int) -> int:
        """Validate max_lines leaves room for a multi-line task target."""
        if v < 2:
            raise ValueError("max_lines must be at least 2")
        return v

    @field_validator("hierarchy_levels")
    @classmethod
    def validate_hierarchy_levels(cls, v: list[str]) -> list[str]:
        """Validate there are exactly three unique, path-safe level names."""
        levels = [level.strip().lower() for level in v]
        if len(levels) != 3:
            raise ValueError("hierarchy_levels must name exactly three levels")
        if len(set(levels)) != 3:
            raise ValueError("hierarchy_levels must be unique")
        for level in levels:
            if not _LEVEL_NAME_PATTERN.match(level):
                raise ValueError(
                    f"invalid level name {level!r}: use lowercase letters, "
                    "digits and underscores"
                )
        return levels

    @field_validator("output_dir")
    @classmethod
    def validate_output_dir(cls, v: str) -> str:
        """Validate output_dir is not empty."""
        if not v.strip():
            raise ValueError("output_dir must be non-empty")
        return v

    @field_validator("reference_phrases")
    @classmethod
    def validate_reference_phrases(cls, v: list[str]) -> list[str]:
        """Drop blank phrases and require at least one."""
        phrases = [p.strip() for p in v if p.strip()]
        if not phrases:
            raise ValueError("reference_phrases must contain at least one phrase")
        return phrases

    @field_validator("write_workers")
    @classmethod
    def validate_write_workers(cls, v: int) -> int:
        """Validate write_workers is positive."""
        if v < 1:
            raise ValueError("write_workers must be at least 1")
        return v

    @property
    def epic_level(self) -> str:
        """Label of the coarsest level."""
        return self.hierarchy_levels[0]

    @property
    def story_level(self) -> str:
        """Label of the middle level."""
        return self.hierarchy_levels[1]

    @property
    def task_level(self) -> str:
        """Label of the finest level."""
        return self.hierarchy_levels[2]

    @property
    def story_split_size(self) -> int:
        """Target chunk size when an epic is split into stories."""
        return math.ceil(round(self.max_lines * STORY_SPLIT_RATIO, 6))

    @property
    def task_threshold(self) -> int:
        """Stories above this many lines are split into several tasks."""
        return math.ceil(round(self.max_lines * TASK_THRESHOLD_RATIO, 6))

    @property
    def task_split_size(self) -> int:
        """Target chunk size when a story is split into tasks."""
        return math.ceil(round(self.max_lines * TASK_SPLIT_RATIO, 6))
