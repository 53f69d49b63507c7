"""Heading-based structure parsing for source documents.

Splits a document into an ordered mapping of section title to section
lines. Only level 1-3 markdown headings start a new section; deeper
headings stay inside their parent section. Text before the first heading
is kept under a synthetic ``preamble`` key.
"""

import re
from dataclasses import dataclass

from docshard.config.defaults import PREAMBLE_SECTION

SECTION_HEADING_PATTERN = re.compile(r"^#{1,3}\s+")
FENCE_PATTERN = re.compile(r"^\s*(`{3,}|~{3,})")


@dataclass
class Section:
    """A contiguous run of document lines owned by one heading.

    Attributes:
        title: Heading text with the marker stripped (or the preamble key).
        lines: Lines of the section, heading line included.
        start_line: Zero-based index of the first line in the document.
    """

    title: str
    lines: list[str]
    start_line: int

    @property
    def end_line(self) -> int:
        """Index one past the last line of the section."""
        return self.start_line + len(self.lines)


def _unique_title(title: str, used: set[str]) -> str:
    """Disambiguate repeated heading titles with a numeric suffix."""
    candidate = title
    count = 1
    while candidate in used:
        count += 1
        candidate = f"{title} ({count})"
    used.add(candidate)
    return candidate


def parse_sections(lines: list[str]) -> list[Section]:
    """Split document lines into sections at level 1-3 headings.

    Heading markers inside fenced code blocks are treated as content.

    Args:
        lines: Document lines (as produced by ``text.split("\\n")``).

    Returns:
        Sections in document order. Their lines concatenate back to the
        input exactly. A document without headings yields one section.
    """
    sections: list[Section] = []
    seen_titles: set[str] = set()
    current_title = PREAMBLE_SECTION
    current_lines: list[str] = []
    current_start = 0
    fence_marker: str | None = None

    for index, line in enumerate(lines):
        fence = FENCE_PATTERN.match(line)
        if fence_marker is not None:
            if line.strip().startswith(fence_marker):
                fence_marker = None
        elif fence:
            fence_marker = fence.group(1)[0] * 3
        elif SECTION_HEADING_PATTERN.match(line):
            if current_lines:
                sections.append(
                    Section(
                        title=_unique_title(current_title, seen_titles),
                        lines=current_lines,
                        start_line=current_start,
                    )
                )
            current_title = SECTION_HEADING_PATTERN.sub("", line).strip()
            current_lines = [line]
            current_start = index
            continue

        current_lines.append(line)

    if current_lines:
        sections.append(
            Section(
                title=_unique_title(current_title, seen_titles),
                lines=current_lines,
                start_line=current_start,
            )
        )

    return sections


def parse_document_structure(lines: list[str]) -> dict[str, list[str]]:
    """Parse document lines into an ordered title -> lines mapping.

    Args:
        lines: Document lines.

    Returns:
        Insertion-ordered mapping of section title to its lines.

    Example:
        >>> parse_document_structure(["intro", "# Design", "text"])
        {'preamble': ['intro'], 'Design': ['# Design', 'text']}
    """
    return {section.title: section.lines for section in parse_sections(lines)}
