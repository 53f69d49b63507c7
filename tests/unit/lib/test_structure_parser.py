"""Tests for heading-based structure parsing."""

from docshard.lib.structure_parser import (
    Section,
    parse_document_structure,
    parse_sections,
)


class TestParseSections:
    """Tests for parse_sections()."""

    def test_splits_at_level_one_to_three_headings(self) -> None:
        """Test each level 1-3 heading starts a section."""
        lines = ["# Title", "intro", "## Design", "text", "### Detail", "more"]
        sections = parse_sections(lines)
        assert [s.title for s in sections] == ["Title", "Design", "Detail"]
        assert sections[1].lines == ["## Design", "text"]

    def test_deeper_headings_stay_in_section(self) -> None:
        """Test level 4+ headings do not start a new section."""
        sections = parse_sections(["## API", "#### Endpoint", "body"])
        assert len(sections) == 1
        assert sections[0].lines == ["## API", "#### Endpoint", "body"]

    def test_preamble_before_first_heading(self) -> None:
        """Test text before the first heading goes to the preamble."""
        sections = parse_sections(["front", "matter", "# Start", "body"])
        assert sections[0].title == "preamble"
        assert sections[0].lines == ["front", "matter"]
        assert sections[1].start_line == 2

    def test_no_preamble_when_document_starts_with_heading(self) -> None:
        """Test no empty preamble section is emitted."""
        assert parse_sections(["# Start", "body"])[0].title == "Start"

    def test_document_without_headings_is_one_section(self) -> None:
        """Test a flat document degrades to a single section."""
        sections = parse_sections(["just", "some", "text"])
        assert len(sections) == 1
        assert sections[0].title == "preamble"
        assert sections[0].end_line == 3

    def test_empty_document(self) -> None:
        """Test an empty document produces one empty-line section."""
        sections = parse_sections([""])
        assert len(sections) == 1
        assert sections[0].lines == [""]

    def test_duplicate_titles_are_suffixed(self) -> None:
        """Test repeated headings keep distinct keys."""
        lines = ["## Notes", "a", "## Notes", "b", "## Notes", "c"]
        titles = [s.title for s in parse_sections(lines)]
        assert titles == ["Notes", "Notes (2)", "Notes (3)"]

    def test_suffix_does_not_collide_with_real_heading(self) -> None:
        """Test a generated suffix skips titles already in use."""
        lines = ["## Notes (2)", "a", "## Notes", "b", "## Notes", "c"]
        titles = [s.title for s in parse_sections(lines)]
        assert len(set(titles)) == 3

    def test_headings_inside_code_fence_are_content(self) -> None:
        """Test markdown comments in fenced code do not start sections."""
        lines = ["## Setup", "```bash", "# install deps", "pip install x", "```"]
        sections = parse_sections(lines)
        assert len(sections) == 1
        assert "# install deps" in sections[0].lines

    def test_lines_concatenate_back_to_input(self) -> None:
        """Test sections partition the document exactly."""
        lines = ["pre", "# A", "1", "", "## B", "2", "~~~", "# no", "~~~", "# C"]
        rebuilt = [line for s in parse_sections(lines) for line in s.lines]
        assert rebuilt == lines

    def test_heading_requires_space_after_marker(self) -> None:
        """Test '#tag' is not a heading."""
        assert len(parse_sections(["#tag", "text"])) == 1


class TestSection:
    """Tests for the Section dataclass."""

    def test_end_line(self) -> None:
        """Test end_line is one past the last line."""
        assert Section(title="A", lines=["x", "y"], start_line=4).end_line == 6


class TestParseDocumentStructure:
    """Tests for parse_document_structure()."""

    def test_returns_ordered_mapping(self) -> None:
        """Test the title -> lines mapping keeps document order."""
        structure = parse_document_structure(["intro", "# Design", "text"])
        assert structure == {"preamble": ["intro"], "Design": ["# Design", "text"]}
        assert list(structure) == ["preamble", "Design"]
