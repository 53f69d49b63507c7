"""Tests for structure-safe line chunking.

Covers fence and list protection, break point selection in the final
window of a full chunk, adversarial oversized blocks and naive slicing.
"""

import pytest

from docshard.lib.chunk_splitter import ChunkSplitter


def _plain(count: int, prefix: str = "line") -> list[str]:
    return [f"{prefix} {i}" for i in range(count)]


def _assert_bounded(
    chunks: list[list[str]], target: int, splitter: ChunkSplitter
) -> None:
    """Every chunk is within target or is exactly one protected block."""
    for chunk in chunks:
        if len(chunk) <= target:
            continue
        protected = splitter.protected_boundaries(chunk)
        assert all(protected[:-1]), f"oversized chunk is not a single block: {chunk}"


class TestInitialization:
    """Tests for ChunkSplitter construction and argument checks."""

    def test_preserve_context_default(self) -> None:
        """Test structure preservation is on by default."""
        assert ChunkSplitter().preserve_context is True

    @pytest.mark.parametrize("target", [0, -3])
    def test_non_positive_target_rejected(self, target: int) -> None:
        """Test the target must be positive."""
        with pytest.raises(ValueError, match="target must be positive"):
            ChunkSplitter().split(["a"], target)

    def test_empty_input(self) -> None:
        """Test no lines yields no chunks."""
        assert ChunkSplitter().split([], 5) == []


class TestProtectedBoundaries:
    """Tests for protected_boundaries()."""

    def test_fence_is_protected_until_closed(self) -> None:
        """Test lines inside a fence are protected, the closing line is not."""
        lines = ["text", "```python", "x = 1", "```", "after"]
        assert ChunkSplitter().protected_boundaries(lines) == [
            False,
            True,
            True,
            False,
            False,
        ]

    def test_tilde_fence_not_closed_by_backticks(self) -> None:
        """Test a fence only closes with its own marker."""
        lines = ["~~~", "```", "code", "~~~"]
        assert ChunkSplitter().protected_boundaries(lines) == [True, True, True, False]

    def test_list_runs_until_blank_line(self) -> None:
        """Test a list block stays open across continuation lines."""
        lines = ["- one", "  continued", "2. two", "", "after"]
        assert ChunkSplitter().protected_boundaries(lines) == [
            True,
            True,
            True,
            False,
            False,
        ]

    def test_list_marker_inside_fence_ignored(self) -> None:
        """Test list state is not updated inside a fence."""
        lines = ["```", "- not a list", "```", "text"]
        assert ChunkSplitter().protected_boundaries(lines)[2:] == [False, False]


class TestSplitting:
    """Tests for split() and split_spans()."""

    def test_input_within_target_is_one_chunk(self) -> None:
        """Test short input is returned unchanged."""
        lines = _plain(4)
        assert ChunkSplitter().split(lines, 10) == [lines]

    def test_hard_cut_without_break_candidates(self) -> None:
        """Test plain text is cut exactly at the target."""
        spans = ChunkSplitter().split_spans(_plain(10), 4)
        assert spans == [(0, 4), (4, 8), (8, 10)]

    def test_prefers_heading_in_final_window(self) -> None:
        """Test a heading near the end of a full chunk opens the next one."""
        lines = ["a", "b", "c", "## Next", "d", "e"]
        assert ChunkSplitter().split_spans(lines, 4) == [(0, 3), (3, 6)]

    def test_prefers_double_blank_line(self) -> None:
        """Test a blank line preceded by a blank line is a break point."""
        lines = ["a", "b", "c", "", "", "d"]
        assert ChunkSplitter().split_spans(lines, 5) == [(0, 4), (4, 6)]

    def test_heading_outside_window_ignored(self) -> None:
        """Test break points before the final 30% are not used."""
        lines = ["## Start", "b", "## Early", "d", "e", "f", "g", "h", "i", "j"]
        assert ChunkSplitter().split_spans(lines, 10) == [(0, 10)]
        spans = ChunkSplitter().split_spans(lines + ["k"], 10)
        assert spans[0] == (0, 10)

    def test_chunks_concatenate_to_input(self) -> None:
        """Test splitting loses and duplicates nothing."""
        lines = (
            _plain(7)
            + ["```", *_plain(5, "code"), "```"]
            + ["", "- a", "- b", "", "## H"]
            + _plain(9)
        )
        chunks = ChunkSplitter().split(lines, 6)
        assert [line for chunk in chunks for line in chunk] == lines
        assert all(chunks)

    def test_never_cuts_inside_fence(self) -> None:
        """Test a fence that fits in a fresh chunk is kept whole."""
        lines = _plain(3) + ["```", *_plain(4, "code"), "```"] + _plain(3)
        chunks = ChunkSplitter().split(lines, 7)
        fence_chunks = [chunk for chunk in chunks if "```" in chunk]
        assert len(fence_chunks) == 1
        assert fence_chunks[0].count("```") == 2
        _assert_bounded(chunks, 7, ChunkSplitter())

    def test_block_that_would_overflow_starts_new_chunk(self) -> None:
        """Test pending lines are flushed before a block that does not fit."""
        lines = _plain(4) + ["- a", "- b", "- c", "- d", ""] + _plain(2)
        spans = ChunkSplitter().split_spans(lines, 6)
        assert spans[0] == (0, 4)
        assert spans[1][0] == 4


class TestAdversarialBlocks:
    """Size bound behavior for blocks larger than the target."""

    def test_giant_code_fence_is_single_oversized_chunk(self) -> None:
        """Test a fence above the target becomes exactly one chunk."""
        lines = ["intro", "```", *_plain(10, "code"), "```", "after"]
        splitter = ChunkSplitter()
        spans = splitter.split_spans(lines, 5)
        assert spans == [(0, 1), (1, 13), (13, 14)]
        _assert_bounded(splitter.split(lines, 5), 5, splitter)

    def test_giant_list_is_single_oversized_chunk(self) -> None:
        """Test a list above the target is kept intact with its blank line."""
        lines = [f"- item {i}" for i in range(12)] + ["", "tail"]
        splitter = ChunkSplitter()
        assert splitter.split_spans(lines, 5) == [(0, 13), (13, 14)]

    def test_unclosed_fence_runs_to_end(self) -> None:
        """Test an unterminated fence is never split."""
        lines = ["text", "```", *_plain(20, "code")]
        spans = ChunkSplitter().split_spans(lines, 5)
        assert spans == [(0, 1), (1, 22)]

    def test_bound_holds_on_mixed_document(self) -> None:
        """Test only single blocks may exceed the target."""
        lines: list[str] = []
        for block in range(5):
            lines.extend(_plain(9, f"p{block}"))
            lines.extend(["```", *_plain(3 + block * 4, "code"), "```"])
            lines.extend([f"- item {i}" for i in range(block + 2)] + [""])
        splitter = ChunkSplitter()
        chunks = splitter.split(lines, 8)
        _assert_bounded(chunks, 8, splitter)
        assert [line for chunk in chunks for line in chunk] == lines


class TestNaiveMode:
    """Tests for fixed-size slicing when structure is not preserved."""

    def test_slices_by_line_count(self) -> None:
        """Test chunks are exact slices regardless of structure."""
        lines = ["intro", "```", *_plain(10, "code"), "```", "after"]
        spans = ChunkSplitter(preserve_context=False).split_spans(lines, 5)
        assert spans == [(0, 5), (5, 10), (10, 14)]

    def test_every_chunk_within_target(self) -> None:
        """Test naive chunks never exceed the target."""
        chunks = ChunkSplitter(preserve_context=False).split(_plain(23), 4)
        assert all(len(chunk) <= 4 for chunk in chunks)
        assert sum(len(chunk) for chunk in chunks) == 23
