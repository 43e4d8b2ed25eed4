"""Tests for merge, unmerge, blank and unblank."""

import pytest

from grid_model import create_grid, set_cell_value
from grid_parser import parse_grid
from grid_types import CellPosition, Grid, MergeSpan, NonRectangularSelection, Rectangle
from merge_spans import compute_merge_spans
from mutations import blank_cells, make_merge_id, merge_cells, unblank_cells, unmerge_cells

P = CellPosition


def assert_groups_uniform(grid: Grid) -> None:
    """Every cell of a merge group carries the same value and flags."""
    for merge_id, positions in grid.merge_groups.items():
        cells = [grid.cell_at(p.row, p.col) for p in positions]
        fields = {(c.sequence_number, c.is_blocked, c.is_blank) for c in cells}
        assert len(fields) == 1, f"group {merge_id} diverged: {fields}"


def spans_of(grid: Grid):
    return compute_merge_spans(grid.rows)


# =============================================================================
# Test Merge
# =============================================================================


class TestMerge:
    """Tests for merging a selected rectangle."""

    def test_merge_id_format(self) -> None:
        """Merge ids are derived from the rectangle corners."""
        assert make_merge_id(Rectangle(1, 11, 1, 12)) == "m1_11_1_12"
        assert make_merge_id(Rectangle(11, 1, 11, 12)) == "m11_1_11_12"

    def test_merge_two_by_two(self) -> None:
        """Merging a 2x2 block in a 3x3 grid yields one 2x2 span."""
        grid = create_grid(3, 3)
        selection = [P(1, 1), P(1, 2), P(2, 1), P(2, 2)]

        merged = merge_cells(grid, spans_of(grid), selection)

        assert spans_of(merged) == {"m1_1_2_2": MergeSpan(1, 1, 2, 2)}
        for pos in selection:
            cell = merged.cell_at(pos.row, pos.col)
            assert cell.is_merged
            assert cell.merge_id == "m1_1_2_2"
        assert not merged.cell_at(3, 3).is_merged

    def test_merge_copies_top_left(self) -> None:
        """Every merged cell takes the top-left cell's value and flags."""
        grid = parse_grid("*~5 9|7 8")

        merged = merge_cells(grid, spans_of(grid), [P(1, 1), P(1, 2), P(2, 1), P(2, 2)])

        for cell in merged.cells():
            assert cell.sequence_number == "5"
            assert cell.is_blocked
            assert cell.is_blank
        assert_groups_uniform(merged)

    def test_merge_single_cell_is_noop(self) -> None:
        """Fewer than two selected cells leaves the grid alone."""
        grid = create_grid(2, 2)

        assert merge_cells(grid, spans_of(grid), [P(1, 1)]) is grid
        assert merge_cells(grid, spans_of(grid), []) is grid

    def test_merge_non_rectangular_raises(self) -> None:
        """An L-shaped selection is rejected and nothing changes."""
        grid = create_grid(3, 3)

        with pytest.raises(NonRectangularSelection):
            merge_cells(grid, spans_of(grid), [P(1, 1), P(1, 2), P(2, 1)])

        assert not any(cell.is_merged for cell in grid.cells())

    def test_merge_dissolves_touched_group(self) -> None:
        """A group partly inside the new rectangle is dissolved entirely."""
        grid = parse_grid("1 2@b 2@b|4 5 6|7 8 9")

        merged = merge_cells(grid, spans_of(grid), [P(1, 1), P(1, 2), P(2, 1), P(2, 2)])

        outside = merged.cell_at(1, 3)
        assert not outside.is_merged
        assert outside.merge_id == ""
        assert outside.sequence_number == "2"
        assert merged.cell_at(1, 2).sequence_number == "1"
        assert spans_of(merged) == {"m1_1_2_2": MergeSpan(1, 1, 2, 2)}

    def test_merge_over_existing_block_via_anchor(self) -> None:
        """Selecting a block's anchor covers its hidden cells for a bigger merge."""
        grid = parse_grid("1@a 1@a 3|1@a 1@a 6|7 8 9")

        merged = merge_cells(grid, spans_of(grid), [P(1, 1), P(1, 3), P(2, 3)])

        assert spans_of(merged) == {"m1_1_2_3": MergeSpan(1, 1, 2, 3)}
        assert merged.cell_at(2, 3).sequence_number == "1"
        assert_groups_uniform(merged)

    def test_merge_leaves_input_unchanged(self) -> None:
        """The original grid is not modified."""
        grid = create_grid(2, 2)

        merge_cells(grid, spans_of(grid), [P(1, 1), P(1, 2)])

        assert not grid.cell_at(1, 1).is_merged


# =============================================================================
# Test Unmerge
# =============================================================================


class TestUnmerge:
    """Tests for splitting a merge group."""

    def test_unmerge_restores_cells(self) -> None:
        """All group cells become independent and keep the shared value."""
        grid = parse_grid("5@a 5@a -|5@a 5@a -")

        split = unmerge_cells(grid, [P(1, 1)])

        assert spans_of(split) == {}
        for row, col in [(1, 1), (1, 2), (2, 1), (2, 2)]:
            cell = split.cell_at(row, col)
            assert not cell.is_merged
            assert cell.merge_id == ""
            assert cell.sequence_number == "5"

    def test_unmerge_only_first_selected(self) -> None:
        """Only the first selected cell's group is split."""
        grid = parse_grid("1@a 1@a|2@b 2@b")

        split = unmerge_cells(grid, [P(2, 1), P(1, 1)])

        assert set(spans_of(split)) == {"a"}

    def test_unmerge_plain_cell_is_noop(self) -> None:
        """Unmerging an unmerged cell or an empty selection changes nothing."""
        grid = parse_grid("1 2@a 2@a")

        assert unmerge_cells(grid, [P(1, 1), P(1, 2)]) is grid
        assert unmerge_cells(grid, []) is grid

    def test_merge_then_unmerge(self) -> None:
        """Cells keep the merged value after unmerging."""
        grid = set_cell_value(create_grid(2, 2), 1, 1, "4")
        merged = merge_cells(grid, spans_of(grid), [P(1, 1), P(1, 2), P(2, 1), P(2, 2)])

        split = unmerge_cells(merged, [P(1, 1)])

        assert all(cell.sequence_number == "4" for cell in split.cells())
        assert not any(cell.is_merged for cell in split.cells())


# =============================================================================
# Test Blank
# =============================================================================


class TestBlank:
    """Tests for blanking and unblanking."""

    def test_blank_and_unblank(self) -> None:
        """Blanking hides content; unblanking shows it again with data intact."""
        grid = parse_grid("1 2|3 4")

        blanked = blank_cells(grid, spans_of(grid), [P(1, 2), P(2, 1)])
        restored = unblank_cells(blanked, spans_of(blanked), [P(1, 2)])

        assert blanked.cell_at(1, 2).is_blank
        assert blanked.cell_at(2, 1).is_blank
        assert not blanked.cell_at(1, 1).is_blank
        assert blanked.cell_at(1, 2).sequence_number == "2"
        assert not restored.cell_at(1, 2).is_blank
        assert restored.cell_at(2, 1).is_blank

    def test_blank_propagates_to_group(self) -> None:
        """Blanking an anchor blanks its whole group."""
        grid = parse_grid("5@a 5@a|5@a 5@a")

        blanked = blank_cells(grid, spans_of(grid), [P(1, 1)])

        assert all(cell.is_blank for cell in blanked.cells())
        assert_groups_uniform(blanked)

    def test_blank_skips_hidden_cells(self) -> None:
        """A hidden cell in the selection is ignored."""
        grid = parse_grid("5@a 5@a|5@a 5@a")

        assert blank_cells(grid, spans_of(grid), [P(2, 2)]) is grid
