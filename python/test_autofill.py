"""Tests for autofill drags."""

import pytest

from autofill import (
    AutofillDrag,
    FillStep,
    autofill_target,
    begin_autofill,
    commit_autofill,
    compute_fill_run,
    infer_direction,
    parse_sequence_number,
    preview_cells,
    update_autofill,
)
from grid_parser import parse_grid
from grid_types import CellPosition, FillDirection
from merge_spans import compute_merge_spans

P = CellPosition


def values(grid, row: int) -> list[str]:
    return [cell.sequence_number for cell in grid.rows[row - 1].cells]


class TestParseSequenceNumber:
    """Tests for reading integer sequence numbers."""

    @pytest.mark.parametrize("text, expected", [("5", 5), (" -3 ", -3), ("+7", 7), ("0", 0), ("042", 42)])
    def test_integers(self, text: str, expected: int) -> None:
        """Signed decimal integers parse."""
        assert parse_sequence_number(text) == expected

    @pytest.mark.parametrize("text", ["-", "", "3.5", "1e3", "abc", "5a", "--1"])
    def test_non_integers(self, text: str) -> None:
        """Anything else is not a sequence number."""
        assert parse_sequence_number(text) is None


class TestDirection:
    """Tests for drag axis inference."""

    def test_same_row_is_horizontal(self) -> None:
        assert infer_direction(P(2, 2), P(2, 5)) == FillDirection.HORIZONTAL
        assert infer_direction(P(2, 2), P(2, 1)) == FillDirection.HORIZONTAL

    def test_same_column_is_vertical(self) -> None:
        assert infer_direction(P(2, 2), P(4, 2)) == FillDirection.VERTICAL

    def test_diagonal_larger_delta_wins(self) -> None:
        """Off-axis moves take the axis with the larger delta."""
        assert infer_direction(P(1, 1), P(3, 2)) == FillDirection.VERTICAL
        assert infer_direction(P(1, 1), P(2, 4)) == FillDirection.HORIZONTAL

    def test_diagonal_tie_is_horizontal(self) -> None:
        """Equal deltas resolve to horizontal."""
        assert infer_direction(P(1, 1), P(3, 3)) == FillDirection.HORIZONTAL

    def test_same_cell_is_none(self) -> None:
        assert infer_direction(P(2, 2), P(2, 2)) == FillDirection.NONE


class TestFillRun:
    """Tests for computing which cells a drag fills."""

    def test_fill_right(self) -> None:
        """5 dragged over three cells fills 6, 7, 8."""
        grid = parse_grid("5 - - -")
        spans = compute_merge_spans(grid.rows)

        steps = compute_fill_run(grid, spans, P(1, 1), P(1, 4), FillDirection.HORIZONTAL)

        assert steps == [FillStep(P(1, 2), 6), FillStep(P(1, 3), 7), FillStep(P(1, 4), 8)]

    def test_fill_left_still_increments(self) -> None:
        """Dragging left walks left but still counts up."""
        grid = parse_grid("- - - 5")
        spans = compute_merge_spans(grid.rows)

        steps = compute_fill_run(grid, spans, P(1, 4), P(1, 1), FillDirection.HORIZONTAL)

        assert steps == [FillStep(P(1, 3), 6), FillStep(P(1, 2), 7), FillStep(P(1, 1), 8)]

    def test_fill_down_and_up(self) -> None:
        """Vertical runs go either way from the source."""
        grid = parse_grid("-|-|10|-|-")
        spans = compute_merge_spans(grid.rows)

        down = compute_fill_run(grid, spans, P(3, 1), P(5, 1), FillDirection.VERTICAL)
        up = compute_fill_run(grid, spans, P(3, 1), P(1, 1), FillDirection.VERTICAL)

        assert down == [FillStep(P(4, 1), 11), FillStep(P(5, 1), 12)]
        assert up == [FillStep(P(2, 1), 11), FillStep(P(1, 1), 12)]

    def test_negative_start(self) -> None:
        """Negative sources count up through zero."""
        grid = parse_grid("-2 - -")
        spans = compute_merge_spans(grid.rows)

        steps = compute_fill_run(grid, spans, P(1, 1), P(1, 3), FillDirection.HORIZONTAL)

        assert [step.value for step in steps] == [-1, 0]

    def test_stops_at_blank(self) -> None:
        """The run ends before the first blank cell."""
        grid = parse_grid("5 - ~- -")
        spans = compute_merge_spans(grid.rows)

        steps = compute_fill_run(grid, spans, P(1, 1), P(1, 4), FillDirection.HORIZONTAL)

        assert steps == [FillStep(P(1, 2), 6)]

    def test_stops_at_hidden(self) -> None:
        """An anchor is filled; the hidden cell after it ends the run."""
        grid = parse_grid("5 - 1@a 1@a -")
        spans = compute_merge_spans(grid.rows)

        steps = compute_fill_run(grid, spans, P(1, 1), P(1, 5), FillDirection.HORIZONTAL)

        assert steps == [FillStep(P(1, 2), 6), FillStep(P(1, 3), 7)]

    def test_stops_at_grid_edge(self) -> None:
        """Targets past the edge are cut off at the last cell."""
        grid = parse_grid("5 -")
        spans = compute_merge_spans(grid.rows)

        steps = compute_fill_run(grid, spans, P(1, 1), P(1, 6), FillDirection.HORIZONTAL)

        assert steps == [FillStep(P(1, 2), 6)]

    def test_none_direction_is_empty(self) -> None:
        grid = parse_grid("5 -")
        spans = compute_merge_spans(grid.rows)

        assert compute_fill_run(grid, spans, P(1, 1), P(1, 1), FillDirection.NONE) == []


class TestAutofillDrag:
    """Tests for the begin / update / commit cycle."""

    def test_begin_requires_integer(self) -> None:
        """Only cells holding an integer can start a drag."""
        grid = parse_grid("5 - abc")

        assert begin_autofill(grid, P(1, 2)) is None
        assert begin_autofill(grid, P(1, 3)) is None
        assert begin_autofill(grid, P(2, 1)) is None

        drag = begin_autofill(grid, P(1, 1))
        assert drag is not None
        assert drag.active
        assert drag.source_value == 5
        assert drag.direction == FillDirection.NONE

    def test_update_projects_onto_axis(self) -> None:
        """A diagonal pointer is projected onto the inferred axis."""
        grid = parse_grid("5 - - -|- - - -")
        drag = begin_autofill(grid, P(1, 1))

        drag = update_autofill(drag, P(2, 4))

        assert drag.direction == FillDirection.HORIZONTAL
        assert autofill_target(drag) == P(1, 4)

    def test_update_inactive_is_noop(self) -> None:
        drag = AutofillDrag()

        assert update_autofill(drag, P(1, 2)) is drag

    def test_commit(self) -> None:
        """Release writes the run; the source keeps its value."""
        grid = parse_grid("5 - - -")
        spans = compute_merge_spans(grid.rows)
        drag = update_autofill(begin_autofill(grid, P(1, 1)), P(1, 4))

        filled = commit_autofill(grid, spans, drag)

        assert values(filled, 1) == ["5", "6", "7", "8"]

    def test_commit_fills_whole_group(self) -> None:
        """A filled anchor passes its value to the rest of its group."""
        grid = parse_grid("5 - 1@a 1@a")
        spans = compute_merge_spans(grid.rows)
        drag = update_autofill(begin_autofill(grid, P(1, 1)), P(1, 4))

        filled = commit_autofill(grid, spans, drag)

        assert values(filled, 1) == ["5", "6", "7", "7"]

    def test_preview_matches_commit(self) -> None:
        """The preview lists exactly the cells a release would fill."""
        grid = parse_grid("5 - ~- -")
        spans = compute_merge_spans(grid.rows)
        drag = update_autofill(begin_autofill(grid, P(1, 1)), P(1, 4))

        assert preview_cells(grid, spans, drag) == {P(1, 2)}
        assert preview_cells(grid, spans, AutofillDrag()) == set()

    def test_commit_without_movement_is_noop(self) -> None:
        """Releasing over the source changes nothing."""
        grid = parse_grid("5 -")
        spans = compute_merge_spans(grid.rows)
        drag = begin_autofill(grid, P(1, 1))

        assert commit_autofill(grid, spans, drag) is grid
        assert commit_autofill(grid, spans, AutofillDrag()) is grid
