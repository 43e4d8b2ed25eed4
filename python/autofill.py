"""
Autofill: drag from a numeric cell's handle to extend an incrementing
sequence along a row or column.

The drag is a single immutable AutofillDrag value, advanced by
begin_autofill -> update_autofill (per pointer-enter) -> commit_autofill
(on release). The run always counts up from the source value, whichever
way the pointer travels, and stops before the first missing, blank or
hidden cell.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace

from grid_types import CellPosition, FillDirection, Grid, MergeSpans
from grid_model import set_cell_value
from merge_spans import is_hidden

logger = logging.getLogger(__name__)

_INTEGER = re.compile(r"[+-]?[0-9]+")


def parse_sequence_number(value: str) -> int | None:
    """Integer value of a sequence number, or None for non-numeric text like "-"."""
    text = value.strip()
    if not _INTEGER.fullmatch(text):
        return None
    return int(text, 10)


@dataclass(frozen=True)
class AutofillDrag:
    """State of an autofill drag. The inactive value is AutofillDrag()."""

    active: bool = False
    source_row: int = 0
    source_col: int = 0
    source_value: int = 0
    direction: FillDirection = FillDirection.NONE
    current_row: int = 0
    current_col: int = 0

    @property
    def source(self) -> CellPosition:
        return CellPosition(self.source_row, self.source_col)

    @property
    def current(self) -> CellPosition:
        return CellPosition(self.current_row, self.current_col)


@dataclass(frozen=True)
class FillStep:
    """One cell of an autofill run and the value it receives."""

    position: CellPosition
    value: int


def is_fillable(grid: Grid, spans: MergeSpans, row: int, col: int) -> bool:
    """True if (row, col) exists and is neither blank nor hidden."""
    cell = grid.cell_at(row, col)
    if cell is None or cell.is_blank:
        return False
    return not is_hidden(cell, spans)


def infer_direction(source: CellPosition, hovered: CellPosition) -> FillDirection:
    """
    Axis of the drag from the source to the hovered cell.

    Diagonal moves pick the axis with the larger delta; ties go horizontal.
    """
    if source.row == hovered.row and source.col != hovered.col:
        return FillDirection.HORIZONTAL
    if source.col == hovered.col and source.row != hovered.row:
        return FillDirection.VERTICAL
    if source.row != hovered.row and source.col != hovered.col:
        row_delta = abs(hovered.row - source.row)
        col_delta = abs(hovered.col - source.col)
        return FillDirection.HORIZONTAL if col_delta >= row_delta else FillDirection.VERTICAL
    return FillDirection.NONE


def begin_autofill(grid: Grid, pos: CellPosition) -> AutofillDrag | None:
    """
    Start a drag from the fill handle of the cell at pos.

    Returns:
        An active AutofillDrag, or None if the cell is missing or its
        sequence number is not an integer
    """
    cell = grid.cell_at(pos.row, pos.col)
    if cell is None:
        return None
    value = parse_sequence_number(cell.sequence_number)
    if value is None:
        return None
    logger.debug("Autofill started at %s from %d", pos, value)
    return AutofillDrag(
        active=True,
        source_row=pos.row,
        source_col=pos.col,
        source_value=value,
        direction=FillDirection.NONE,
        current_row=pos.row,
        current_col=pos.col,
    )


def update_autofill(drag: AutofillDrag, pos: CellPosition) -> AutofillDrag:
    """Pointer entered a cell during the drag."""
    if not drag.active:
        return drag
    return replace(
        drag,
        direction=infer_direction(drag.source, pos),
        current_row=pos.row,
        current_col=pos.col,
    )


def autofill_target(drag: AutofillDrag) -> CellPosition:
    """Hovered position projected onto the drag's axis through the source."""
    if drag.direction == FillDirection.HORIZONTAL:
        return CellPosition(drag.source_row, drag.current_col)
    if drag.direction == FillDirection.VERTICAL:
        return CellPosition(drag.current_row, drag.source_col)
    return drag.current


def compute_fill_run(
    grid: Grid,
    spans: MergeSpans,
    source: CellPosition,
    target: CellPosition,
    direction: FillDirection,
) -> list[FillStep]:
    """
    Cells to fill walking from source towards target along one axis.

    Args:
        grid: Current grid
        spans: Merge spans of the grid
        source: Cell holding the start value (never rewritten)
        target: Last cell the drag reached on the axis
        direction: Axis to walk; NONE yields an empty run

    Returns:
        FillSteps with values source+1, source+2, ... in walk order
    """
    if direction == FillDirection.NONE:
        return []

    source_cell = grid.cell_at(source.row, source.col)
    if source_cell is None:
        return []
    start_value = parse_sequence_number(source_cell.sequence_number)
    if start_value is None:
        return []

    if direction == FillDirection.HORIZONTAL:
        distance = target.col - source.col
        dr, dc = 0, (1 if distance > 0 else -1)
    else:
        distance = target.row - source.row
        dr, dc = (1 if distance > 0 else -1), 0

    steps: list[FillStep] = []
    for step in range(1, abs(distance) + 1):
        row, col = source.row + dr * step, source.col + dc * step
        if not is_fillable(grid, spans, row, col):
            break
        steps.append(FillStep(CellPosition(row, col), start_value + step))
    return steps


def preview_cells(grid: Grid, spans: MergeSpans, drag: AutofillDrag) -> set[CellPosition]:
    """Positions the drag would fill if released now."""
    if not drag.active:
        return set()
    steps = compute_fill_run(grid, spans, drag.source, autofill_target(drag), drag.direction)
    return {step.position for step in steps}


def apply_fill(grid: Grid, steps: list[FillStep]) -> Grid:
    """Write a run's values, each to its cell's whole merge group."""
    for step in steps:
        grid = set_cell_value(grid, step.position.row, step.position.col, str(step.value))
    return grid


def commit_autofill(grid: Grid, spans: MergeSpans, drag: AutofillDrag) -> Grid:
    """
    Apply the drag's run on release.

    Returns:
        New Grid, or the same grid when the drag is inactive or the run is empty
    """
    if not drag.active:
        return grid
    steps = compute_fill_run(grid, spans, drag.source, autofill_target(drag), drag.direction)
    if not steps:
        return grid
    logger.debug(
        "Autofill %s from %s: %d cell(s), %d..%d",
        drag.direction.value, drag.source, len(steps), steps[0].value, steps[-1].value,
    )
    return apply_fill(grid, steps)
