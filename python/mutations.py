"""
Selection-driven mutations: merge, unmerge, blank and unblank.

Each operation validates first and only then builds the new grid, so a
failed call leaves nothing half-applied. Callers re-derive merge spans
from the returned grid.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable, Sequence

from grid_types import Cell, CellPosition, Grid, MergeSpans, Rectangle
from grid_model import group_positions, replace_cells
from merge_spans import is_hidden
from selection import validate_merge_selection

logger = logging.getLogger(__name__)


def make_merge_id(rect: Rectangle) -> str:
    """Deterministic merge id from the rectangle corners."""
    return f"m{rect.top}_{rect.left}_{rect.bottom}_{rect.right}"


def merge_cells(grid: Grid, spans: MergeSpans, selection: Sequence[CellPosition]) -> Grid:
    """
    Merge the selected rectangle into one span.

    Merge groups touched by the rectangle are dissolved first (all of their
    cells, including any outside the rectangle). Every rectangle cell then
    takes the top-left cell's value, blocked and blank flags.

    Args:
        grid: Current grid
        spans: Merge spans of the grid
        selection: Selected positions; fewer than two is a no-op

    Returns:
        New Grid with the merged span

    Raises:
        NonRectangularSelection: If the selection is not a mergeable rectangle
    """
    if len(set(selection)) < 2:
        return grid

    rect = validate_merge_selection(grid, spans, selection)
    top_left = grid.cell_at(rect.top, rect.left)
    if top_left is None:
        return grid

    # Dissolve old groups touched by the rectangle
    updates: dict[CellPosition, Cell] = {}
    for pos in rect.positions():
        cell = grid.cell_at(pos.row, pos.col)
        if cell is None or not cell.is_merged or not cell.merge_id:
            continue
        for member in group_positions(grid, cell):
            if member in updates:
                continue
            member_cell = grid.cell_at(member.row, member.col)
            if member_cell is not None:
                updates[member] = replace(member_cell, is_merged=False, merge_id="")

    merge_id = make_merge_id(rect)
    for pos in rect.positions():
        cell = updates.get(pos) or grid.cell_at(pos.row, pos.col)
        if cell is None:
            continue
        updates[pos] = replace(
            cell,
            sequence_number=top_left.sequence_number,
            is_blocked=top_left.is_blocked,
            is_blank=top_left.is_blank,
            is_merged=True,
            merge_id=merge_id,
        )

    logger.info(
        "Merged %d,%d..%d,%d as %s", rect.top, rect.left, rect.bottom, rect.right, merge_id
    )
    return replace_cells(grid, updates)


def unmerge_cells(grid: Grid, selection: Sequence[CellPosition]) -> Grid:
    """
    Split the merge group of the first selected cell back into single cells.

    Cells keep their (identical) values. No-op if nothing is selected or the
    first selected cell is not merged.
    """
    if not selection:
        return grid
    first = selection[0]
    target = grid.cell_at(first.row, first.col)
    if target is None or not target.is_merged:
        return grid

    updates: dict[CellPosition, Cell] = {}
    for member in group_positions(grid, target):
        cell = grid.cell_at(member.row, member.col)
        if cell is not None:
            updates[member] = replace(cell, is_merged=False, merge_id="")
    logger.info("Unmerged group %s (%d cells)", target.merge_id, len(updates))
    return replace_cells(grid, updates)


def _set_blank(
    grid: Grid, spans: MergeSpans, selection: Iterable[CellPosition], blank: bool
) -> Grid:
    updates: dict[CellPosition, Cell] = {}
    for pos in selection:
        cell = grid.cell_at(pos.row, pos.col)
        if cell is None or is_hidden(cell, spans):
            continue
        for member in group_positions(grid, cell):
            member_cell = updates.get(member) or grid.cell_at(member.row, member.col)
            if member_cell is not None:
                updates[member] = replace(member_cell, is_blank=blank)
    return replace_cells(grid, updates)


def blank_cells(grid: Grid, spans: MergeSpans, selection: Iterable[CellPosition]) -> Grid:
    """Hide the selected cells' content (data is kept), whole merge groups at a time."""
    return _set_blank(grid, spans, selection, True)


def unblank_cells(grid: Grid, spans: MergeSpans, selection: Iterable[CellPosition]) -> Grid:
    """Show blanked cells again, whole merge groups at a time."""
    return _set_blank(grid, spans, selection, False)
