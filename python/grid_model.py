"""
Grid model: creation, growth and per-cell edits.

Every function returns a new Grid; the input grid is never modified.
Edits addressed to a coordinate outside the grid are silent no-ops.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Mapping

from grid_types import (
    MAX_DIMENSION,
    Cell,
    CellPosition,
    DimensionLimitExceeded,
    Grid,
    InvalidDimension,
    Row,
)

logger = logging.getLogger(__name__)


def validate_dimension(value: object, name: str = "dimension") -> int:
    """
    Coerce a user- or host-supplied row/column count to an int in range.

    Args:
        value: An int or a numeric string
        name: Label used in the error message ("rows", "columns")

    Returns:
        The count as an int

    Raises:
        InvalidDimension: If the value is not a whole number in [1, MAX_DIMENSION]
    """
    if isinstance(value, bool):
        raise InvalidDimension(f"Please enter a valid number of {name}: {value!r}")
    if isinstance(value, str):
        text = value.strip()
        try:
            value = int(text)
        except ValueError:
            raise InvalidDimension(f"Please enter a valid number of {name}: {text!r}") from None
    elif isinstance(value, float):
        if not value.is_integer():
            raise InvalidDimension(f"Please enter a valid number of {name}: {value!r}")
        value = int(value)
    elif not isinstance(value, int):
        raise InvalidDimension(f"Please enter a valid number of {name}: {value!r}")

    if value <= 0:
        raise InvalidDimension(f"{name.capitalize()} must be a positive number, got {value}")
    if value > MAX_DIMENSION:
        raise InvalidDimension(f"Maximum {MAX_DIMENSION} rows and {MAX_DIMENSION} columns, got {name}={value}")
    return value


def default_cell(row: int, col: int) -> Cell:
    return Cell(row, col)


def _default_row(row_index: int, columns: int) -> Row:
    return Row(row_index, tuple(default_cell(row_index, c) for c in range(1, columns + 1)))


def create_grid(rows: object, cols: object) -> Grid:
    """
    Create a fresh grid of default cells.

    Args:
        rows: Row count, 1..MAX_DIMENSION
        cols: Column count, 1..MAX_DIMENSION

    Returns:
        New Grid with every cell at its default ("-", no flags)

    Raises:
        InvalidDimension: If either count is out of range or not a number
    """
    row_count = validate_dimension(rows, "rows")
    col_count = validate_dimension(cols, "columns")
    logger.debug("Creating %dx%d grid", row_count, col_count)
    return Grid(tuple(_default_row(r, col_count) for r in range(1, row_count + 1)))


def add_row(grid: Grid) -> Grid:
    """Append one row of default cells at the bottom."""
    new_count = grid.row_count + 1
    if new_count > MAX_DIMENSION:
        raise DimensionLimitExceeded(f"Maximum {MAX_DIMENSION} rows")
    return Grid(grid.rows + (_default_row(new_count, grid.column_count),))


def add_column(grid: Grid) -> Grid:
    """
    Append one default cell to the end of every row.

    Merge spans are not touched here; callers re-derive them.
    """
    new_count = grid.column_count + 1
    if new_count > MAX_DIMENSION:
        raise DimensionLimitExceeded(f"Maximum {MAX_DIMENSION} columns")
    return Grid(
        tuple(
            Row(row.row_index, row.cells + (default_cell(row.row_index, new_count),))
            for row in grid.rows
        )
    )


def get_cell(grid: Grid, row: int, col: int) -> Cell | None:
    """Cell at (row, col), or None when the coordinate is outside the grid."""
    return grid.cell_at(row, col)


def replace_cells(grid: Grid, updates: Mapping[CellPosition, Cell]) -> Grid:
    """
    Rebuild the grid with some cells swapped out.

    Rows without updates are reused as-is.
    """
    if not updates:
        return grid

    by_row: dict[int, dict[int, Cell]] = {}
    for pos, cell in updates.items():
        by_row.setdefault(pos.row, {})[pos.col] = cell

    new_rows: list[Row] = []
    for row in grid.rows:
        row_updates = by_row.get(row.row_index)
        if not row_updates:
            new_rows.append(row)
            continue
        cells = tuple(row_updates.get(cell.col, cell) for cell in row.cells)
        new_rows.append(Row(row.row_index, cells))
    return Grid(tuple(new_rows))


def group_positions(grid: Grid, cell: Cell) -> tuple[CellPosition, ...]:
    """Positions sharing the cell's merge group, or just the cell if unmerged."""
    if cell.merge_id:
        return grid.merge_groups.get(cell.merge_id, (cell.position,))
    return (cell.position,)


def update_group(grid: Grid, row: int, col: int, **changes: object) -> Grid:
    """
    Apply field changes to a cell and every cell in its merge group.

    Args:
        grid: The grid to edit
        row: Target row (1-based)
        col: Target column (1-based)
        **changes: Cell fields to set (sequence_number, is_blocked, is_blank)

    Returns:
        New Grid, or the same grid if (row, col) does not exist
    """
    target = grid.cell_at(row, col)
    if target is None:
        return grid

    updates: dict[CellPosition, Cell] = {}
    for pos in group_positions(grid, target):
        cell = grid.cell_at(pos.row, pos.col)
        if cell is not None:
            updates[pos] = replace(cell, **changes)
    return replace_cells(grid, updates)


def set_cell_value(grid: Grid, row: int, col: int, value: str) -> Grid:
    """Set a cell's sequence number, propagating across its merge group."""
    return update_group(grid, row, col, sequence_number=value)


def set_cell_blocked(grid: Grid, row: int, col: int, blocked: bool) -> Grid:
    """Set a cell's blocked flag, propagating across its merge group."""
    return update_group(grid, row, col, is_blocked=blocked)


def toggle_cell_blocked(grid: Grid, row: int, col: int) -> Grid:
    """Flip a cell's blocked flag (the checkbox), propagating across its merge group."""
    target = grid.cell_at(row, col)
    if target is None:
        return grid
    return set_cell_blocked(grid, row, col, not target.is_blocked)
