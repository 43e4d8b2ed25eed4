"""
Shared type definitions for the tablegrid editor.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from functools import cached_property
from typing import Iterator

MAX_DIMENSION = 100
DEFAULT_SEQUENCE = "-"


class FillDirection(Enum):
    """Axis of an autofill drag."""

    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"
    NONE = "none"  # Pointer still over the source cell


# =============================================================================
# Errors
# =============================================================================


class GridError(ValueError):
    """Base class for grid editing errors."""


class InvalidDimension(GridError):
    """Requested row or column count is outside [1, MAX_DIMENSION] or not a number."""


class DimensionLimitExceeded(GridError):
    """Adding a row or column would exceed MAX_DIMENSION."""


class NonRectangularSelection(GridError):
    """Selection does not cover a rectangle and cannot be merged."""


class MalformedSnapshot(GridError):
    """Persisted snapshot could not be parsed into a grid."""


# =============================================================================
# Grid Definition Types
# =============================================================================


@dataclass(frozen=True, order=True)
class CellPosition:
    """A 1-based (row, col) coordinate."""

    row: int
    col: int


@dataclass(frozen=True)
class Cell:
    """A single grid cell."""

    row: int
    col: int
    sequence_number: str = DEFAULT_SEQUENCE
    is_blocked: bool = False
    is_merged: bool = False
    merge_id: str = ""  # "" iff not merged
    is_blank: bool = False

    @property
    def position(self) -> CellPosition:
        return CellPosition(self.row, self.col)


@dataclass(frozen=True)
class Row:
    """An ordered run of cells sharing one row index."""

    row_index: int
    cells: tuple[Cell, ...]


@dataclass(frozen=True)
class Grid:
    """A rectangular table of cells. Rows and columns are 1-based."""

    rows: tuple[Row, ...]

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def column_count(self) -> int:
        return len(self.rows[0].cells) if self.rows else 0

    def cells(self) -> Iterator[Cell]:
        for row in self.rows:
            yield from row.cells

    def positions(self) -> Iterator[CellPosition]:
        for cell in self.cells():
            yield cell.position

    def cell_at(self, row: int, col: int) -> Cell | None:
        if 1 <= row <= len(self.rows):
            cells = self.rows[row - 1].cells
            if 1 <= col <= len(cells):
                return cells[col - 1]
        return None

    @cached_property
    def merge_groups(self) -> dict[str, tuple[CellPosition, ...]]:
        """Secondary index: merge_id -> positions of every cell carrying it."""
        groups: dict[str, list[CellPosition]] = {}
        for cell in self.cells():
            if cell.merge_id:
                groups.setdefault(cell.merge_id, []).append(cell.position)
        return {merge_id: tuple(positions) for merge_id, positions in groups.items()}


@dataclass(frozen=True)
class MergeSpan:
    """Bounding box of one merge group."""

    anchor_row: int
    anchor_col: int
    row_span: int
    col_span: int

    @property
    def anchor(self) -> CellPosition:
        return CellPosition(self.anchor_row, self.anchor_col)

    def contains(self, row: int, col: int) -> bool:
        return (
            self.anchor_row <= row < self.anchor_row + self.row_span
            and self.anchor_col <= col < self.anchor_col + self.col_span
        )


MergeSpans = dict[str, MergeSpan]


@dataclass(frozen=True)
class Rectangle:
    """An inclusive block of cells from (top, left) to (bottom, right)."""

    top: int
    left: int
    bottom: int
    right: int

    def positions(self) -> Iterator[CellPosition]:
        for r in range(self.top, self.bottom + 1):
            for c in range(self.left, self.right + 1):
                yield CellPosition(r, c)


@dataclass(frozen=True)
class GridStatistics:
    """Counts published to the host after every change."""

    total_cells: int = 0
    blocked_cells: int = 0
    merged_cells: int = 0
    blank_cells: int = 0


# =============================================================================
# Bound Values
# =============================================================================


@dataclass(frozen=True)
class Available:
    """A host value that is loaded. `value` may still be None (empty)."""

    value: object = None


@dataclass(frozen=True)
class Unavailable:
    """A host value that is not loaded (yet)."""

    pass


BoundValue = Available | Unavailable
