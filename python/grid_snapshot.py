"""
Snapshot codec: the plain JSON structure the host stores the grid in.

    {"rows": 2, "columns": 2,
     "tableRows": [{"rowIndex": 1, "cells": [{"sequenceNumber": "-",
                    "isBlocked": false, "isMerged": false, "mergeId": "",
                    "isBlank": false, "rowIndex": 1, "columnIndex": 1}, ...]},
                   ...],
     "metadata": {"updatedAt": "2026-01-01T00:00:00+00:00"}}

Loading is lenient about fields (indices are re-derived from array
position, missing flags default to false) but strict about shape.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Mapping

from grid_types import DEFAULT_SEQUENCE, Cell, Grid, MalformedSnapshot, Row
from grid_model import create_grid

logger = logging.getLogger(__name__)


def _cell_to_dict(cell: Cell) -> dict[str, Any]:
    return {
        "sequenceNumber": cell.sequence_number,
        "isBlocked": cell.is_blocked,
        "isMerged": cell.is_merged,
        "mergeId": cell.merge_id,
        "isBlank": cell.is_blank,
        "rowIndex": cell.row,
        "columnIndex": cell.col,
    }


def grid_to_snapshot(grid: Grid, updated_at: datetime | None = None) -> dict[str, Any]:
    """Structure handed to the external store."""
    if updated_at is None:
        updated_at = datetime.now(timezone.utc)
    return {
        "rows": grid.row_count,
        "columns": grid.column_count,
        "tableRows": [
            {"rowIndex": row.row_index, "cells": [_cell_to_dict(cell) for cell in row.cells]}
            for row in grid.rows
        ],
        "metadata": {"updatedAt": updated_at.isoformat()},
    }


def dump_snapshot(grid: Grid, updated_at: datetime | None = None) -> str:
    """Snapshot serialized as compact JSON text."""
    return json.dumps(grid_to_snapshot(grid, updated_at), separators=(",", ":"))


def _positive_int(data: Mapping[str, Any], key: str) -> int:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise MalformedSnapshot(f"Snapshot field '{key}' must be a positive number, got {value!r}")
    return int(value)


def _cell_from_dict(raw: Any, row: int, col: int) -> Cell:
    if not isinstance(raw, Mapping):
        raise MalformedSnapshot(f"Cell {row},{col} is not an object: {raw!r}")

    sequence = raw.get("sequenceNumber")
    if sequence is None or sequence == "":
        sequence = DEFAULT_SEQUENCE
    merge_id = raw.get("mergeId") or ""
    is_merged = bool(raw.get("isMerged", False)) and bool(merge_id)

    return Cell(
        row=row,
        col=col,
        sequence_number=str(sequence),
        is_blocked=bool(raw.get("isBlocked", False)),
        is_merged=is_merged,
        merge_id=str(merge_id) if is_merged else "",
        is_blank=bool(raw.get("isBlank", False)),
    )


def grid_from_snapshot(data: Any) -> Grid:
    """
    Build a Grid from a parsed snapshot structure.

    Row and column indices in the snapshot are ignored and re-derived from
    array position (1-based). A cell flagged merged without a merge id, or
    carrying a merge id without the flag, is loaded as unmerged.

    Args:
        data: Parsed JSON (a dict)

    Returns:
        The loaded Grid

    Raises:
        MalformedSnapshot: On zero rows/columns, missing tableRows or ragged rows
    """
    if not isinstance(data, Mapping):
        raise MalformedSnapshot(f"Snapshot must be an object, got {type(data).__name__}")

    declared_rows = _positive_int(data, "rows")
    declared_cols = _positive_int(data, "columns")

    raw_rows = data.get("tableRows")
    if not isinstance(raw_rows, list) or not raw_rows:
        raise MalformedSnapshot("Snapshot has no tableRows")

    rows: list[Row] = []
    for row_idx, raw_row in enumerate(raw_rows, start=1):
        raw_cells = raw_row.get("cells") if isinstance(raw_row, Mapping) else None
        if not isinstance(raw_cells, list) or not raw_cells:
            raise MalformedSnapshot(f"Row {row_idx} has no cells")
        cells = tuple(
            _cell_from_dict(raw_cell, row_idx, col_idx)
            for col_idx, raw_cell in enumerate(raw_cells, start=1)
        )
        rows.append(Row(row_idx, cells))

    widths = {len(row.cells) for row in rows}
    if len(widths) != 1:
        raise MalformedSnapshot(f"Rows have differing cell counts: {sorted(widths)}")

    grid = Grid(tuple(rows))
    if (grid.row_count, grid.column_count) != (declared_rows, declared_cols):
        logger.warning(
            "Snapshot declares %dx%d but holds %dx%d cells; using the cells",
            declared_rows, declared_cols, grid.row_count, grid.column_count,
        )
    return grid


def load_snapshot(text: str) -> Grid:
    """Parse snapshot JSON text into a Grid (raises MalformedSnapshot)."""
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        raise MalformedSnapshot(f"Snapshot is not valid JSON: {e}") from e
    return grid_from_snapshot(data)


def load_or_create(text: str | None, rows: int, cols: int) -> tuple[Grid, bool]:
    """
    Load a stored snapshot, falling back to a fresh grid.

    Args:
        text: Stored snapshot text; None or "" means nothing is stored
        rows: Row count for a fresh grid
        cols: Column count for a fresh grid

    Returns:
        (grid, loaded) where loaded is False if a fresh grid was created
    """
    if text:
        try:
            return load_snapshot(text), True
        except MalformedSnapshot as e:
            logger.warning("Error loading table from stored snapshot: %s", e)
    return create_grid(rows, cols), False
