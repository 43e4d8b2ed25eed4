"""
Merge-span index: derived view of merged regions over a grid.

Spans are always recomputed from the cells' merge tags, never patched
in place, so the view cannot go stale after a mutation.
"""

from __future__ import annotations

from typing import Iterable, Iterator

from grid_types import Cell, Grid, GridStatistics, MergeSpan, MergeSpans, Row


def compute_merge_spans(rows: Iterable[Row]) -> MergeSpans:
    """
    Group merged cells by merge_id and take the bounding box of each group.

    The box is assumed to be exactly filled by the group's cells. Tag sets
    that are not rectangular still produce a box (no validation).

    Args:
        rows: Rows of the grid to index

    Returns:
        Dict mapping merge_id to its MergeSpan
    """
    grouped: dict[str, list[tuple[int, int]]] = {}
    for row in rows:
        for cell in row.cells:
            if not cell.is_merged or not cell.merge_id:
                continue
            grouped.setdefault(cell.merge_id, []).append((cell.row, cell.col))

    spans: MergeSpans = {}
    for merge_id, positions in grouped.items():
        row_indices = [r for r, _ in positions]
        col_indices = [c for _, c in positions]
        min_row, max_row = min(row_indices), max(row_indices)
        min_col, max_col = min(col_indices), max(col_indices)
        spans[merge_id] = MergeSpan(
            anchor_row=min_row,
            anchor_col=min_col,
            row_span=max_row - min_row + 1,
            col_span=max_col - min_col + 1,
        )
    return spans


def _span_for(cell: Cell, spans: MergeSpans) -> MergeSpan | None:
    if not cell.is_merged or not cell.merge_id:
        return None
    return spans.get(cell.merge_id)


def is_anchor(cell: Cell, spans: MergeSpans) -> bool:
    """True if the cell is the top-left cell of its merge span."""
    span = _span_for(cell, spans)
    return span is not None and (cell.row, cell.col) == (span.anchor_row, span.anchor_col)


def is_hidden(cell: Cell, spans: MergeSpans) -> bool:
    """True if the cell is covered by a merge span whose anchor is elsewhere."""
    span = _span_for(cell, spans)
    if span is None:
        return False
    return (cell.row, cell.col) != (span.anchor_row, span.anchor_col)


def span_of(cell: Cell, spans: MergeSpans) -> tuple[int, int]:
    """(row_span, col_span) to draw the cell with; (1, 1) unless it is an anchor."""
    if is_anchor(cell, spans):
        span = spans[cell.merge_id]
        return (span.row_span, span.col_span)
    return (1, 1)


def visible_cells(grid: Grid, spans: MergeSpans) -> Iterator[Cell]:
    """Cells that are rendered and addressable, in row-major order."""
    for cell in grid.cells():
        if not is_hidden(cell, spans):
            yield cell


def compute_statistics(grid: Grid, spans: MergeSpans) -> GridStatistics:
    """
    Count cells for the host's summary fields.

    Blocked counts every cell (hidden ones included); merged and blank
    count only visible cells, so a merge group counts once.
    """
    total = blocked = merged = blank = 0
    for cell in grid.cells():
        total += 1
        if cell.is_blocked:
            blocked += 1
        if is_hidden(cell, spans):
            continue
        if cell.is_merged:
            merged += 1
        if cell.is_blank:
            blank += 1
    return GridStatistics(
        total_cells=total,
        blocked_cells=blocked,
        merged_cells=merged,
        blank_cells=blank,
    )
