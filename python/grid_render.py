"""
Text rendering for tablegrid grids.

Draws a grid with box characters, collapsing merge spans into single
blocks (no borders inside a span) and colouring cells by state.
"""

from __future__ import annotations

from typing import AbstractSet, Callable

import simple_chalk as chalk  # type: ignore[import-untyped]

from grid_types import Cell, CellPosition, Grid, GridStatistics, MergeSpans
from merge_spans import is_hidden

Colorizer = Callable[[str], str]


def _plain(s: str) -> str:
    return s


def _same_group(a: Cell | None, b: Cell | None) -> bool:
    return a is not None and b is not None and bool(a.merge_id) and a.merge_id == b.merge_id


def _anchor_position(cell: Cell, spans: MergeSpans) -> CellPosition:
    span = spans.get(cell.merge_id) if cell.merge_id else None
    return span.anchor if span is not None else cell.position


def cell_text(cell: Cell, spans: MergeSpans, cell_width: int) -> str:
    """Content of one cell slot: hidden and blank cells are empty."""
    if is_hidden(cell, spans) or cell.is_blank:
        return " " * cell_width
    mark = "■" if cell.is_blocked else " "
    text = (mark + cell.sequence_number)[:cell_width]
    return text.center(cell_width)


def render_grid(
    grid: Grid,
    spans: MergeSpans,
    cell_width: int = 5,
    cursor: CellPosition | None = None,
    selected: AbstractSet[CellPosition] = frozenset(),
    preview: AbstractSet[CellPosition] = frozenset(),
    source: CellPosition | None = None,
    color: bool = True,
) -> list[str]:
    """
    Render a grid as lines of text.

    Styling, strongest first: cursor (white background), autofill source
    (magenta), autofill preview (green), selected (blue), merged (cyan),
    blocked (yellow), blank (grey). A merge span is styled by its anchor.

    Args:
        grid: The grid to render
        spans: Merge spans of the grid
        cell_width: Characters per cell (default 5)
        cursor: Optional position to highlight
        selected: Selected positions
        preview: Positions an autofill drag would fill
        source: Source cell of an autofill drag
        color: False for plain text (tests, logs)

    Returns:
        List of strings representing the rendered grid lines
    """

    def style(cell: Cell) -> Colorizer:
        if not color:
            return _plain
        pos = _anchor_position(cell, spans)
        if cursor is not None and pos == cursor:
            return chalk.bgWhite.black
        if source is not None and pos == source:
            return chalk.bgMagenta.white
        if pos in preview and not cell.is_blank:
            return chalk.bgGreen.black
        if pos in selected and not cell.is_blank:
            return chalk.bgBlue.white
        if cell.is_blank:
            return chalk.blackBright
        if cell.is_merged:
            return chalk.cyan
        if cell.is_blocked:
            return chalk.yellow
        return _plain

    rows, cols = grid.row_count, grid.column_count
    inner_width = cols * (cell_width + 1) - 1
    lines: list[str] = ["┌" + "─" * inner_width + "┐"]

    for r, row in enumerate(grid.rows, start=1):
        parts = ["│"]
        for c, cell in enumerate(row.cells, start=1):
            paint = style(cell)
            parts.append(paint(cell_text(cell, spans, cell_width)))
            if c < cols:
                # No divider inside a merge span
                right = grid.cell_at(r, c + 1)
                parts.append(paint(" ") if _same_group(cell, right) else "│")
        parts.append("│")
        lines.append("".join(parts))

        if r == rows:
            continue
        # Divider between rows; gaps where a span continues downwards
        parts = ["├"]
        for c in range(1, cols + 1):
            cell = grid.cell_at(r, c)
            below = grid.cell_at(r + 1, c)
            parts.append(" " * cell_width if _same_group(cell, below) else "─" * cell_width)
            if c < cols:
                corner = (cell, grid.cell_at(r, c + 1), below, grid.cell_at(r + 1, c + 1))
                inside = all(_same_group(cell, other) for other in corner[1:])
                parts.append(" " if inside else "┼")
        parts.append("┤")
        lines.append("".join(parts))

    lines.append("└" + "─" * inner_width + "┘")
    return lines


def render_statistics(stats: GridStatistics, show_blank: bool = True) -> str:
    """One-line summary, e.g. 'Cells: 9  Blocked: 1  Merged: 1  Blank: 0'."""
    text = f"Cells: {stats.total_cells}  Blocked: {stats.blocked_cells}  Merged: {stats.merged_cells}"
    if show_blank:
        text += f"  Blank: {stats.blank_cells}"
    return text
