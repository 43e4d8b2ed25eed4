"""
Grid notation for tablegrid.

A compact text form used by fixtures, demos and the interactive editor's
layouts:

    "5@a 5@a -|5@a 5@a *3|~- _ 7"

Rows are separated by | and cells by single spaces. Each token is a cell's
sequence number, optionally decorated:
  * '*' prefix: blocked cell            ("*3")
  * '~' prefix: blank cell              ("~-")
  * '@tag' suffix: member of merge group "tag" ("5@a")
  * '_' alone: shorthand for "-"
Prefixes can be combined in either order ("*~4").
"""

from __future__ import annotations

from grid_types import DEFAULT_SEQUENCE, Cell, Grid, Row

__all__ = ["parse_grid", "format_grid"]


def _parse_token(token: str, row: int, col: int, row_str: str) -> Cell:
    blocked = blank = False
    body = token
    while body[:1] in ("*", "~") and len(body) > 1:
        if body[0] == "*":
            blocked = True
        else:
            blank = True
        body = body[1:]

    merge_id = ""
    if "@" in body:
        body, merge_id = body.split("@", 1)
        if not merge_id:
            raise ValueError(
                f"Empty merge tag in cell '{token}'\n"
                f"  Row {row}: \"{row_str}\"\n"
                f"  Position: column {col}\n"
                f"  Merge tags are written as value@tag, e.g. '5@a'"
            )

    if body in ("", "_"):
        body = DEFAULT_SEQUENCE

    return Cell(
        row=row,
        col=col,
        sequence_number=body,
        is_blocked=blocked,
        is_merged=bool(merge_id),
        merge_id=merge_id,
        is_blank=blank,
    )


def parse_grid(definition: str) -> Grid:
    """
    Parse a grid from the compact notation.

    Example:
        parse_grid("5 - -|- ~- -")
        Creates a 2x3 grid with (1,1)="5" and (2,2) blank.

    Args:
        definition: Grid text, rows separated by |

    Returns:
        Grid with 1-based row and column indices

    Raises:
        ValueError: On an empty definition, an empty merge tag or ragged rows
    """
    definition = definition.strip()
    if not definition:
        raise ValueError("Empty grid definition")

    row_strings = [row_str.strip() for row_str in definition.split("|")]
    rows: list[Row] = []

    for row_idx, row_str in enumerate(row_strings, start=1):
        tokens = row_str.split(" ")
        cells = tuple(
            _parse_token(token, row_idx, col_idx, row_str)
            for col_idx, token in enumerate(tokens, start=1)
        )
        rows.append(Row(row_idx, cells))

    # Validate all rows have same length
    cols = len(rows[0].cells)
    mismatched = [(row.row_index, len(row.cells)) for row in rows if len(row.cells) != cols]
    if mismatched:
        error_msg = (
            f"Inconsistent row lengths in grid\n"
            f"  Expected: {cols} columns (from row 1)\n"
            f"  Mismatched rows:\n"
        )
        for row_idx, actual_cols in mismatched:
            error_msg += f"    Row {row_idx}: {actual_cols} columns - \"{row_strings[row_idx - 1]}\"\n"
        error_msg += "  All rows must have the same number of cells"
        raise ValueError(error_msg)

    return Grid(tuple(rows))


def _format_cell(cell: Cell) -> str:
    text = cell.sequence_number or DEFAULT_SEQUENCE
    if cell.is_blank:
        text = "~" + text
    if cell.is_blocked:
        text = "*" + text
    if cell.merge_id:
        text += "@" + cell.merge_id
    return text


def format_grid(grid: Grid) -> str:
    """Inverse of parse_grid (for values without spaces, '|' or '@')."""
    return "|".join(" ".join(_format_cell(cell) for cell in row.cells) for row in grid.rows)
