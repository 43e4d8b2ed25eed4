"""
Selection engine: which visible cells are selected, and how pointer
gestures change that.

SelectionState is immutable; each gesture returns a new state. Hidden
(merged non-anchor) cells never enter the selection.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Iterable, Sequence

from grid_types import CellPosition, Grid, MergeSpans, NonRectangularSelection, Rectangle
from merge_spans import is_hidden, visible_cells

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SelectionState:
    """Selected cells plus the bookkeeping of an in-progress drag."""

    selected: tuple[CellPosition, ...] = ()  # insertion order, no duplicates
    selection_mode: bool = False
    dragging: bool = False
    drag_start: CellPosition | None = None
    pre_selection: tuple[CellPosition, ...] = ()  # selection when the drag began

    def __contains__(self, pos: object) -> bool:
        return pos in self.selected

    def __len__(self) -> int:
        return len(self.selected)

    @property
    def first(self) -> CellPosition | None:
        return self.selected[0] if self.selected else None


def _union(base: Sequence[CellPosition], extra: Iterable[CellPosition]) -> tuple[CellPosition, ...]:
    merged = dict.fromkeys(base)
    merged.update(dict.fromkeys(extra))
    return tuple(merged)


def _addressable(grid: Grid, spans: MergeSpans, pos: CellPosition) -> bool:
    cell = grid.cell_at(pos.row, pos.col)
    return cell is not None and not is_hidden(cell, spans)


def rectangle(start: CellPosition, end: CellPosition) -> Rectangle:
    """Rectangle spanned by two corners, in any order."""
    return Rectangle(
        top=min(start.row, end.row),
        left=min(start.col, end.col),
        bottom=max(start.row, end.row),
        right=max(start.col, end.col),
    )


def bounding_rectangle(positions: Iterable[CellPosition]) -> Rectangle | None:
    """Smallest rectangle covering every position, or None for no positions."""
    positions = list(positions)
    if not positions:
        return None
    return Rectangle(
        top=min(p.row for p in positions),
        left=min(p.col for p in positions),
        bottom=max(p.row for p in positions),
        right=max(p.col for p in positions),
    )


# =============================================================================
# Gestures
# =============================================================================


def press_cell(
    state: SelectionState,
    grid: Grid,
    spans: MergeSpans,
    pos: CellPosition,
    additive: bool = False,
) -> SelectionState:
    """
    Pointer pressed on a cell: start a drag selection there.

    Args:
        state: Current selection state
        grid: Current grid
        spans: Merge spans of the grid
        pos: Pressed cell
        additive: Modifier held; keep the existing selection and add to it

    Returns:
        New state with dragging=True, or the same state if pos is hidden or missing
    """
    if not _addressable(grid, spans, pos):
        return state

    selected = _union(state.selected, (pos,)) if additive else (pos,)
    logger.debug("Drag selection started at %s", pos)
    return SelectionState(
        selected=selected,
        selection_mode=True,
        dragging=True,
        drag_start=pos,
        pre_selection=state.selected,
    )


def drag_over(
    state: SelectionState,
    grid: Grid,
    spans: MergeSpans,
    pos: CellPosition,
) -> SelectionState:
    """
    Pointer entered a cell during a drag: select the rectangle from the
    drag start to here, on top of whatever was selected before the drag.

    The rectangle is taken on raw coordinates; hidden cells inside it are
    skipped rather than added.
    """
    if not state.dragging or state.drag_start is None:
        return state

    dragged = [
        p for p in rectangle(state.drag_start, pos).positions()
        if _addressable(grid, spans, p)
    ]
    return replace(state, selected=_union(state.pre_selection, dragged))


def release(state: SelectionState) -> SelectionState:
    """Pointer released: end the drag and keep what was selected."""
    if not state.dragging:
        return state
    logger.debug("Drag selection ended with %d cell(s)", len(state.selected))
    return replace(state, dragging=False, drag_start=None, pre_selection=())


def cancel_drag(state: SelectionState) -> SelectionState:
    """Drag abandoned without a release: restore the pre-drag selection."""
    if not state.dragging:
        return state
    return replace(
        state,
        selected=state.pre_selection,
        selection_mode=bool(state.pre_selection),
        dragging=False,
        drag_start=None,
        pre_selection=(),
    )


def click_cell(
    state: SelectionState,
    grid: Grid,
    spans: MergeSpans,
    pos: CellPosition,
    toggle: bool = False,
) -> SelectionState:
    """
    Click (press and release without moving) on a cell.

    In selection mode a plain click adds the cell; with the toggle modifier
    an already selected cell is removed unless it is the only one. Outside
    selection mode the click selects exactly this cell.
    """
    if state.dragging or not _addressable(grid, spans, pos):
        return state

    if not state.selection_mode:
        return replace(state, selected=(pos,), selection_mode=True)

    if toggle and pos in state.selected and len(state.selected) > 1:
        return replace(state, selected=tuple(p for p in state.selected if p != pos))
    if pos in state.selected:
        return state
    return replace(state, selected=_union(state.selected, (pos,)))


def select_all(state: SelectionState, grid: Grid, spans: MergeSpans) -> SelectionState:
    """Select every visible cell."""
    return replace(
        state,
        selected=tuple(cell.position for cell in visible_cells(grid, spans)),
        selection_mode=True,
    )


def clear_selection(state: SelectionState) -> SelectionState:
    """Empty the selection and leave selection mode."""
    return SelectionState()


# =============================================================================
# Merge Validation
# =============================================================================


def validate_merge_selection(
    grid: Grid,
    spans: MergeSpans,
    selection: Iterable[CellPosition],
) -> Rectangle:
    """
    Check that a selection can be merged as one rectangle.

    Every cell in the selection's bounding rectangle must be selected, or
    be a hidden cell whose merge anchor is selected (so an existing merged
    block is covered by selecting its anchor).

    Args:
        grid: Current grid
        spans: Merge spans of the grid
        selection: Selected positions

    Returns:
        The bounding rectangle to merge

    Raises:
        NonRectangularSelection: If some rectangle cell is not covered
    """
    selected = set(selection)
    rect = bounding_rectangle(selected)
    if rect is None:
        raise NonRectangularSelection("Please select a rectangular area to merge")

    for pos in rect.positions():
        if pos in selected:
            continue
        cell = grid.cell_at(pos.row, pos.col)
        if cell is not None and cell.is_merged and cell.merge_id:
            span = spans.get(cell.merge_id)
            if span is not None and span.anchor in selected:
                continue
        raise NonRectangularSelection(
            f"Please select a rectangular area to merge (cell {pos.row},{pos.col} is not selected)"
        )
    return rect
