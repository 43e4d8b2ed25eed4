"""
Grid editor engine: the single owner of the grid and everything derived
from it.

GridEditor holds the current grid, its merge spans and statistics, the
selection and autofill drag states, and the feature flags. Adapters call
its entry points (press/enter/release/click, toolbar actions, external
updates); after every committed change the editor re-derives spans and
statistics and hands the new snapshot to a GridSink.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, Protocol

from autofill import AutofillDrag, begin_autofill, commit_autofill, preview_cells, update_autofill
from grid_model import (
    add_column,
    add_row,
    create_grid,
    set_cell_value,
    toggle_cell_blocked,
    validate_dimension,
)
from grid_snapshot import dump_snapshot, load_or_create
from grid_types import (
    Available,
    BoundValue,
    Cell,
    CellPosition,
    Grid,
    GridStatistics,
    InvalidDimension,
    MergeSpans,
    Unavailable,
)
from merge_spans import compute_merge_spans, compute_statistics, is_hidden, visible_cells
from mutations import blank_cells, merge_cells, unblank_cells, unmerge_cells
from selection import (
    SelectionState,
    cancel_drag,
    clear_selection,
    click_cell,
    drag_over,
    press_cell,
    release,
    select_all,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Settings and Collaborators
# =============================================================================


def flag_enabled(bound: BoundValue) -> bool:
    """A host flag counts as on only when it is loaded and truthy."""
    return isinstance(bound, Available) and bool(bound.value)


def bound_dimension(bound: BoundValue, default: int, name: str = "dimension") -> int:
    """Row/column count from a host value, or default when unavailable, empty or invalid."""
    if not isinstance(bound, Available) or bound.value is None or bound.value == "":
        return default
    try:
        return validate_dimension(bound.value, name)
    except InvalidDimension as e:
        logger.warning("Ignoring host %s: %s", name, e)
        return default


@dataclass(frozen=True)
class EditorSettings:
    """Feature flags and defaults for one editor."""

    default_rows: int = 3
    default_columns: int = 3
    enable_merging: bool = False
    enable_blanking: bool = False
    enable_editing: bool = False
    enable_checkbox: bool = False
    auto_save: bool = False

    @property
    def selection_allowed(self) -> bool:
        return self.enable_merging or self.enable_blanking

    @classmethod
    def from_bindings(
        cls,
        row_count: BoundValue = Unavailable(),
        column_count: BoundValue = Unavailable(),
        enable_merging: BoundValue = Unavailable(),
        enable_blanking: BoundValue = Unavailable(),
        enable_editing: BoundValue = Unavailable(),
        enable_checkbox: BoundValue = Unavailable(),
        auto_save: BoundValue = Unavailable(),
    ) -> EditorSettings:
        """Settings from host-bound values; unavailable flags are off."""
        return cls(
            default_rows=bound_dimension(row_count, cls.default_rows, "rows"),
            default_columns=bound_dimension(column_count, cls.default_columns, "columns"),
            enable_merging=flag_enabled(enable_merging),
            enable_blanking=flag_enabled(enable_blanking),
            enable_editing=flag_enabled(enable_editing),
            enable_checkbox=flag_enabled(enable_checkbox),
            auto_save=flag_enabled(auto_save),
        )


class GridSink(Protocol):
    """Where the editor publishes changes. Scheduling/debouncing is the sink's business."""

    def write_snapshot(self, text: str) -> None: ...

    def write_statistics(self, stats: GridStatistics) -> None: ...

    def write_dimensions(self, rows: int, cols: int) -> None: ...

    def notify_changed(self) -> None: ...


class NullSink:
    """Sink that discards everything."""

    def write_snapshot(self, text: str) -> None:
        pass

    def write_statistics(self, stats: GridStatistics) -> None:
        pass

    def write_dimensions(self, rows: int, cols: int) -> None:
        pass

    def notify_changed(self) -> None:
        pass


# =============================================================================
# Editor
# =============================================================================


class GridEditor:
    """Owns grid state and applies every change as one complete transition."""

    def __init__(
        self,
        settings: EditorSettings | None = None,
        sink: GridSink | None = None,
        snapshot: str | None = None,
    ) -> None:
        self.settings = settings or EditorSettings()
        self.sink: GridSink = sink or NullSink()
        self.selection = SelectionState()
        self.autofill = AutofillDrag()
        self.desired_rows = self.settings.default_rows
        self.desired_columns = self.settings.default_columns

        self._last_snapshot = ""
        self._last_dimensions: tuple[int, int] | None = None
        self._pending_snapshot: str | None = None
        self._pending_dimensions: tuple[BoundValue, BoundValue] | None = None

        grid, loaded = load_or_create(snapshot, self.desired_rows, self.desired_columns)
        self.grid: Grid = grid
        self.spans: MergeSpans = {}
        self.statistics = GridStatistics()
        self._commit(grid, resize=True)
        logger.info(
            "%s %dx%d grid", "Loaded" if loaded else "Created", grid.row_count, grid.column_count
        )

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def is_dragging(self) -> bool:
        return self.selection.dragging or self.autofill.active

    def cell(self, row: int, col: int) -> Cell | None:
        return self.grid.cell_at(row, col)

    def is_hidden(self, pos: CellPosition) -> bool:
        cell = self.grid.cell_at(pos.row, pos.col)
        return cell is not None and is_hidden(cell, self.spans)

    def visible_cells(self) -> Iterator[Cell]:
        return visible_cells(self.grid, self.spans)

    def autofill_preview(self) -> set[CellPosition]:
        return preview_cells(self.grid, self.spans, self.autofill)

    def can_autofill_from(self, pos: CellPosition) -> bool:
        """Whether the cell shows a fill handle: editable, visible, not blank, numeric."""
        cell = self.grid.cell_at(pos.row, pos.col)
        if not self.settings.enable_editing or cell is None:
            return False
        if cell.is_blank or is_hidden(cell, self.spans):
            return False
        return begin_autofill(self.grid, pos) is not None

    # -------------------------------------------------------------------------
    # Commit
    # -------------------------------------------------------------------------

    def _commit(self, grid: Grid, persist: bool = True, resize: bool = False) -> None:
        """
        Install a new grid and publish it.

        Args:
            grid: The new grid
            persist: Write the snapshot to the sink
            resize: The grid's size becomes the desired size and is written
                back to the host (generate, add row/column, load)
        """
        spans = compute_merge_spans(grid.rows)
        stats = compute_statistics(grid, spans)
        self.grid, self.spans, self.statistics = grid, spans, stats

        self.sink.write_statistics(stats)
        if persist:
            text = dump_snapshot(grid)
            self._last_snapshot = text
            self.sink.write_snapshot(text)
        if resize:
            self._last_dimensions = (grid.row_count, grid.column_count)
            self.desired_rows, self.desired_columns = self._last_dimensions
            self.sink.write_dimensions(grid.row_count, grid.column_count)
        self.sink.notify_changed()

    # -------------------------------------------------------------------------
    # Dimensions
    # -------------------------------------------------------------------------

    def generate(self, rows: object | None = None, cols: object | None = None) -> None:
        """
        Replace the grid with a fresh one.

        Args:
            rows: Row count (defaults to the desired count)
            cols: Column count (defaults to the desired count)

        Raises:
            InvalidDimension: If a count is out of range; nothing changes
        """
        grid = create_grid(
            self.desired_rows if rows is None else rows,
            self.desired_columns if cols is None else cols,
        )
        self.selection = clear_selection(self.selection)
        self._commit(grid, resize=True)
        logger.info("Generated %dx%d grid", grid.row_count, grid.column_count)

    def add_row(self) -> None:
        """Append a row (raises DimensionLimitExceeded at the limit)."""
        self._commit(add_row(self.grid), resize=True)

    def add_column(self) -> None:
        """Append a column (raises DimensionLimitExceeded at the limit)."""
        self._commit(add_column(self.grid), resize=True)

    # -------------------------------------------------------------------------
    # Cell edits
    # -------------------------------------------------------------------------

    def set_value(self, row: int, col: int, value: str) -> bool:
        """Edit a cell's sequence number. Returns False if editing is off or nothing changed."""
        if not self.settings.enable_editing:
            return False
        grid = set_cell_value(self.grid, row, col, value)
        if grid is self.grid:
            return False
        self._commit(grid, persist=self.settings.auto_save)
        return True

    def toggle_blocked(self, row: int, col: int) -> bool:
        """Flip a cell's blocked checkbox. Returns False if checkboxes are off or no such cell."""
        if not self.settings.enable_checkbox:
            return False
        grid = toggle_cell_blocked(self.grid, row, col)
        if grid is self.grid:
            return False
        self._commit(grid, persist=self.settings.auto_save)
        return True

    # -------------------------------------------------------------------------
    # Pointer gestures
    # -------------------------------------------------------------------------

    def press(self, pos: CellPosition, additive: bool = False, on_control: bool = False) -> None:
        """Pointer down on a cell. Presses on an embedded control (checkbox, input) are ignored."""
        if not self.settings.selection_allowed or on_control or self.autofill.active:
            return
        self.selection = press_cell(self.selection, self.grid, self.spans, pos, additive)

    def enter(self, pos: CellPosition) -> None:
        """Pointer entered a cell."""
        if self.selection.dragging:
            self.selection = drag_over(self.selection, self.grid, self.spans, pos)
        if self.autofill.active:
            self.autofill = update_autofill(self.autofill, pos)

    def release(self) -> None:
        """Pointer released anywhere. Commits an autofill drag, ends a selection drag."""
        if self.autofill.active:
            drag, self.autofill = self.autofill, AutofillDrag()
            grid = commit_autofill(self.grid, self.spans, drag)
            if grid is not self.grid:
                self._commit(grid)
        if self.selection.dragging:
            self.selection = release(self.selection)
        self._apply_pending()

    def cancel_drags(self) -> None:
        """The release was lost: revert a selection drag, drop an autofill drag."""
        if self.selection.dragging:
            self.selection = cancel_drag(self.selection)
        if self.autofill.active:
            logger.debug("Autofill drag from %s discarded", self.autofill.source)
            self.autofill = AutofillDrag()
        self._apply_pending()

    def click(self, pos: CellPosition, toggle: bool = False) -> None:
        """
        Click on a cell: toggles its checkbox when enabled, then updates the selection.
        """
        if self.settings.enable_checkbox and not self.is_hidden(pos):
            self.toggle_blocked(pos.row, pos.col)
        if self.settings.selection_allowed:
            self.selection = click_cell(self.selection, self.grid, self.spans, pos, toggle)

    def begin_autofill(self, pos: CellPosition) -> bool:
        """Press on a cell's fill handle. Returns False (no change) if the cell has no handle."""
        if self.is_dragging or not self.can_autofill_from(pos):
            return False
        drag = begin_autofill(self.grid, pos)
        if drag is None:
            return False
        self.autofill = drag
        return True

    # -------------------------------------------------------------------------
    # Selection actions
    # -------------------------------------------------------------------------

    def select_all(self) -> None:
        if self.settings.selection_allowed:
            self.selection = select_all(self.selection, self.grid, self.spans)

    def clear_selection(self) -> None:
        self.selection = clear_selection(self.selection)

    def merge(self) -> bool:
        """
        Merge the selected rectangle.

        Returns:
            True if merged; False if merging is off or fewer than two cells are selected

        Raises:
            NonRectangularSelection: Selection is left unchanged
        """
        if not self.settings.enable_merging:
            return False
        grid = merge_cells(self.grid, self.spans, self.selection.selected)
        if grid is self.grid:
            return False
        self.selection = clear_selection(self.selection)
        self._commit(grid)
        return True

    def unmerge(self) -> bool:
        """Split the merge group of the first selected cell."""
        if not self.settings.enable_merging:
            return False
        self.selection = release(self.selection)
        grid = unmerge_cells(self.grid, self.selection.selected)
        if grid is self.grid:
            return False
        self._commit(grid)
        return True

    def blank(self) -> bool:
        """Blank every visible selected cell, then clear the selection."""
        return self._apply_blank(blank_cells)

    def unblank(self) -> bool:
        """Unblank every visible selected cell, then clear the selection."""
        return self._apply_blank(unblank_cells)

    def _apply_blank(
        self, operation: Callable[[Grid, MergeSpans, Iterable[CellPosition]], Grid]
    ) -> bool:
        if not self.settings.enable_blanking or not self.selection.selected:
            return False
        grid = operation(self.grid, self.spans, self.selection.selected)
        self.selection = clear_selection(self.selection)
        if grid is self.grid:
            return False
        self._commit(grid)
        return True

    # -------------------------------------------------------------------------
    # External updates
    # -------------------------------------------------------------------------

    def receive_snapshot(self, text: str | None) -> bool:
        """
        A snapshot arrived from the store.

        Empty values (store cleared or not loaded yet) and echoes of the
        editor's own last write are skipped; updates arriving mid-drag are
        held until the drag ends. Malformed snapshots are replaced by a
        fresh grid.

        Returns:
            True if the grid was replaced now
        """
        if not text or text == self._last_snapshot:
            return False
        if self.is_dragging:
            self._pending_snapshot = text
            return False
        grid, loaded = load_or_create(text, self.desired_rows, self.desired_columns)
        self.selection = clear_selection(self.selection)
        self._commit(grid, resize=True)
        logger.info(
            "%s %dx%d grid from store",
            "Loaded" if loaded else "Recreated", grid.row_count, grid.column_count,
        )
        return True

    def receive_dimensions(self, rows: BoundValue, cols: BoundValue) -> bool:
        """
        Desired row/column counts changed in the host.

        The counts apply to the next generate(); the current grid is kept.
        Echoes of the editor's own writes and out-of-range values are ignored.

        Returns:
            True if a desired count changed
        """
        if self.is_dragging:
            self._pending_dimensions = (rows, cols)
            return False

        new_rows = bound_dimension(rows, self.desired_rows, "rows")
        new_cols = bound_dimension(cols, self.desired_columns, "columns")
        # Only the update right after our own write can be its echo
        echo, self._last_dimensions = self._last_dimensions, None
        if (new_rows, new_cols) == echo:
            return False
        changed = (new_rows, new_cols) != (self.desired_rows, self.desired_columns)
        self.desired_rows, self.desired_columns = new_rows, new_cols
        return changed

    def _apply_pending(self) -> None:
        if self.is_dragging:
            return
        snapshot, self._pending_snapshot = self._pending_snapshot, None
        dimensions, self._pending_dimensions = self._pending_dimensions, None
        if snapshot is not None:
            self.receive_snapshot(snapshot)
        if dimensions is not None:
            self.receive_dimensions(*dimensions)
