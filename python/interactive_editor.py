"""
Interactive terminal editor for tablegrid.
Display a grid and edit it with keyboard commands; the cursor stands in for
the pointer, so selection and autofill drags follow cursor moves.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import readchar
from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.text import Text

from grid_editor import EditorSettings, GridEditor
from grid_parser import parse_grid
from grid_render import render_grid, render_statistics
from grid_snapshot import dump_snapshot
from grid_types import CellPosition, GridError, GridStatistics

logger = logging.getLogger(__name__)


class FileSink:
    """Persists snapshots to a JSON file; keeps the latest statistics for display."""

    def __init__(self, path: Path | None) -> None:
        self.path = path
        self.statistics = GridStatistics()
        self.changes = 0
        self._written = ""

    def write_snapshot(self, text: str) -> None:
        # Identical snapshots are not rewritten
        if self.path is None or text == self._written:
            return
        self.path.write_text(text, encoding="utf-8")
        self._written = text
        logger.debug("Saved snapshot to %s", self.path)

    def write_statistics(self, stats: GridStatistics) -> None:
        self.statistics = stats

    def write_dimensions(self, rows: int, cols: int) -> None:
        pass

    def notify_changed(self) -> None:
        self.changes += 1


MOVES = {
    readchar.key.UP: (-1, 0),
    readchar.key.DOWN: (1, 0),
    readchar.key.LEFT: (0, -1),
    readchar.key.RIGHT: (0, 1),
    "w": (-1, 0),
    "s": (1, 0),
    "a": (0, -1),
    "d": (0, 1),
}


class InteractiveEditor:
    """Keyboard front end for a GridEditor."""

    def __init__(self, editor: GridEditor, sink: FileSink) -> None:
        self.editor = editor
        self.sink = sink
        self.cursor = CellPosition(1, 1)
        self.console = Console()
        self.status_message = "Ready"
        self.edit_buffer: str | None = None  # text being typed into the cursor cell

    def move_cursor(self, dr: int, dc: int) -> None:
        """Move to the next visible cell in a direction, skipping over merge spans."""
        grid = self.editor.grid
        row, col = self.cursor.row, self.cursor.col
        current = grid.cell_at(row, col)
        span = self.editor.spans.get(current.merge_id) if current is not None and current.merge_id else None
        if span is not None:
            # Step off the far edge of the span
            if dr > 0:
                row = span.anchor_row + span.row_span - 1
            if dc > 0:
                col = span.anchor_col + span.col_span - 1
        row, col = row + dr, col + dc
        cell = grid.cell_at(row, col)
        if cell is None:
            return
        if self.editor.is_hidden(cell.position):
            span = self.editor.spans[cell.merge_id]
            row, col = span.anchor_row, span.anchor_col
        self.cursor = CellPosition(row, col)
        self.editor.enter(self.cursor)

    def generate_display(self) -> Panel:
        """Generate the current display with grid and status."""
        ed = self.editor
        lines = render_grid(
            ed.grid,
            ed.spans,
            cursor=self.cursor,
            selected=set(ed.selection.selected),
            preview=ed.autofill_preview(),
            source=ed.autofill.source if ed.autofill.active else None,
        )

        status = Text()
        status.append("Cursor: ", style="bold")
        status.append(f"[{self.cursor.row}, {self.cursor.col}]")
        cell = ed.cell(self.cursor.row, self.cursor.col)
        if cell is not None:
            status.append(f"  value={cell.sequence_number!r}")
            if cell.merge_id:
                status.append(f"  merge={cell.merge_id}")
        status.append("\n\n")

        status.append(Text.from_ansi("\n".join(lines)))
        status.append("\n\n")
        status.append(render_statistics(self.sink.statistics, ed.settings.enable_blanking) + "\n")
        status.append(f"Selected: {len(ed.selection)}\n\n")

        status.append("Keys:\n", style="bold cyan")
        status.append("  Arrows/WASD - Move      Space - Select (Tab: toggle)\n")
        status.append("  V - Drag select         F - Autofill drag (F again to drop)\n")
        status.append("  M - Merge  U - Unmerge  B - Blank  N - Unblank\n")
        status.append("  Shift+A - Select all  C - Clear  X - Toggle blocked\n")
        status.append("  E - Edit value  R - Add row  K - Add column  G - Regenerate\n")
        status.append("  Esc - Cancel drag       Q - Quit\n\n")

        status.append("─" * 40 + "\n", style="dim")
        status.append("Status: ", style="bold")
        if self.edit_buffer is not None:
            status.append(f"editing: {self.edit_buffer}_")
        else:
            status.append(self.status_message)

        return Panel(status, title="Tablegrid", border_style="green", width=100)

    def handle_edit_key(self, key: str) -> None:
        """Keys while typing a value: Enter commits, Esc cancels."""
        assert self.edit_buffer is not None
        if key in (readchar.key.ENTER, "\r", "\n"):
            value, self.edit_buffer = self.edit_buffer, None
            if self.editor.set_value(self.cursor.row, self.cursor.col, value or "-"):
                self.status_message = f"✓ Set {self.cursor.row},{self.cursor.col} = {value!r}"
            else:
                self.status_message = "✗ Editing is disabled"
        elif key == readchar.key.ESC:
            self.edit_buffer = None
            self.status_message = "Edit cancelled"
        elif key == readchar.key.BACKSPACE:
            self.edit_buffer = self.edit_buffer[:-1]
        elif len(key) == 1 and key.isprintable():
            self.edit_buffer += key

    def handle_key(self, key: str) -> bool:
        """Apply one key press. Returns False to quit."""
        if self.edit_buffer is not None:
            self.handle_edit_key(key)
            return True

        ed = self.editor
        lower = key.lower() if len(key) == 1 else key
        try:
            if key in MOVES:
                self.move_cursor(*MOVES[key])
            elif lower == "q":
                return False
            elif key == " ":
                ed.click(self.cursor)
            elif key == readchar.key.TAB:
                ed.click(self.cursor, toggle=True)
            elif lower == "v":
                if ed.selection.dragging:
                    ed.release()
                    self.status_message = f"Selected {len(ed.selection)} cell(s)"
                else:
                    ed.press(self.cursor, additive=bool(ed.selection.selected))
                    self.status_message = "Dragging selection (V to release)"
            elif lower == "f":
                if ed.autofill.active:
                    ed.release()
                    self.status_message = "✓ Autofill applied"
                elif ed.begin_autofill(self.cursor):
                    self.status_message = "Autofill drag (move, then F to release)"
                else:
                    self.status_message = "✗ Autofill needs an editable numeric cell"
            elif key == readchar.key.ESC:
                ed.cancel_drags()
                self.status_message = "Drag cancelled"
            elif lower == "m":
                self.status_message = "✓ Merged" if ed.merge() else "Select at least two cells to merge"
            elif lower == "u":
                self.status_message = "✓ Unmerged" if ed.unmerge() else "Nothing to unmerge"
            elif lower == "b":
                self.status_message = "✓ Blanked" if ed.blank() else "Nothing to blank"
            elif lower == "n":
                self.status_message = "✓ Unblanked" if ed.unblank() else "Nothing to unblank"
            elif key == "A":
                ed.select_all()
            elif lower == "c":
                ed.clear_selection()
                self.status_message = "Selection cleared"
            elif lower == "x":
                ed.toggle_blocked(self.cursor.row, self.cursor.col)
            elif lower == "e":
                self.edit_buffer = ""
            elif lower == "r":
                ed.add_row()
                self.status_message = f"✓ Added row {ed.grid.row_count}"
            elif lower == "k":
                ed.add_column()
                self.status_message = f"✓ Added column {ed.grid.column_count}"
            elif lower == "g":
                ed.generate()
                self.cursor = CellPosition(1, 1)
                self.status_message = f"✓ Generated {ed.grid.row_count}x{ed.grid.column_count}"
            else:
                self.status_message = f"Unknown key: {repr(key)}"
        except GridError as e:
            self.status_message = f"✗ {e}"
        return True

    def run(self) -> None:
        """Run the interactive editor until Q is pressed."""
        with Live(self.generate_display(), console=self.console, refresh_per_second=4) as live:
            try:
                while True:
                    live.update(self.generate_display())
                    key = readchar.readkey()
                    if not self.handle_key(key):
                        self.status_message = "Quitting..."
                        live.update(self.generate_display())
                        break
            except KeyboardInterrupt:
                self.editor.cancel_drags()
                self.status_message = "Interrupted by user"
                live.update(self.generate_display())


LAYOUTS = dict(
    blank=None,
    numbered="1 2 3 4 5|6 7 8 9 10|11 12 13 14 15|16 17 18 19 20",
    cavity="1@a 1@a 3 4 -|1@a 1@a ~7 8 -|9 10 11 *12 -|- - - - -",
)


def main(argv: list[str]) -> None:
    """
    Usage: interactive_editor.py [LAYOUT | FILE.json] [--print] [--debug]

    A .json argument is loaded (if it exists) and saved back on every change.
    """
    args = [a for a in argv[1:] if not a.startswith("--")]
    if "--debug" in argv:
        # The live display owns the terminal, so debug logs go to a file
        logging.basicConfig(
            level=logging.DEBUG, filename="tablegrid.log", format="%(levelname)s: %(name)s: %(message)s"
        )

    target = args[0] if args else "cavity"
    path: Path | None = None
    snapshot: str | None = None
    if target.endswith(".json"):
        path = Path(target)
        snapshot = path.read_text(encoding="utf-8") if path.exists() else None
    elif target in LAYOUTS:
        layout = LAYOUTS[target]
        snapshot = dump_snapshot(parse_grid(layout)) if layout else None
    else:
        print(f"Unknown layout {target!r}; choose from {', '.join(LAYOUTS)} or a .json file")
        sys.exit(2)

    settings = EditorSettings(
        default_rows=5,
        default_columns=5,
        enable_merging=True,
        enable_blanking=True,
        enable_editing=True,
        enable_checkbox=False,
        auto_save=True,
    )
    sink = FileSink(path)
    editor = GridEditor(settings, sink, snapshot)

    if "--print" in argv:
        print("\n".join(render_grid(editor.grid, editor.spans)))
        print(render_statistics(sink.statistics))
        return

    InteractiveEditor(editor, sink).run()


def run_cli() -> None:
    main(sys.argv)


if __name__ == "__main__":
    run_cli()
