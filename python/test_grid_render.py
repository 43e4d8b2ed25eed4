"""Tests for grid_render module (plain output)."""

from grid_parser import parse_grid
from grid_render import cell_text, render_grid, render_statistics
from grid_types import GridStatistics
from merge_spans import compute_merge_spans


def render(definition: str) -> list[str]:
    grid = parse_grid(definition)
    return render_grid(grid, compute_merge_spans(grid.rows), color=False)


class TestRenderGrid:
    """Tests for box drawing around cells and spans."""

    def test_frame(self) -> None:
        """Two lines per row plus the closing border, all the same width."""
        lines = render("1 2 3|4 5 6")

        assert len(lines) == 5
        assert lines[0] == "┌" + "─" * 17 + "┐"
        assert lines[-1] == "└" + "─" * 17 + "┘"
        assert len({len(line) for line in lines}) == 1

    def test_plain_dividers(self) -> None:
        """Unmerged cells are separated on both axes."""
        lines = render("1 2|3 4")

        assert lines[1].count("│") == 3
        assert lines[2] == "├─────┼─────┤"

    def test_horizontal_span(self) -> None:
        """No column divider inside a span; its hidden cell shows nothing."""
        lines = render("5@a 5@a|1 ~2")

        assert lines[1].count("│") == 2
        assert lines[1].count("5") == 1
        assert lines[2] == "├─────┼─────┤"
        assert "1" in lines[3]
        assert "2" not in lines[3]

    def test_vertical_span(self) -> None:
        """No row divider inside a span."""
        lines = render("1@a 2|1@a 3")

        assert lines[2] == "├     ┼─────┤"
        assert "1" not in lines[3]

    def test_block_span(self) -> None:
        """A 2x2 span is one open block."""
        lines = render("7@a 7@a|7@a 7@a")

        assert lines[2] == "├" + " " * 11 + "┤"
        assert lines[1].count("7") == 1
        assert "7" not in lines[3]

    def test_span_in_last_column(self) -> None:
        """Each row's cells are drawn in order up to the right edge."""
        lines = render("1 2@a|3 2@a")

        assert lines[1].count("│") == 3
        assert lines[2] == "├─────┼     ┤"
        assert "3" in lines[3]
        assert "2" not in lines[3]

    def test_blocked_marker(self) -> None:
        grid = parse_grid("*5")

        assert cell_text(grid.cell_at(1, 1), {}, 5).strip() == "■5"


class TestRenderStatistics:
    """Tests for the summary line."""

    def test_summary(self) -> None:
        stats = GridStatistics(total_cells=4, blocked_cells=0, merged_cells=1, blank_cells=1)

        assert render_statistics(stats) == "Cells: 4  Blocked: 0  Merged: 1  Blank: 1"
        assert render_statistics(stats, show_blank=False) == "Cells: 4  Blocked: 0  Merged: 1"
