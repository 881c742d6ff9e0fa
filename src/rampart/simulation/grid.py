"""Grid and path — the static map every session is played on.

The play area is split into square cells.  A single corridor runs from the
left edge to the right edge: right for a third of the columns, down for a
third of the rows, then right to the edge.  Path points sit on cell
corners, and every in-bounds cell a point falls in is marked non-walkable
when the grid is built, before any tower can be placed.

Nothing here changes once a session starts except cell occupancy.
"""

from __future__ import annotations

from dataclasses import dataclass

from .errors import InvalidPlacement


@dataclass
class GridCell:
    walkable: bool = True
    occupant: str | None = None  # tower_id

    def to_dict(self) -> dict:
        return {"walkable": self.walkable, "occupant": self.occupant}


def build_path(cols: int, rows: int, cell_size: float) -> list[tuple[float, float]]:
    """Return the L-shaped corridor for a *cols* x *rows* grid.

    Consecutive points differ in exactly one axis by one cell.  The last
    point lies on the right edge of the play area (``cols * cell_size``).
    """
    start_y = (rows // 2) * cell_size
    bend_col = cols // 3
    drop_rows = rows // 3

    path: list[tuple[float, float]] = [(0.0, float(start_y))]
    for i in range(1, bend_col + 1):
        path.append((float(i * cell_size), float(start_y)))
    for i in range(1, drop_rows + 1):
        path.append((float(bend_col * cell_size), float(start_y + i * cell_size)))
    end_y = start_y + drop_rows * cell_size
    for i in range(bend_col + 1, cols + 1):
        path.append((float(i * cell_size), float(end_y)))
    return path


class Grid:
    """Walkability grid plus the fixed enemy path."""

    def __init__(self, width: float = 800, height: float = 600, cell_size: float = 40) -> None:
        if cell_size <= 0:
            raise ValueError("cell_size must be positive")
        self.width = width
        self.height = height
        self.cell_size = cell_size
        self.cols = int(width // cell_size)
        self.rows = int(height // cell_size)
        if self.cols < 1 or self.rows < 1:
            raise ValueError("play area is smaller than one cell")
        self.cells: list[list[GridCell]] = [
            [GridCell() for _ in range(self.cols)] for _ in range(self.rows)
        ]
        self.path = build_path(self.cols, self.rows, cell_size)
        for x, y in self.path:
            cell = self.cell_at(x, y)
            if cell is not None:
                self.cells[cell[1]][cell[0]].walkable = False

    # -- Queries ----------------------------------------------------------------

    def in_bounds(self, col: int, row: int) -> bool:
        return 0 <= col < self.cols and 0 <= row < self.rows

    def cell(self, col: int, row: int) -> GridCell | None:
        if not self.in_bounds(col, row):
            return None
        return self.cells[row][col]

    def is_walkable(self, col: int, row: int) -> bool:
        cell = self.cell(col, row)
        return cell is not None and cell.walkable

    def cell_at(self, x: float, y: float) -> tuple[int, int] | None:
        """Return (col, row) of the cell containing point (x, y), or None."""
        col = int(x // self.cell_size)
        row = int(y // self.cell_size)
        if not self.in_bounds(col, row):
            return None
        return col, row

    def cell_center(self, col: int, row: int) -> tuple[float, float]:
        half = self.cell_size / 2
        return (col * self.cell_size + half, row * self.cell_size + half)

    def path_cells(self) -> list[tuple[int, int]]:
        """Distinct in-bounds cells covered by the path, in path order."""
        seen: list[tuple[int, int]] = []
        for x, y in self.path:
            cell = self.cell_at(x, y)
            if cell is not None and cell not in seen:
                seen.append(cell)
        return seen

    # -- Mutation ---------------------------------------------------------------

    def check_placement(self, col: int, row: int) -> None:
        """Raise InvalidPlacement unless a tower may be built at (col, row)."""
        cell = self.cell(col, row)
        if cell is None:
            raise InvalidPlacement(f"Cell ({col}, {row}) is out of bounds")
        if cell.occupant is not None:
            raise InvalidPlacement(f"Cell ({col}, {row}) is occupied by {cell.occupant}")
        if not cell.walkable:
            raise InvalidPlacement(f"Cell ({col}, {row}) is on the path")

    def occupy(self, col: int, row: int, tower_id: str) -> None:
        self.check_placement(col, row)
        cell = self.cells[row][col]
        cell.occupant = tower_id
        cell.walkable = False

    def to_dict(self) -> dict:
        return {
            "width": self.width,
            "height": self.height,
            "cell_size": self.cell_size,
            "cols": self.cols,
            "rows": self.rows,
            "path": [{"x": x, "y": y} for x, y in self.path],
        }
