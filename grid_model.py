from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

Coordinate = Tuple[int, int]  # (x, y) == (col, row)


class CellKind(Enum):
    EMPTY = "empty"
    BLOCKED = "blocked"
    NUMBERED = "numbered"


# older JSON grids name blocked cells "hurdle" and numbered ones "number"
_LEGACY_KINDS = {"hurdle": CellKind.BLOCKED, "number": CellKind.NUMBERED}


@dataclass(frozen=True)
class GridCell:
    x: int
    y: int
    kind: CellKind = CellKind.EMPTY
    order: Optional[int] = None

    def __post_init__(self):
        if self.kind is CellKind.NUMBERED:
            if self.order is None or self.order < 1:
                raise ValueError(f"Numbered cell ({self.x},{self.y}) needs a positive order, got {self.order!r}")
        elif self.order is not None:
            raise ValueError(f"Only numbered cells carry an order: ({self.x},{self.y}) is {self.kind.value}")

    @property
    def pos(self) -> Coordinate:
        return (self.x, self.y)


@dataclass(frozen=True)
class BlockedRegion:
    """Pixel-space box of a blocked cell, kept for renderers only."""
    x: int
    y: int
    width: int
    height: int


@dataclass(frozen=True)
class Grid:
    """
    Dense, row-major board: exactly one GridCell per (x, y) with
    0 <= x < cols and 0 <= y < rows.
    """
    rows: int
    cols: int
    cells: Tuple[GridCell, ...]
    blocked_regions: Tuple[BlockedRegion, ...] = ()
    _index: Dict[Coordinate, GridCell] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        if self.rows < 1 or self.cols < 1:
            raise ValueError(f"Grid must be at least 1x1, got {self.rows}x{self.cols}")
        object.__setattr__(self, "cells", tuple(self.cells))
        object.__setattr__(self, "blocked_regions", tuple(self.blocked_regions))

        index: Dict[Coordinate, GridCell] = {}
        for cell in self.cells:
            if not self.in_bounds(cell.x, cell.y):
                raise ValueError(f"Cell ({cell.x},{cell.y}) outside {self.cols}x{self.rows} grid")
            if cell.pos in index:
                raise ValueError(f"Duplicate cell at ({cell.x},{cell.y})")
            index[cell.pos] = cell
        if len(index) != self.rows * self.cols:
            raise ValueError(f"Grid is not dense: {len(index)} cells for {self.rows}x{self.cols}")
        object.__setattr__(self, "_index", index)

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.cols and 0 <= y < self.rows

    def cell_at(self, x: int, y: int) -> GridCell:
        return self._index[(x, y)]

    def is_blocked(self, x: int, y: int) -> bool:
        return self._index[(x, y)].kind is CellKind.BLOCKED

    def numbered_cells(self) -> List[GridCell]:
        cells = [c for c in self.cells if c.kind is CellKind.NUMBERED]
        return sorted(cells, key=lambda c: c.order)


# ---------- Diagnostics ----------
@dataclass(frozen=True)
class DiagnosticEvent:
    name: str
    data: Dict[str, Any] = field(default_factory=dict)


EventCallback = Callable[[DiagnosticEvent], None]


def emit(on_event: Optional[EventCallback], name: str, **data) -> None:
    if on_event is not None:
        on_event(DiagnosticEvent(name, data))


# ---------- Conversion ----------
def grid_to_dict(grid: Grid) -> Dict[str, Any]:
    return {
        "rows": grid.rows,
        "cols": grid.cols,
        "cells": [
            {"x": c.x, "y": c.y, "type": c.kind.value, "number": c.order}
            for c in grid.cells
        ],
        "hurdles": [
            {"x": r.x, "y": r.y, "width": r.width, "height": r.height}
            for r in grid.blocked_regions
        ],
    }


def _parse_kind(value: str) -> CellKind:
    if value in _LEGACY_KINDS:
        return _LEGACY_KINDS[value]
    try:
        return CellKind(value)
    except ValueError:
        raise ValueError(f"Unknown cell type: {value!r}") from None


def grid_from_dict(data: Dict[str, Any]) -> Grid:
    try:
        cells = []
        for c in data["cells"]:
            kind = _parse_kind(c.get("type", "empty"))
            # legacy documents may carry a stray number on non-numbered cells
            order = int(c["number"]) if kind is CellKind.NUMBERED else None
            cells.append(GridCell(int(c["x"]), int(c["y"]), kind, order))
        regions = [
            BlockedRegion(int(h["x"]), int(h["y"]), int(h["width"]), int(h["height"]))
            for h in data.get("hurdles", [])
        ]
        return Grid(int(data["rows"]), int(data["cols"]), tuple(cells), tuple(regions))
    except (AttributeError, KeyError, TypeError) as e:
        raise ValueError(f"Malformed grid document: {e}") from e


def path_to_list(path: Iterable[Coordinate]) -> List[List[int]]:
    return [[int(x), int(y)] for x, y in path]


def parse_layout(lines: Iterable[str]) -> Grid:
    """
    Build a grid from a text layout, one line per row:
      .  empty
      #  blocked
      N  numbered cell with order N
    Rows containing whitespace are split on it (for orders >= 10),
    otherwise every character is one cell. Blank lines are ignored.
    """
    rows: List[List[str]] = []
    for line in lines:
        line = line.strip()
        if not line:
            continue
        rows.append(line.split() if any(ch.isspace() for ch in line) else list(line))
    if not rows:
        raise ValueError("Layout has no rows")
    width = len(rows[0])
    if any(len(r) != width for r in rows):
        raise ValueError("Layout rows must all have the same length")

    cells = []
    for y, row in enumerate(rows):
        for x, token in enumerate(row):
            if token == ".":
                cells.append(GridCell(x, y))
            elif token == "#":
                cells.append(GridCell(x, y, CellKind.BLOCKED))
            elif token.isdigit():
                cells.append(GridCell(x, y, CellKind.NUMBERED, int(token)))
            else:
                raise ValueError(f"Unknown layout token {token!r} at ({x},{y})")
    return Grid(len(rows), width, tuple(cells))


def sample_grid() -> Grid:
    """Built-in 5x5 demo board with a few blocked cells and numbers 1-4."""
    return parse_layout([
        "1.2..",
        ".##..",
        ".#..3",
        "...##",
        "....4",
    ])
