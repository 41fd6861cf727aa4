import pytest

from grid_model import (BlockedRegion, CellKind, DiagnosticEvent, Grid, GridCell, emit,
                        grid_from_dict, grid_to_dict, parse_layout, path_to_list,
                        sample_grid)


def test_numbered_cell_requires_positive_order():
    with pytest.raises(ValueError):
        GridCell(0, 0, CellKind.NUMBERED)
    with pytest.raises(ValueError):
        GridCell(0, 0, CellKind.NUMBERED, 0)
    with pytest.raises(ValueError):
        GridCell(0, 0, CellKind.BLOCKED, 2)
    assert GridCell(1, 2, CellKind.NUMBERED, 3).pos == (1, 2)


def test_grid_must_be_dense():
    cells = [GridCell(x, y) for y in range(2) for x in range(2)]
    Grid(2, 2, tuple(cells))
    with pytest.raises(ValueError):
        Grid(2, 2, tuple(cells[:3]))
    with pytest.raises(ValueError):
        Grid(2, 2, tuple(cells[:3] + [GridCell(0, 0)]))
    with pytest.raises(ValueError):
        Grid(2, 2, tuple(cells[:3] + [GridCell(2, 1)]))
    with pytest.raises(ValueError):
        Grid(0, 2, ())


def test_parse_layout():
    grid = parse_layout([
        "1.#",
        "",
        "#.2",
    ])
    assert (grid.rows, grid.cols) == (2, 3)
    assert grid.is_blocked(2, 0) and grid.is_blocked(0, 1)
    assert [(c.pos, c.order) for c in grid.numbered_cells()] == [((0, 0), 1), ((2, 1), 2)]
    assert grid.cell_at(1, 1).kind is CellKind.EMPTY


def test_parse_layout_whitespace_tokens():
    grid = parse_layout(["1 . 12", "# . 2"])
    assert grid.cell_at(2, 0).order == 12
    assert grid.cols == 3


@pytest.mark.parametrize("lines", [[], ["..", "."], [".x."]])
def test_parse_layout_rejects_bad_input(lines):
    with pytest.raises(ValueError):
        parse_layout(lines)


def test_sample_grid():
    grid = sample_grid()
    blocked = {c.pos for c in grid.cells if c.kind is CellKind.BLOCKED}
    assert blocked == {(1, 1), (2, 1), (1, 2), (3, 3), (4, 3)}
    assert [c.pos for c in grid.numbered_cells()] == [(0, 0), (2, 0), (4, 2), (4, 4)]


def test_dict_conversion():
    grid = Grid(1, 2, (GridCell(0, 0, CellKind.NUMBERED, 1), GridCell(1, 0, CellKind.BLOCKED)),
                (BlockedRegion(40, 0, 40, 40),))
    data = grid_to_dict(grid)
    assert data["cells"][0] == {"x": 0, "y": 0, "type": "numbered", "number": 1}
    assert data["hurdles"] == [{"x": 40, "y": 0, "width": 40, "height": 40}]
    assert grid_from_dict(data) == grid


def test_legacy_cell_types():
    grid = grid_from_dict({
        "rows": 1, "cols": 2,
        "cells": [
            {"x": 0, "y": 0, "type": "number", "number": 1},
            {"x": 1, "y": 0, "type": "hurdle", "number": 7},
        ],
    })
    assert grid.cell_at(0, 0).order == 1
    assert grid.is_blocked(1, 0)
    assert grid.cell_at(1, 0).order is None


@pytest.mark.parametrize("data", [
    {"rows": 1, "cols": 1},
    {"rows": 1, "cols": 1, "cells": [{"x": 0, "y": 0, "type": "wall"}]},
    {"rows": 1, "cols": 1, "cells": [{"x": 0, "y": 0, "type": "numbered"}]},
    {"rows": 1, "cols": 1, "cells": ["x"]},
    ["not", "a", "grid"],
])
def test_malformed_grid_documents(data):
    with pytest.raises(ValueError):
        grid_from_dict(data)


def test_path_to_list():
    assert path_to_list([(0, 0), (1, 0)]) == [[0, 0], [1, 0]]


def test_emit_without_callback_is_noop():
    emit(None, "anything", x=1)
    seen = []
    emit(seen.append, "cell", x=1)
    assert seen == [DiagnosticEvent("cell", {"x": 1})]
