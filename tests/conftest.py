import numpy as np
import pytest

WHITE = (240, 240, 240, 255)
BLACK = (10, 10, 10, 255)
BLUE = (30, 100, 200, 255)
YELLOW = (240, 200, 40, 255)


def paint_board(layout, cell=30):
    """
    RGBA screenshot of a board: '.' light tile, '#' blue wall,
    'N' white tile with a black badge covering a quarter of it,
    'Y' yellow tile.
    """
    rows, cols = len(layout), len(layout[0])
    img = np.zeros((rows * cell, cols * cell, 4), dtype=np.uint8)
    img[:, :] = WHITE
    q = cell // 4
    for r, line in enumerate(layout):
        for c, ch in enumerate(line):
            y0, x0 = r * cell, c * cell
            if ch == "#":
                img[y0:y0 + cell, x0:x0 + cell] = BLUE
            elif ch == "N":
                img[y0 + q:y0 + cell - q, x0 + q:x0 + cell - q] = BLACK
            elif ch == "Y":
                img[y0:y0 + cell, x0:x0 + cell] = YELLOW
    return img


@pytest.fixture
def board():
    return paint_board
