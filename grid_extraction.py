import os
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple, Union

import cv2
import numpy as np

from config import DetectionConfig
from grid_model import (BlockedRegion, CellKind, Coordinate, EventCallback, Grid,
                        GridCell, emit)

# disjoint pixel buckets, tested in this order; first match wins
BUCKETS = ("white", "very_dark", "dark", "blue", "green", "yellow", "gray")


class InvalidImageError(ValueError):
    """Pixel data from which no grid can be built at all."""


@dataclass(frozen=True)
class GridDimensions:
    rows: int
    cols: int
    cell_width: int
    cell_height: int


@dataclass(frozen=True)
class ColorCounts:
    total: int = 0
    white: int = 0
    very_dark: int = 0
    dark: int = 0
    blue: int = 0
    green: int = 0
    yellow: int = 0
    gray: int = 0

    def ratio(self, bucket: str) -> float:
        if self.total == 0:
            return 0.0
        return getattr(self, bucket) / self.total

    def ratios(self) -> Dict[str, float]:
        return {b: round(self.ratio(b), 4) for b in BUCKETS}


# ---------- Pixel buffers ----------
def as_pixel_array(data: Union[np.ndarray, Sequence[int]],
                   width: Optional[int] = None,
                   height: Optional[int] = None) -> np.ndarray:
    """
    Normalize a PixelBuffer to a (height, width, 4) RGBA array.
    Accepts either that array directly or a flat row-major RGBA sequence
    plus explicit width/height. The input is never modified.
    """
    arr = np.asarray(data)
    if arr.size == 0:
        raise InvalidImageError("Empty pixel buffer")
    if not np.issubdtype(arr.dtype, np.number):
        raise InvalidImageError(f"Pixel buffer must be numeric, got {arr.dtype}")
    if not np.all((arr >= 0) & (arr <= 255)):
        raise InvalidImageError("Channel values must lie within 0-255")

    if arr.ndim == 1:
        if width is None or height is None:
            raise InvalidImageError("A flat pixel buffer needs explicit width and height")
        if width <= 0 or height <= 0:
            raise InvalidImageError(f"Invalid image size {width}x{height}")
        if arr.size != width * height * 4:
            raise InvalidImageError(
                f"Buffer holds {arr.size} values, expected {width}x{height}x4 = {width * height * 4}")
        return arr.reshape(height, width, 4)

    if arr.ndim != 3 or arr.shape[2] != 4:
        raise InvalidImageError(f"Expected an RGBA array of shape (h, w, 4), got {arr.shape}")
    if (width is not None and width != arr.shape[1]) or (height is not None and height != arr.shape[0]):
        raise InvalidImageError(
            f"Declared size {width}x{height} does not match array {arr.shape[1]}x{arr.shape[0]}")
    return arr


def load_pixels(image_path: str) -> np.ndarray:
    """Decode an image file into an RGBA array."""
    img = cv2.imread(str(image_path), cv2.IMREAD_UNCHANGED)
    if img is None:
        if not os.path.exists(image_path):
            raise FileNotFoundError(f"Image not found: {image_path}")
        raise InvalidImageError(f"Could not decode image: {image_path}")

    if img.dtype == np.uint16:
        img = (img >> 8).astype(np.uint8)

    if img.ndim == 2:
        return cv2.cvtColor(img, cv2.COLOR_GRAY2RGBA)
    if img.shape[2] == 3:
        return cv2.cvtColor(img, cv2.COLOR_BGR2RGBA)
    if img.shape[2] == 4:
        return cv2.cvtColor(img, cv2.COLOR_BGRA2RGBA)
    raise InvalidImageError(f"Unsupported channel count {img.shape[2]}: {image_path}")


# ---------- Step 1: board size ----------
def estimate_grid_dimensions(width: int, height: int,
                             config: Optional[DetectionConfig] = None) -> GridDimensions:
    """
    Pick the first candidate board size whose cells are big enough to
    sample; the board is assumed square and filling the image. Never fails:
    falls back to config.fallback_size.
    """
    config = config or DetectionConfig()
    for size in config.candidate_sizes:
        cell_w = width // size
        cell_h = height // size
        if cell_w > config.min_cell_pixels and cell_h > config.min_cell_pixels:
            return GridDimensions(size, size, cell_w, cell_h)

    size = config.fallback_size
    return GridDimensions(size, size, width // size, height // size)


# ---------- Step 2: cell classification ----------
def count_color_buckets(pixels: np.ndarray, x: int, y: int, width: int, height: int,
                        config: Optional[DetectionConfig] = None) -> ColorCounts:
    """
    Sparse-sample the box (x, y, width, height) and count the pixels per
    color bucket. Near-transparent pixels and pixels outside the image are
    not counted at all.
    """
    config = config or DetectionConfig()
    step = max(1, width // config.samples_per_cell)
    x, y = max(0, x), max(0, y)
    patch = pixels[y:y + height:step, x:x + width:step].reshape(-1, 4).astype(np.int32)
    patch = patch[patch[:, 3] >= config.min_alpha]
    if len(patch) == 0:
        return ColorCounts()

    r, g, b = patch[:, 0], patch[:, 1], patch[:, 2]
    c = config
    masks = (
        ("white", (r > c.white_min) & (g > c.white_min) & (b > c.white_min)),
        ("very_dark", (r < c.very_dark_max) & (g < c.very_dark_max) & (b < c.very_dark_max)),
        ("dark", (r < c.dark_max) & (g < c.dark_max) & (b < c.dark_max)),
        ("blue", (b > r) & (b > g) & (b > c.blue_min) & (b - r > c.blue_margin)),
        ("green", (g > r) & (g > b) & (g > c.green_min)),
        ("yellow", (r > c.yellow_min) & (g > c.yellow_min) & (b < c.yellow_blue_max)
         & (r + g > c.yellow_sum_min)),
        ("gray", (np.abs(r - g) < c.gray_tolerance) & (np.abs(g - b) < c.gray_tolerance)
         & (r > c.gray_min)),
    )

    unclaimed = np.ones(len(patch), dtype=bool)
    counts = {}
    for bucket, mask in masks:
        hit = mask & unclaimed
        counts[bucket] = int(np.count_nonzero(hit))
        unclaimed &= ~hit
    return ColorCounts(total=len(patch), **counts)


def classify_counts(counts: ColorCounts, config: Optional[DetectionConfig] = None) -> CellKind:
    config = config or DetectionConfig()
    if counts.total == 0:
        return CellKind.EMPTY

    very_dark = counts.ratio("very_dark")
    # blue tiles are walls
    if counts.ratio("blue") > config.blocked_blue_ratio:
        return CellKind.BLOCKED
    # white digit on a black badge, or a solid black badge
    if (very_dark > config.badge_very_dark_ratio and counts.ratio("white") > config.badge_white_ratio) \
            or very_dark > config.solid_very_dark_ratio:
        return CellKind.NUMBERED
    # dark digit, or a little black on a gray tile
    if counts.ratio("dark") > config.dark_ratio \
            or (very_dark > config.faint_very_dark_ratio and counts.ratio("gray") > config.faint_gray_ratio):
        return CellKind.NUMBERED
    if counts.ratio("yellow") > config.yellow_ratio:
        return CellKind.NUMBERED
    return CellKind.EMPTY


def classify_cell(pixels: np.ndarray, x: int, y: int, width: int, height: int,
                  config: Optional[DetectionConfig] = None) -> Tuple[CellKind, ColorCounts]:
    counts = count_color_buckets(pixels, x, y, width, height, config)
    return classify_counts(counts, config), counts


# ---------- Full reconstruction ----------
def reconstruct_grid(pixels: Union[np.ndarray, Sequence[int]],
                     config: Optional[DetectionConfig] = None,
                     on_event: Optional[EventCallback] = None,
                     width: Optional[int] = None,
                     height: Optional[int] = None) -> Grid:
    """
    Turn an RGBA pixel buffer into a dense Grid.

    Numbered cells are ordered by position (top-to-bottom, then
    left-to-right) and get orders 1..K; printed digits are not read.
    Raises InvalidImageError only when the buffer itself is unusable.
    """
    config = config or DetectionConfig()
    pixels = as_pixel_array(pixels, width, height)
    img_h, img_w = pixels.shape[:2]

    dims = estimate_grid_dimensions(img_w, img_h, config)
    emit(on_event, "grid_estimated", rows=dims.rows, cols=dims.cols,
         cell_width=dims.cell_width, cell_height=dims.cell_height)

    kinds: Dict[Coordinate, CellKind] = {}
    regions: List[BlockedRegion] = []
    for row in range(dims.rows):
        for col in range(dims.cols):
            x0, y0 = col * dims.cell_width, row * dims.cell_height
            kind, counts = classify_cell(pixels, x0, y0, dims.cell_width, dims.cell_height, config)
            kinds[(col, row)] = kind
            if kind is CellKind.BLOCKED:
                regions.append(BlockedRegion(x0, y0, dims.cell_width, dims.cell_height))
            emit(on_event, "cell_classified", x=col, y=row, kind=kind.value,
                 sampled=counts.total, ratios=counts.ratios())

    numbered = sorted((pos for pos, kind in kinds.items() if kind is CellKind.NUMBERED),
                      key=lambda p: (p[1], p[0]))
    orders = {pos: i for i, pos in enumerate(numbered, start=1)}
    emit(on_event, "grid_numbered", count=len(numbered), positions=numbered)

    cells = tuple(
        GridCell(x, y, kinds[(x, y)], orders.get((x, y)))
        for y in range(dims.rows)
        for x in range(dims.cols)
    )
    return Grid(dims.rows, dims.cols, cells, tuple(regions))


def write_debug_image(pixels: np.ndarray, grid: Grid, out_path: str) -> np.ndarray:
    """
    Save the image with the estimated cell boundaries, blocked regions and
    assigned orders drawn on top. Returns the BGR debug image.
    """
    pixels = as_pixel_array(pixels)
    dbg = cv2.cvtColor(np.ascontiguousarray(pixels, dtype=np.uint8), cv2.COLOR_RGBA2BGR)
    h, w = dbg.shape[:2]
    cell_w, cell_h = w // grid.cols, h // grid.rows

    # draw grid lines
    for c in range(grid.cols + 1):
        cv2.line(dbg, (c * cell_w, 0), (c * cell_w, grid.rows * cell_h), (200, 200, 0), 1)
    for r in range(grid.rows + 1):
        cv2.line(dbg, (0, r * cell_h), (grid.cols * cell_w, r * cell_h), (200, 200, 0), 1)

    for region in grid.blocked_regions:
        cv2.rectangle(dbg, (region.x + 2, region.y + 2),
                      (region.x + region.width - 2, region.y + region.height - 2), (0, 0, 255), 2)

    for cell in grid.numbered_cells():
        px = cell.x * cell_w + cell_w // 2
        py = cell.y * cell_h + cell_h // 2
        cv2.circle(dbg, (px, py), max(2, min(cell_w, cell_h) // 8), (0, 255, 0), -1)
        cv2.putText(dbg, str(cell.order), (px + 6, py - 6), cv2.FONT_HERSHEY_SIMPLEX, 0.6, (50, 220, 50), 2)

    out_dir = os.path.dirname(out_path)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)
    cv2.imwrite(out_path, dbg)
    return dbg
