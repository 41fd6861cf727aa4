import numbers
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Tuple, Union

import yaml


def _number(name: str, value, kind: type):
    # bool is an int subclass; YAML "yes"/"no" must not pass as a threshold
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ValueError(f"{name} must be a number, got {value!r}")
    if kind is int and not float(value).is_integer():
        raise ValueError(f"{name} must be a whole number, got {value!r}")
    return kind(value)


@dataclass(frozen=True)
class DetectionConfig:
    """
    Tunable knobs of the grid reconstructor.

    Channel thresholds are 0-255 values applied per sampled pixel; the
    *_ratio fields compare a bucket's share of the sampled, non-transparent
    pixels of one cell.
    """
    # --- dimension estimation ---
    candidate_sizes: Tuple[int, ...] = (3, 4, 5, 6, 7)  # tried in ascending order
    min_cell_pixels: int = 10     # cell width AND height must exceed this
    fallback_size: int = 5        # used when no candidate qualifies
    samples_per_cell: int = 20    # sampling stride = cell_width // samples_per_cell

    # --- per-pixel buckets (first match wins, in this order) ---
    min_alpha: int = 128          # below -> pixel ignored
    white_min: int = 200          # near-white: r, g, b > white_min
    very_dark_max: int = 30       # near-black: r, g, b < very_dark_max
    dark_max: int = 130           # moderately dark: r, g, b < dark_max
    blue_min: int = 100           # blue-dominant: b > r, b > g, b > blue_min
    blue_margin: int = 30         #   ... and b - r > blue_margin
    green_min: int = 100          # green-dominant: g > r, g > b, g > green_min
    yellow_min: int = 130         # yellow: r, g > yellow_min
    yellow_blue_max: int = 120    #   ... b < yellow_blue_max
    yellow_sum_min: int = 250     #   ... r + g > yellow_sum_min
    gray_tolerance: int = 25      # gray: |r-g|, |g-b| < gray_tolerance
    gray_min: int = 120           #   ... r > gray_min

    # --- cell decision ---
    blocked_blue_ratio: float = 0.25      # 1. blue -> blocked
    badge_very_dark_ratio: float = 0.15   # 2. dark badge on light background ...
    badge_white_ratio: float = 0.05       #    ... with this much white
    solid_very_dark_ratio: float = 0.2    #    or a solid dark badge
    dark_ratio: float = 0.15              # 3. moderately dark text
    faint_very_dark_ratio: float = 0.05   #    or a little black ...
    faint_gray_ratio: float = 0.3         #    ... on gray
    yellow_ratio: float = 0.15            # 4. yellow -> numbered

    def __post_init__(self):
        sizes = self.candidate_sizes
        if not isinstance(sizes, (list, tuple)):
            raise ValueError(f"candidate_sizes must be a list of board sizes, got {sizes!r}")
        object.__setattr__(self, "candidate_sizes", tuple(_number("candidate_sizes", n, int) for n in sizes))
        for f in fields(self):
            if f.type in (int, float):
                object.__setattr__(self, f.name, _number(f.name, getattr(self, f.name), f.type))

        if not self.candidate_sizes or min(self.candidate_sizes) < 1:
            raise ValueError(f"candidate_sizes must be non-empty and positive: {self.candidate_sizes}")
        if self.fallback_size < 1:
            raise ValueError(f"fallback_size must be positive: {self.fallback_size}")
        if self.samples_per_cell < 1:
            raise ValueError(f"samples_per_cell must be positive: {self.samples_per_cell}")
        if self.min_cell_pixels < 0:
            raise ValueError(f"min_cell_pixels must not be negative: {self.min_cell_pixels}")
        for f in fields(self):
            if f.name.endswith("_ratio"):
                v = getattr(self, f.name)
                if not 0.0 <= v <= 1.0:
                    raise ValueError(f"{f.name} must be within [0, 1]: {v}")

    def with_grid_size(self, size: int) -> "DetectionConfig":
        """Force a single board size instead of estimating one."""
        return replace(self, candidate_sizes=(size,), fallback_size=size)


def load_config(config_path: Union[str, Path]) -> DetectionConfig:
    """
    Read DetectionConfig overrides from a YAML mapping; unspecified keys
    keep their defaults.
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    if raw is None:
        raise ValueError(f"Config file is empty: {config_path}")
    if not isinstance(raw, dict):
        raise ValueError(f"Config must be a mapping, got {type(raw).__name__}")

    known = {f.name for f in fields(DetectionConfig)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ValueError(f"Unknown config keys: {', '.join(unknown)}")

    return DetectionConfig(**raw)
