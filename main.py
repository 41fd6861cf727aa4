import argparse
import json
import sys

import yaml
from loguru import logger

from config import DetectionConfig, load_config
from grid_extraction import load_pixels, reconstruct_grid, write_debug_image
from grid_model import (DiagnosticEvent, grid_from_dict, grid_to_dict, parse_layout,
                        path_to_list, sample_grid)
from solver import synthesize_path

# --- CONFIG ---
IMAGE_PATH = "assets/puzzle.png"
DEBUG_IMAGE_PATH = "debug/grid_cells.png"


def log_event(event: DiagnosticEvent):
    logger.debug("{} {}", event.name, event.data)


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Detect a Zip puzzle grid in a screenshot and solve it.")
    p.add_argument("image", nargs="?", default=IMAGE_PATH, help="puzzle screenshot")
    src = p.add_mutually_exclusive_group()
    src.add_argument("--sample", action="store_true", help="solve the built-in sample grid instead of an image")
    src.add_argument("--layout", help="solve a text layout file ('.' empty, '#' blocked, N numbered)")
    src.add_argument("--grid", help="solve a JSON grid document (as written under \"grid\" in the output)")
    p.add_argument("--config", help="YAML file overriding detection thresholds")
    p.add_argument("--grid-size", type=int, help="force an NxN board instead of estimating it")
    p.add_argument("--debug-image", nargs="?", const=DEBUG_IMAGE_PATH,
                   help=f"write the classified cells over the image (default {DEBUG_IMAGE_PATH})")
    p.add_argument("--output", "-o", help="write the JSON result here instead of stdout")
    p.add_argument("--verbose", "-v", action="store_true", help="log detection and search diagnostics")
    return p.parse_args(argv)


def run(args) -> dict:
    if args.sample:
        grid = sample_grid()
    elif args.layout:
        with open(args.layout, "r", encoding="utf-8") as f:
            grid = parse_layout(f)
    elif args.grid:
        with open(args.grid, "r", encoding="utf-8") as f:
            grid = grid_from_dict(json.load(f))
    else:
        config = load_config(args.config) if args.config else DetectionConfig()
        if args.grid_size is not None:
            config = config.with_grid_size(args.grid_size)
        pixels = load_pixels(args.image)
        grid = reconstruct_grid(pixels, config, on_event=log_event)
        if args.debug_image:
            write_debug_image(pixels, grid, args.debug_image)
            logger.info("Saved debug image -> {}", args.debug_image)

    logger.info("Grid {}x{}, {} numbered cells, {} blocked",
                grid.rows, grid.cols, len(grid.numbered_cells()), len(grid.blocked_regions))
    path = synthesize_path(grid, on_event=log_event)
    logger.info("Path of {} cells", len(path))
    return {"success": True, "grid": grid_to_dict(grid), "path": path_to_list(path)}


def main(argv=None) -> int:
    args = parse_args(argv)
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if args.verbose else "INFO")

    try:
        result = run(args)
        status = 0
    except (OSError, ValueError, yaml.YAMLError) as e:
        logger.error("Failed to solve puzzle: {}", e)
        result = {"success": False, "error": str(e)}
        status = 1

    text = json.dumps(result, indent=2)
    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(text + "\n")
    else:
        print(text)
    return status


if __name__ == "__main__":
    sys.exit(main())
