from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from pathlib import Path

from screenwarp.api.pipeline import process_screen
from screenwarp.config import Config, ConfigValidationError, load_config
from screenwarp.core.bounds import RectBounds
from screenwarp.errors import ScreenwarpError
from screenwarp.io.display_config import save_display_config
from screenwarp.io.measurement_file import load_measurements


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="screenwarp",
        description="Fit a display's field of view and distortion mesh from screen-position/view-angle measurements.",
    )
    parser.add_argument("measurements", type=Path, help="Measurement table: screen_x screen_y angle_x angle_y per line.")
    parser.add_argument("--out", type=Path, required=True, help="Output display configuration (JSON).")
    parser.add_argument("--config", type=Path, default=None, help="Base configuration (JSON); flags below override it.")
    parser.add_argument("--lonlat", action="store_true", help="Angles are longitude/latitude instead of field angles.")
    parser.add_argument("--depth", type=float, default=None, help="Working depth for ray placement.")
    parser.add_argument("--to-meters", type=float, default=None, help="Linear unit scale applied to 3D points.")
    parser.add_argument(
        "--screen-bounds",
        type=float,
        nargs=4,
        metavar=("LEFT", "RIGHT", "TOP", "BOTTOM"),
        default=None,
        help="Use these screen bounds instead of the measured extent.",
    )
    parser.add_argument("--reflect-bounds", action="store_true", help="Screen x grows right to left: mirror x and --screen-bounds before normalizing.")
    parser.add_argument(
        "--verify-angles",
        type=float,
        nargs=5,
        metavar=("XX", "XY", "YX", "YY", "MAXDIFF"),
        default=None,
        help="Check fitted angles against inputs through reference axes, tolerance in degrees.",
    )
    parser.add_argument("--overlap", type=float, default=None, help="Overlap percent with the neighbouring screen.")
    parser.add_argument("--grid", type=int, nargs=2, metavar=("NX", "NY"), default=None, help="Resample the mesh on a grid.")
    parser.add_argument("--margin", type=float, default=None, help="Allowed extrapolation margin for --grid.")
    parser.add_argument("--mirror-right-eye", action="store_true", help="Also emit a mirrored right eye.")
    parser.add_argument("--verbose", "-v", action="store_true")
    return parser


def config_from_args(args: argparse.Namespace) -> Config:
    config = load_config(args.config) if args.config is not None else Config()
    changes: dict = {}
    if args.lonlat:
        changes["use_field_angles"] = False
    if args.depth is not None:
        changes["depth"] = float(args.depth)
    if args.to_meters is not None:
        changes["to_meters"] = float(args.to_meters)
    if args.screen_bounds is not None:
        left, right, top, bottom = args.screen_bounds
        bounds = RectBounds(left=left, right=right, top=top, bottom=bottom)
        if bounds.width == 0 or bounds.height == 0:
            raise ConfigValidationError(f"--screen-bounds must have non-zero width and height, got {bounds}")
        changes["compute_screen_bounds"] = False
        changes["supplied_screen_bounds"] = bounds
    if args.reflect_bounds:
        if changes.get("supplied_screen_bounds", config.supplied_screen_bounds) is None:
            raise ConfigValidationError("--reflect-bounds requires --screen-bounds")
        changes["reflect_screen_x"] = True
    if args.verify_angles is not None:
        xx, xy, yx, yy, max_diff = args.verify_angles
        changes["verify_angles"] = True
        changes["angle_axes"] = (xx, xy, yx, yy)
        changes["max_angle_diff_deg"] = float(max_diff)
    if args.overlap is not None:
        changes["overlap_percent"] = float(args.overlap)
    if args.grid is not None:
        changes["mesh_grid"] = (int(args.grid[0]), int(args.grid[1]))
    if args.margin is not None:
        changes["coverage_margin"] = float(args.margin)
    if args.verbose:
        changes["verbose"] = True
    return dataclasses.replace(config, **changes)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = config_from_args(args)
    except ScreenwarpError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=logging.DEBUG if config.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        inputs = load_measurements(args.measurements)
        result = process_screen(inputs, config)
    except ScreenwarpError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    for finding in result.findings:
        print(f"{finding.origin}: {finding.message}", file=sys.stderr)

    out = save_display_config(args.out, result.projection, result.mesh, mirror_right_eye=args.mirror_right_eye)
    print(f"Wrote {out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
