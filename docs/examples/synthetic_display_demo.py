"""
Synthetic display demo.

It does:
1) build measurements for a slightly bent screen seen by one eye,
2) fit the screen and generate a resampled distortion mesh,
3) print the projection, the largest mesh correction and any findings,
4) optionally write the display configuration JSON.
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path

import numpy as np

from screenwarp import Config, InputMeasurement, InputMeasurements, process_screen
from screenwarp.io import save_display_config


def synthetic_measurements(n: int, bend: float, noise_deg: float, seed: int) -> InputMeasurements:
    rng = np.random.default_rng(seed)
    rows = []
    line = 1
    for sy in np.linspace(0.0, 1.0, n):
        for sx in np.linspace(0.0, 1.0, n):
            # Flat screen 1.5 units away, 45x30 degrees, with a barrel-like bend in x.
            x = (sx - 0.45) * 1.2
            y = (sy - 0.5) * 0.8
            x *= 1.0 + bend * (y * y)
            h = np.degrees(np.arctan2(x, 1.5)) + rng.normal(scale=noise_deg)
            v = np.degrees(np.arctan2(y, 1.5)) + rng.normal(scale=noise_deg)
            rows.append(InputMeasurement(screen=(1920.0 * sx, 1080.0 * sy), angles_deg=(h, v), line=line))
            line += 1
    return InputMeasurements(source="synthetic", measurements=tuple(rows))


def main() -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("--n", type=int, default=7)
    parser.add_argument("--bend", type=float, default=0.3)
    parser.add_argument("--noise-deg", type=float, default=0.05)
    parser.add_argument("--seed", type=int, default=0)
    parser.add_argument("--grid", type=int, nargs=2, default=(9, 7))
    parser.add_argument("--out", type=Path, default=None)
    args = parser.parse_args()

    inputs = synthetic_measurements(args.n, args.bend, args.noise_deg, args.seed)
    config = Config(verify_angles=True, max_angle_diff_deg=1.0, mesh_grid=tuple(args.grid))
    result = process_screen(inputs, config)

    mesh = result.mesh.as_array()
    correction = np.linalg.norm(mesh[:, 1] - mesh[:, 0], axis=1)
    summary = {
        "h_fov_deg": result.projection.h_fov_deg,
        "v_fov_deg": result.projection.v_fov_deg,
        "cop": list(result.projection.cop),
        "mesh_rows": len(result.mesh),
        "max_correction": float(np.max(correction)),
        "findings": [f"{f.origin}: {f.message}" for f in result.findings],
    }
    print(json.dumps(summary, indent=2))

    if args.out is not None:
        save_display_config(args.out, result.projection, result.mesh)
        print(f"Wrote {args.out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
