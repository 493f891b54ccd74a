#!/usr/bin/env python3
"""
Split-flow CLI

Usage modes:
- Default run: load a route file, lay out flows, print a record summary or write JSON
- Validation: check the route pairs up and weights are usable
- Export: write the rendered diagram (optionally with particles) as SVG
- Utility: list sample routes, show version
"""

from __future__ import annotations

import argparse
import json
import logging
import random
import sys
from glob import glob
from pathlib import Path
from typing import Any, Dict, List

import yaml

from splitflow_core.config import FlowConfig, config_from_dict, load_config
from splitflow_core.errors import FlowInputError
from splitflow_core.inputs import load_route_file
from splitflow_core.layout import validate_flow_shape
from splitflow_core.visualization import FlowVisualization
from viz.utils import scene_to_svg


def parse_args(argv: List[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        description="Lay out a split route as a flow diagram and dump records/SVG",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    # Utilities / meta
    p.add_argument("--version", action="store_true", help="Print version and exit")
    p.add_argument("-v", "--verbose", action="count", default=0, help="Increase verbosity (-v, -vv)")
    p.add_argument("--list-routes", action="store_true", help="List bundled sample route files and exit")

    # Primary input
    p.add_argument("route", nargs="?", help="Path to YAML/JSON route (e.g., scripts/sample_route.yaml)")
    p.add_argument("--config", type=str, default="", help="YAML file with FlowConfig overrides")

    # Config overrides
    p.add_argument("--width", type=float, default=None, help="Canvas width")
    p.add_argument("--height", type=float, default=None, help="Canvas height")
    p.add_argument("--chain-id", type=int, default=None, help="Chain id used in explorer links")
    p.add_argument("--seed", type=int, default=0, help="Seed for particle spawning")

    # Output
    p.add_argument("--validate", action="store_true", help="Only validate the route")
    p.add_argument("--svg", type=str, default="", help="Write the diagram as SVG to this path")
    p.add_argument("--particles-ticks", type=int, default=0, help="Simulate N spawn ticks before exporting SVG")
    p.add_argument("--hover", type=int, default=None, help="Highlight this flow index in the output")
    p.add_argument("--out", type=str, default="", help="Optional output JSON file path")

    return p.parse_args(argv)


def build_config(args: argparse.Namespace) -> FlowConfig:
    cfg = load_config(args.config) if args.config else FlowConfig()
    overrides: Dict[str, Any] = {}
    if args.width is not None:
        overrides["width"] = float(args.width)
    if args.height is not None:
        overrides["height"] = float(args.height)
    if args.chain_id is not None:
        overrides["chain_id"] = int(args.chain_id)
    return config_from_dict(overrides, base=cfg) if overrides else cfg


def setup_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def find_sample_routes() -> List[str]:
    here = Path(__file__).resolve()
    repo_root = here.parent.parent
    candidates = []
    for base in [repo_root, here.parent]:
        candidates.extend(sorted(glob(str(base / "*_route.yaml"))))
        candidates.extend(sorted(glob(str(base / "scripts" / "*_route.yaml"))))
    seen = set()
    result = []
    for c in candidates:
        if c not in seen:
            seen.add(c)
            result.append(c)
    return result


def record_summary(viz: FlowVisualization) -> Dict[str, Any]:
    return {
        "root": viz.input.root_identifier if viz.input else "",
        "balance": viz.input.total_balance_display if viz.input else "0",
        "error": str(viz.last_error) if viz.last_error else None,
        "flows": [
            {
                "index": r.index,
                "recipient": r.identifier,
                "allocation": r.allocation,
                "percentage": round(r.percentage_of_total, 6),
                "thickness": round(r.band_thickness, 6),
                "target": [round(v, 3) for v in r.target_point],
            }
            for r in viz.records
        ],
    }


def main(argv: List[str] | None = None) -> int:
    from splitflow_core import __version__

    args = parse_args(argv)
    setup_logging(args.verbose)

    if args.version:
        print(__version__)
        return 0

    if args.list_routes:
        print(json.dumps(find_sample_routes(), indent=2))
        return 0

    if not args.route:
        print("error: missing route path (try --list-routes)", file=sys.stderr)
        return 2

    try:
        cfg = build_config(args)
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    logging.info("Loading route from %s", args.route)
    try:
        flow_input = load_route_file(args.route)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        print(f"error: could not load route {args.route}: {exc}", file=sys.stderr)
        return 2

    if args.validate:
        try:
            validate_flow_shape(flow_input.recipients, flow_input.allocations)
        except FlowInputError as exc:
            print(json.dumps({"valid": False, "error": str(exc)}, indent=2))
            return 1
        print(json.dumps({"valid": True, "flows": len(flow_input.recipients)}, indent=2))
        return 0

    viz = FlowVisualization(cfg, rng=random.Random(args.seed), animate=False)
    viz.update(flow_input)
    if args.hover is not None and 0 <= args.hover < len(viz.records):
        viz.pointer_enter(args.hover)

    if args.svg:
        frames = []
        if viz.particles is not None and args.particles_ticks > 0:
            now = 0.0
            for _ in range(args.particles_ticks):
                now += cfg.tick_interval_ms
                viz.particles.tick(now)
            frames = viz.particles.sample(now)
        logging.info("Writing SVG to %s (%d particles)", args.svg, len(frames))
        with open(args.svg, "w", encoding="utf-8") as f:
            f.write(scene_to_svg(viz.surface.elements, cfg.width, cfg.height, frames))

    summary = record_summary(viz)
    if args.out:
        with open(args.out, "w", encoding="utf-8") as f:
            json.dump(summary, f, indent=2)
    else:
        print(json.dumps(summary, indent=2))

    return 1 if viz.last_error else 0


if __name__ == "__main__":
    raise SystemExit(main())
