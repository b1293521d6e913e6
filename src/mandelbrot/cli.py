from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from .config import ConfigError, load_config_file, load_named_sweep_configs, parse_params
from .execution import run_single_experiment, run_sweep

EPILOG = """\
parameters (key=value):
  width, height        image size in characters/pixels (100, 75)
  png                  1 for plot-data output, 0 for ASCII art (0)
  ll_x, ll_y           lower-left corner of the viewport (-1.2, 0.20)
  ur_x, ur_y           upper-right corner of the viewport (-1.0, 0.35)
  max_iter             iteration cap (255)
  threads              worker threads (9)
  chunk_size           rows claimed per step (1)
  schedule             dynamic, static or sequential (dynamic)

examples:
  mandelbrot width=120 ll_x=-0.75 ll_y=0.1 ur_x=-0.74 ur_y=0.11
  mandelbrot png=1 width=800 height=600 > mandelbrot.dat
"""


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Render the Mandelbrot set as ASCII art or plot data.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("params", nargs="*", metavar="key=value", help="Run parameter override")
    parser.add_argument("--config", type=str, help="YAML file with run parameters")
    parser.add_argument("--sweep", type=str, help="Path to sweep YAML file")
    parser.add_argument("--suite", type=str, help="Name of suite/experiment within sweep file")
    parser.add_argument("--list-suites", action="store_true", help="List suites in sweep file")
    parser.add_argument("--task-id", type=int, help="Run a single config index of the sweep")
    parser.add_argument("-v", "--verbose", action="store_true", help="Report worker progress on stderr")
    args, unknown = parser.parse_known_intermixed_args(argv)
    for arg in unknown:
        print(f"Warning: Ignoring invalid argument '{arg}'", file=sys.stderr)
    return args


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    if args.sweep:
        return _main_sweep(args)

    if args.suite or args.list_suites or args.task_id is not None:
        print("ERROR: --suite, --list-suites and --task-id require --sweep", file=sys.stderr)
        return 2

    try:
        base = load_config_file(args.config) if args.config else None
        config = parse_params(args.params, base).validate()
    except ConfigError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2

    try:
        run_single_experiment(config, verbose=args.verbose)
    except MemoryError as exc:
        print(f"ERROR: Failed to allocate result grid: {exc}", file=sys.stderr)
        return 1
    return 0


def _main_sweep(args: argparse.Namespace) -> int:
    sweep_path = Path(args.sweep)
    try:
        suites = load_named_sweep_configs(sweep_path, args.suite)
    except ConfigError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2

    if args.list_suites:
        for name, configs in suites:
            print(f"{name}: {len(configs)} configurations")
        return 0

    if args.task_id is not None and len(suites) != 1:
        print("ERROR: --task-id requires --suite", file=sys.stderr)
        return 2

    exit_code = 0
    for suite_name, configs in suites:
        descriptor = f"{sweep_path}::{suite_name}"
        rc = run_sweep(configs, descriptor, args.task_id)
        exit_code = exit_code or rc
    return exit_code
