"""Execution helpers for Mandelbrot CLI workflows."""

from __future__ import annotations

import sys
from typing import List, Optional, TextIO

from .config import RunConfig
from .render import write_image
from .report import ChunkReport
from .threads import run_computation


def run_single_experiment(
    config: RunConfig,
    *,
    stream: Optional[TextIO] = None,
    verbose: bool = False,
) -> ChunkReport:
    """Compute one image and write its rendering to ``stream`` (stdout)."""
    if verbose:
        print(
            f"[Run] Starting computation '{config.run_name}' "
            f"(threads={config.threads}, schedule={config.schedule}, "
            f"chunk_size={config.chunk_size}, chunks={config.total_chunks})",
            file=sys.stderr,
            flush=True,
        )

    report = run_computation(config, verbose=verbose)
    write_image(report.image, config, stream)

    if verbose:
        print(f"[Timing] Total: {report.wall_time:.4f}s", file=sys.stderr)
    return report


def run_sweep(
    configs: List[RunConfig],
    descriptor: str = "sweep",
    task_id: Optional[int] = None,
    stream: Optional[TextIO] = None,
) -> int:
    """Time every configuration of a sweep without rendering the images."""
    out = stream if stream is not None else sys.stdout

    if not configs:
        print("ERROR: No configurations found in sweep", file=sys.stderr)
        return 1

    if task_id is not None:
        if task_id < 0 or task_id >= len(configs):
            print(f"ERROR: task-id {task_id} out of range [0, {len(configs) - 1}]", file=sys.stderr)
            return 1
        config = configs[task_id]
        print(f"[Task {task_id}] Running: {config.run_name}", file=out)
        return 0 if _run_timed(config, task_id, len(configs), out) else 1

    print("=" * 70, file=out)
    print(f"Running {len(configs)} configurations from {descriptor}", file=out)
    print("=" * 70, file=out)

    failures: list[tuple[int, str]] = []
    for idx, cfg in enumerate(configs):
        if not _run_timed(cfg, idx, len(configs), out):
            failures.append((idx, cfg.run_name))

    print("\n" + "=" * 70, file=out)
    print("Summary", file=out)
    print("=" * 70, file=out)
    print(f"Total:      {len(configs)}", file=out)
    print(f"Successful: {len(configs) - len(failures)}", file=out)
    print(f"Failed:     {len(failures)}", file=out)

    if failures:
        print("\nFailed configurations:", file=out)
        for idx, name in failures:
            print(f"  [{idx}] {name}", file=out)
        return 1

    return 0


def _run_timed(config: RunConfig, config_idx: int, total_configs: int, out: TextIO) -> bool:
    print(f"\n[{config_idx + 1}/{total_configs}] {config.run_name}", file=out)
    try:
        config.validate()
        report = run_computation(config)
    except (ValueError, MemoryError, RuntimeError) as exc:
        print(f"    FAILED: {exc}", file=sys.stderr)
        return False

    timing = report.timing
    busiest = max((w["comp_time"] for w in timing["worker_stats"]), default=0.0)
    print(
        f"    wall={timing['wall_time']:.4f}s comp={timing['comp_total']:.4f}s "
        f"max_worker={busiest:.4f}s chunks={timing['total_chunks']}",
        file=out,
    )
    return True
