"""Thread-pool execution of the row kernel."""

from __future__ import annotations

import sys
import threading
import time
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

import numpy as np

from .computation import allocate_image, compute_rows
from .config import RunConfig
from .report import ChunkReport
from .scheduling import DynamicScheduler, RowCursor, RowRange, StaticScheduler

__all__ = ["run_computation", "run_threaded_computation", "run_sequential_computation"]

WorkerResult = Tuple[Dict[str, float], List[Dict[str, Any]]]


def _init_worker_stats() -> Dict[str, float]:
    return {
        "comp": 0.0,
        "chunks": 0.0,
        "rows": 0.0,
    }


def _worker_log(worker: int, message: str) -> None:
    """Emit a progress message from a given worker thread."""
    print(f"[Worker {worker}] {message}", file=sys.stderr, flush=True)


def _compute_rows_timed(
    config: RunConfig,
    image: np.ndarray,
    start: int,
    end: int,
) -> float:
    comp_start = time.perf_counter()
    compute_rows(config, image, start, end)
    return time.perf_counter() - comp_start


def _chunk_record(worker: int, chunk_id: int, start: int, end: int, comp_time: float) -> Dict:
    """Create a uniform chunk metadata record (``end_row`` is exclusive)."""
    return {
        "worker": worker,
        "chunk_id": int(chunk_id),
        "start_row": int(start),
        "end_row": int(end),
        "comp_time": comp_time,
    }


def _process_claims(
    worker: int,
    config: RunConfig,
    image: np.ndarray,
    claims: Iterable[RowRange],
    tag: str,
    verbose: bool,
) -> WorkerResult:
    stats = _init_worker_stats()
    records: List[Dict[str, Any]] = []
    for start, end in claims:
        comp = _compute_rows_timed(config, image, start, end)
        chunk_id = start // config.chunk_size
        if verbose:
            _worker_log(worker, f"Computing chunk {chunk_id} (rows {start}:{end}) took {comp:.4f}s [{tag}]")
        stats["comp"] += comp
        stats["chunks"] += 1
        stats["rows"] += end - start
        records.append(_chunk_record(worker, chunk_id, start, end, comp))
    return stats, records


def _iter_dynamic_claims(scheduler: DynamicScheduler) -> Iterable[RowRange]:
    while True:
        rows = scheduler.request_rows()
        if rows is None:
            return
        yield rows


def run_computation(config: RunConfig, *, verbose: bool = False) -> ChunkReport:
    """Compute the escape-time grid using the configured schedule."""
    if config.schedule == "sequential":
        return run_sequential_computation(config, verbose=verbose)
    return run_threaded_computation(config, verbose=verbose)


def run_sequential_computation(config: RunConfig, *, verbose: bool = False) -> ChunkReport:
    """Compute every row in the calling thread."""
    start_time = time.perf_counter()
    image = allocate_image(config)
    stats, records = _process_claims(
        0, config, image, [(0, config.height)], "sequential", verbose
    )
    total_time = time.perf_counter() - start_time
    return ChunkReport(image, _aggregate_timing([stats], total_time), records)


def run_threaded_computation(
    config: RunConfig,
    *,
    verbose: bool = False,
    cursor: Optional[RowCursor] = None,
) -> ChunkReport:
    """Fan the rows out over ``config.threads`` workers sharing one grid.

    Every worker is joined before the grid is returned. If a worker raises,
    it stops claiming rows and the first such exception is re-raised once
    all workers have finished.
    """
    start_time = time.perf_counter()
    image = allocate_image(config)
    n_workers = config.threads

    if config.schedule == "static":
        static = StaticScheduler(config.height, config.chunk_size, n_workers)

        def claims_for(worker: int) -> Iterable[RowRange]:
            return static.rows_for_worker(worker)

        tag = "static"
    else:
        dynamic = DynamicScheduler(config.height, config.chunk_size, cursor or RowCursor())

        def claims_for(worker: int) -> Iterable[RowRange]:
            return _iter_dynamic_claims(dynamic)

        tag = "dynamic"

    results: List[Optional[WorkerResult]] = [None] * n_workers
    errors: List[Optional[BaseException]] = [None] * n_workers

    def target(worker: int) -> None:
        try:
            results[worker] = _process_claims(worker, config, image, claims_for(worker), tag, verbose)
        except Exception as exc:
            errors[worker] = exc

    workers = _start_workers(target, n_workers)
    for thread in workers:
        thread.join()

    for worker, exc in enumerate(errors):
        if exc is not None:
            raise RuntimeError(f"Worker {worker} failed") from exc

    total_time = time.perf_counter() - start_time
    all_stats = [result[0] for result in results]
    chunk_records = [record for result in results for record in result[1]]
    return ChunkReport(image, _aggregate_timing(all_stats, total_time), chunk_records)


def _start_workers(target: Callable[[int], None], n_workers: int) -> List[threading.Thread]:
    threads = [
        threading.Thread(target=target, args=(worker,), name=f"mandelbrot-worker-{worker}")
        for worker in range(n_workers)
    ]
    for thread in threads:
        thread.start()
    return threads


def _aggregate_timing(all_stats: List[Dict[str, float]], total_time: float) -> Dict:
    """Aggregate wall-clock timing plus per-worker statistics."""
    worker_stats: List[Dict[str, float]] = []
    comp_total = 0.0
    total_chunks = 0

    for worker, stats in enumerate(all_stats):
        comp = float(stats.get("comp", 0.0))
        chunks = int(stats.get("chunks", 0))
        worker_stats.append(
            {
                "worker": int(worker),
                "comp_time": comp,
                "chunks": chunks,
                "rows": int(stats.get("rows", 0)),
            }
        )
        comp_total += comp
        total_chunks += chunks

    return {
        "wall_time": float(total_time),
        "comp_total": comp_total,
        "total_chunks": total_chunks,
        "worker_stats": worker_stats,
    }
