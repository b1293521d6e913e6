"""Mandelbrot escape-time renderer with a row-parallel thread pool."""

__version__ = "2.0.0"

# Core computation and config - lightweight, no threads involved
from .computation import compute_image, compute_rows, escape_time, pixel_to_complex
from .config import ConfigError, RunConfig, default_run_config
from .render import render_ascii, render_plot_data
from .report import ChunkReport


# Conditional imports - only loaded when needed
def __getattr__(name):
    """Lazy loading of execution modules."""
    if name in {"run_computation", "run_threaded_computation", "run_sequential_computation"}:
        from . import threads

        return getattr(threads, name)
    elif name == "load_sweep_configs":
        from .config import load_sweep_configs

        return load_sweep_configs
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "RunConfig",
    "ConfigError",
    "default_run_config",
    "escape_time",
    "pixel_to_complex",
    "compute_rows",
    "compute_image",
    "render_ascii",
    "render_plot_data",
    "run_computation",
    "run_threaded_computation",
    "run_sequential_computation",
    "ChunkReport",
    "load_sweep_configs",
]
