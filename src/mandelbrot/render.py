"""Text renderings of a completed escape-time grid."""

from __future__ import annotations

import math
import sys
from typing import Optional, TextIO

import numpy as np

from .config import RunConfig

__all__ = [
    "PALETTE",
    "palette_index",
    "palette_indices",
    "render_ascii",
    "render_plot_data",
    "render",
    "write_image",
]

# ordered from inside the set to fastest escape
PALETTE = "MW2a_. "


def palette_index(value: int, max_iter: int) -> int:
    """Scale an escape-time value into an index of ``PALETTE``."""
    if max_iter <= 0:
        return 0
    idx = math.floor(value / max_iter * (len(PALETTE) - 1))
    return min(max(idx, 0), len(PALETTE) - 1)


def palette_indices(image: np.ndarray, max_iter: int) -> np.ndarray:
    """Vectorised ``palette_index`` over a whole grid."""
    if max_iter <= 0:
        return np.zeros(image.shape, dtype=np.intp)
    scaled = np.floor(image / max_iter * (len(PALETTE) - 1))
    return np.clip(scaled, 0, len(PALETTE) - 1).astype(np.intp)


def render_ascii(image: np.ndarray, max_iter: int) -> str:
    """One symbol per pixel, row 0 first."""
    symbols = np.array(list(PALETTE))[palette_indices(image, max_iter)]
    return "".join("".join(row) + "\n" for row in symbols)


def render_plot_data(image: np.ndarray) -> str:
    """Comma separated integers, last grid row first for the plotting tool."""
    return "".join(", ".join(map(str, row)) + "\n" for row in image[::-1].tolist())


def render(image: np.ndarray, config: RunConfig) -> str:
    if config.png:
        return render_plot_data(image)
    return render_ascii(image, config.max_iter)


def write_image(image: np.ndarray, config: RunConfig, stream: Optional[TextIO] = None) -> None:
    stream = stream if stream is not None else sys.stdout
    stream.write(render(image, config))
    stream.flush()
