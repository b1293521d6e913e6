from __future__ import annotations

from typing import Tuple

import numpy as np
from numba import njit

from .config import RunConfig

__all__ = [
    "escape_time",
    "pixel_to_complex",
    "allocate_image",
    "compute_rows",
    "compute_image",
]


@njit(nogil=True)
def escape_time(cr: float, ci: float, max_iter: int) -> int:
    """Return the iterations left when the orbit of ``c`` escapes.

    Points that never leave the radius-2 disc within ``max_iter`` steps
    yield 0; a point that escapes on the first test yields ``max_iter``.
    """
    zr = 0.0
    zi = 0.0
    n = 0
    while n < max_iter:
        zr2 = zr * zr
        zi2 = zi * zi
        if zr2 + zi2 > 4.0:
            break
        zi = 2.0 * zr * zi + ci
        zr = zr2 - zi2 + cr
        n += 1
    return max_iter - n


@njit(nogil=True)
def pixel_to_complex(
    x: int,
    y: int,
    width: int,
    height: int,
    ll_x: float,
    ll_y: float,
    ur_x: float,
    ur_y: float,
) -> Tuple[float, float]:
    # row 0 is the top edge, imag decreases downwards
    real = ll_x + x * (ur_x - ll_x) / width
    imag = ur_y - y * (ur_y - ll_y) / height
    return real, imag


@njit(nogil=True)
def _compute_rows(
    image: np.ndarray,
    start_row: int,
    end_row: int,
    ll_x: float,
    ll_y: float,
    ur_x: float,
    ur_y: float,
    max_iter: int,
) -> None:
    height, width = image.shape
    for y in range(start_row, end_row):
        for x in range(width):
            cr, ci = pixel_to_complex(x, y, width, height, ll_x, ll_y, ur_x, ur_y)
            image[y, x] = escape_time(cr, ci, max_iter)


def allocate_image(config: RunConfig) -> np.ndarray:
    try:
        return np.zeros((config.height, config.width), dtype=np.int32)
    except ValueError as exc:
        # numpy reports impossible sizes as ValueError
        raise MemoryError(str(exc)) from exc


def compute_rows(config: RunConfig, image: np.ndarray, start_row: int, end_row: int) -> None:
    """Fill ``image[start_row:end_row]`` in place without holding the GIL."""
    _compute_rows(
        image,
        int(start_row),
        int(end_row),
        float(config.ll_x),
        float(config.ll_y),
        float(config.ur_x),
        float(config.ur_y),
        int(config.max_iter),
    )


def compute_image(config: RunConfig) -> np.ndarray:
    image = allocate_image(config)
    compute_rows(config, image, 0, config.height)
    return image
