"""Baseline Mandelbrot implementation."""

from __future__ import annotations

from typing import Tuple

import numpy as np


def compute_mandelbrot(
    size: Tuple[int, int],
    lower_left: Tuple[float, float],
    upper_right: Tuple[float, float],
    max_iter: int,
) -> np.ndarray:
    """Compute the escape-time grid in plain Python, one pixel at a time."""
    width, height = size
    image = np.zeros((height, width), dtype=np.int32)

    fwidth = upper_right[0] - lower_left[0]
    fheight = upper_right[1] - lower_left[1]

    for y in range(height):
        imag = upper_right[1] - y * fheight / height
        for x in range(width):
            real = lower_left[0] + x * fwidth / width
            zr = zi = 0.0
            n = 0
            while n < max_iter and zr * zr + zi * zi <= 4.0:
                zr, zi = zr * zr - zi * zi + real, 2.0 * zr * zi + imag
                n += 1
            image[y, x] = max_iter - n

    return image
