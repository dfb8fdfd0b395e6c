"""Mean and spread statistics for rasters and sliding windows.

Two spread rules are supported:

``"reference"``
    Accumulates ``sqrt(mean - s)`` over the samples ``s`` lying below the
    mean (samples at or above the mean contribute nothing) and returns
    ``sqrt(total / (n - 1))``. This is the dispersion rule of the original
    ImageJ plugin and is kept for score parity with it.

``"stdev"``
    The sample standard deviation ``sqrt(sum((mean - s) ** 2) / (n - 1))``.

Both rules return ``0.0`` for a single sample.
"""

from dataclasses import dataclass
from typing import Tuple

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from .raster import RasterLike, as_raster

SPREAD_MODES = ("reference", "stdev")


@dataclass(frozen=True)
class WindowStats:
    mean: float
    spread: float


def _check_mode(mode: str) -> None:
    if mode not in SPREAD_MODES:
        raise ValueError(f"unknown spread mode '{mode}', expected one of {SPREAD_MODES}")


def mean(raster: RasterLike) -> float:
    """Arithmetic mean over every sample of the raster."""
    data = as_raster(raster).data
    if data.size == 0:
        raise ValueError("mean of an empty raster")
    return float(data.sum(dtype=np.float64) / data.size)


def spread(mean_value: float, raster: RasterLike, mode: str = "reference") -> float:
    """Dispersion of the raster samples around ``mean_value``."""
    _check_mode(mode)
    data = as_raster(raster).data
    count = data.size
    if count == 0:
        raise ValueError("spread of an empty raster")
    if count == 1:
        return 0.0
    diff = mean_value - data.astype(np.float64)
    if mode == "reference":
        total = np.sqrt(diff[diff > 0.0]).sum()
    else:
        total = np.square(diff).sum()
    return float(np.sqrt(total / (count - 1)))


def window_stats(raster: RasterLike, mode: str = "reference") -> WindowStats:
    r = as_raster(raster)
    m = mean(r)
    return WindowStats(mean=m, spread=spread(m, r, mode))


def sliding_stats(
    data: np.ndarray, window: Tuple[int, int], mode: str = "reference"
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Statistics of every ``window`` (height, width) placement inside ``data``.

    Returns ``(windows, means, spreads)`` where ``windows`` is the strided
    ``(rows, cols, wh, ww)`` view over ``data`` and ``means``/``spreads`` are
    ``(rows, cols)`` arrays matching :func:`mean` and :func:`spread` applied
    to each window on its own.
    """
    _check_mode(mode)
    wh, ww = window
    values = np.asarray(data, dtype=np.float64)
    windows = sliding_window_view(values, (wh, ww))
    count = wh * ww
    means = windows.sum(axis=(2, 3)) / count
    if count == 1:
        return windows, means, np.zeros_like(means)

    diff = means[:, :, None, None] - windows
    if mode == "reference":
        contrib = np.sqrt(np.maximum(diff, 0.0))
    else:
        contrib = np.square(diff)
    spreads = np.sqrt(contrib.sum(axis=(2, 3)) / (count - 1))
    return windows, means, spreads


__all__ = [
    "SPREAD_MODES",
    "WindowStats",
    "mean",
    "spread",
    "window_stats",
    "sliding_stats",
]
