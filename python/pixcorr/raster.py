"""Row-major 2-D rasters of numeric samples."""

from typing import Sequence, Union

import numpy as np


class Raster:
    """A 2-D grid of numeric samples backed by a numpy array.

    Samples are addressed as ``raster[x, y]``; the flat ``samples`` buffer is
    row-major, so sample ``(x, y)`` sits at index ``x + y * width``. The
    underlying array is marked read-only so a raster cannot change while a
    match is running.
    """

    __slots__ = ("_data",)

    def __init__(self, data):
        arr = np.array(data, copy=True)
        if arr.ndim != 2:
            raise ValueError(f"raster data must be 2-D, got {arr.ndim}-D")
        if not (np.issubdtype(arr.dtype, np.integer) or np.issubdtype(arr.dtype, np.floating)):
            raise ValueError(f"raster samples must be real numbers, got {arr.dtype}")
        arr.setflags(write=False)
        self._data = arr

    @classmethod
    def from_buffer(cls, width: int, height: int, samples: Sequence) -> "Raster":
        """Build a raster from a flat row-major sample buffer."""
        if width < 0 or height < 0:
            raise ValueError(f"negative raster size {width}x{height}")
        flat = np.asarray(samples)
        if flat.ndim != 1 or flat.size != width * height:
            raise ValueError(
                f"expected {width * height} samples for a {width}x{height} raster, "
                f"got {flat.size}"
            )
        return cls(flat.reshape(height, width))

    @property
    def width(self) -> int:
        return self._data.shape[1]

    @property
    def height(self) -> int:
        return self._data.shape[0]

    @property
    def size(self) -> int:
        return self._data.size

    @property
    def shape(self):
        """``(width, height)``."""
        return self.width, self.height

    @property
    def dtype(self):
        return self._data.dtype

    @property
    def data(self) -> np.ndarray:
        """Read-only ``(height, width)`` view of the samples."""
        return self._data

    @property
    def samples(self) -> np.ndarray:
        return self._data.ravel().copy()

    def is_empty(self) -> bool:
        return self._data.size == 0

    def __getitem__(self, xy):
        x, y = xy
        return self._data[y, x]

    def crop(self, x: int, y: int, width: int, height: int) -> "Raster":
        """Copy the ``width`` x ``height`` region anchored at ``(x, y)``."""
        if x < 0 or y < 0 or width < 0 or height < 0:
            raise ValueError(f"invalid crop ({x}, {y}, {width}, {height})")
        if x + width > self.width or y + height > self.height:
            raise ValueError(
                f"crop ({x}, {y}, {width}, {height}) exceeds raster "
                f"{self.width}x{self.height}"
            )
        return Raster(self._data[y : y + height, x : x + width])

    def to_array(self) -> np.ndarray:
        return self._data.copy()

    def __eq__(self, other):
        if not isinstance(other, Raster):
            return NotImplemented
        return self._data.shape == other._data.shape and bool(
            np.array_equal(self._data, other._data)
        )

    __hash__ = None

    def __repr__(self):
        return f"Raster(width={self.width}, height={self.height}, dtype={self.dtype})"


RasterLike = Union[Raster, np.ndarray, Sequence[Sequence[float]]]


def as_raster(obj: RasterLike) -> Raster:
    if isinstance(obj, Raster):
        return obj
    return Raster(obj)
