"""Square grid of per-cell height statistics used for landing site detection."""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np


class Grid:
    """Square grid of mean, variance, point count and landability per cell."""

    def __init__(self, grid_size: float, cell_size: float) -> None:
        self._corner_min = (0.0, 0.0)
        self._corner_max = (0.0, 0.0)
        self.resize(grid_size, cell_size)

    @property
    def grid_size(self) -> float:
        return self._grid_size

    @property
    def cell_size(self) -> float:
        return self._cell_size

    @property
    def row_col_size(self) -> int:
        return self._row_col_size

    def reset(self) -> None:
        """Zero every cell."""
        self.mean.fill(0.0)
        self.variance.fill(0.0)
        self.counter.fill(0)
        self.land.fill(0)

    def resize(self, grid_size: float, cell_size: float) -> None:
        """Change the dimensions of the grid and clear it."""
        if cell_size <= 0:
            raise ValueError("cell_size must be positive")
        if grid_size < 0:
            raise ValueError("grid_size must not be negative")
        self._grid_size = float(grid_size)
        self._cell_size = float(cell_size)
        self._row_col_size = math.ceil(self._grid_size / self._cell_size)
        shape = (self._row_col_size, self._row_col_size)
        self.mean = np.zeros(shape, dtype=np.float32)
        self.variance = np.zeros(shape, dtype=np.float32)
        self.counter = np.zeros(shape, dtype=np.int32)
        self.land = np.zeros(shape, dtype=np.int32)

    def _index(self, idx: Sequence[int]) -> tuple[int, int]:
        row, col = int(idx[0]), int(idx[1])
        n = self._row_col_size
        if not (0 <= row < n and 0 <= col < n):
            raise IndexError(f"grid index {(row, col)} outside a {n}x{n} grid")
        return row, col

    def set_mean(self, idx: Sequence[int], value: float) -> None:
        self.mean[self._index(idx)] = value

    def set_variance(self, idx: Sequence[int], value: float) -> None:
        self.variance[self._index(idx)] = value

    def increase_counter(self, idx: Sequence[int]) -> None:
        self.counter[self._index(idx)] += 1

    def set_counter(self, idx: Sequence[int], value: int) -> None:
        self.counter[self._index(idx)] = value

    def mean_at(self, idx: Sequence[int]) -> float:
        return float(self.mean[self._index(idx)])

    def variance_at(self, idx: Sequence[int]) -> float:
        return float(self.variance[self._index(idx)])

    def counter_at(self, idx: Sequence[int]) -> int:
        return int(self.counter[self._index(idx)])

    def set_filter_limits(self, pos: Sequence[float]) -> None:
        """Centre the grid's XY extent on the given position."""
        half = self._grid_size / 2.0
        self._corner_min = (pos[0] - half, pos[1] - half)
        self._corner_max = (pos[0] + half, pos[1] + half)

    def limits(self) -> tuple[tuple[float, float], tuple[float, float]]:
        """The (min, max) XY corners of the grid."""
        return self._corner_min, self._corner_max

    def combine(self, prev_grid: Grid, alpha: float) -> None:
        """Blend mean and variance with a previous grid, weighting it by alpha."""
        if prev_grid.mean.shape != self.mean.shape:
            raise ValueError("grids must have the same dimensions to be combined")
        self.mean = (alpha * prev_grid.mean + (1.0 - alpha) * self.mean).astype(np.float32)
        self.variance = (alpha * prev_grid.variance + (1.0 - alpha) * self.variance).astype(np.float32)