"""Histogram grid over CV space with under/overflow bins.

The grid keeps one extra bin below and above every dimension. Interior bins
are indexed ``0..n_k-1``; the underflow bin is ``-1`` and the overflow bin is
``n_k``. Flat indices enumerate the full storage (over/underflow included)
with dimension 0 varying fastest.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Sequence, Tuple

import numpy as np

from basisfes.config import GridConfig


@dataclass(frozen=True)
class GridPoint:
    """One bin visited by :meth:`HistogramGrid.__iter__`."""

    flat_index: int
    indices: Tuple[int, ...]
    coordinates: Tuple[float, ...]
    is_under_overflow: bool

    def index(self, dim: int) -> int:
        return self.indices[dim]

    def coordinate(self, dim: int) -> float:
        return self.coordinates[dim]


class HistogramGrid:
    """D-dimensional integer histogram on a regular grid."""

    def __init__(
        self,
        lower: Sequence[float],
        upper: Sequence[float],
        num_points: Sequence[int],
        periodic: Sequence[bool] | None = None,
    ) -> None:
        self._lower = np.asarray(lower, dtype=float).reshape(-1)
        self._upper = np.asarray(upper, dtype=float).reshape(-1)
        self._num_points = np.asarray(num_points, dtype=int).reshape(-1)
        if periodic is None:
            periodic = [False] * self._lower.size
        self._periodic = np.asarray(periodic, dtype=bool).reshape(-1)
        sizes = {self._lower.size, self._upper.size, self._num_points.size, self._periodic.size}
        if len(sizes) != 1 or self._lower.size == 0:
            raise ValueError("lower, upper, num_points and periodic must share one length")
        if np.any(self._num_points <= 0):
            raise ValueError("num_points must be positive")
        if np.any(self._upper <= self._lower):
            raise ValueError("upper must exceed lower in every dimension")
        self._spacing = (self._upper - self._lower) / self._num_points
        self._shape = tuple(int(n) + 2 for n in self._num_points)
        self._counts = np.zeros(self._shape, dtype=np.int64, order="F")

    @classmethod
    def from_config(cls, grid: GridConfig) -> "HistogramGrid":
        return cls(grid.lower, grid.upper, grid.num_points, grid.periodic)

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------
    def dimension(self) -> int:
        return int(self._lower.size)

    def num_points(self, dim: int) -> int:
        return int(self._num_points[dim])

    def lower(self, dim: int) -> float:
        return float(self._lower[dim])

    def upper(self, dim: int) -> float:
        return float(self._upper[dim])

    def periodic(self, dim: int) -> bool:
        return bool(self._periodic[dim])

    def size(self) -> int:
        """Number of storage slots, including under/overflow bins."""
        return int(self._counts.size)

    @property
    def shape(self) -> Tuple[int, ...]:
        return self._shape

    def flat_index(self, indices: Sequence[int]) -> int:
        shifted = tuple(int(i) + 1 for i in indices)
        return int(np.ravel_multi_index(shifted, self._shape, order="F"))

    def bin_centers(self, dim: int) -> np.ndarray:
        n = self.num_points(dim)
        return self._lower[dim] + (np.arange(n) + 0.5) * self._spacing[dim]

    # ------------------------------------------------------------------
    # Binning
    # ------------------------------------------------------------------
    def indices(self, values: Sequence[float]) -> Tuple[int, ...]:
        """Map a CV vector to per-dimension bin indices.

        Periodic values are wrapped into ``[lower, upper)``. A non-periodic
        value exactly on the upper edge lands in the last interior bin;
        values outside map to ``-1`` (underflow) or ``n`` (overflow).
        """
        x = np.asarray(values, dtype=float).reshape(-1)
        if x.size != self.dimension():
            raise ValueError(
                f"Expected a CV vector of length {self.dimension()}, got {x.size}"
            )
        out = []
        for k in range(x.size):
            lo, hi, n = self._lower[k], self._upper[k], int(self._num_points[k])
            val = x[k]
            if self._periodic[k]:
                val = lo + np.mod(val - lo, hi - lo)
            if val == hi:
                idx = n - 1
            else:
                idx = int(np.floor((val - lo) / self._spacing[k]))
                idx = min(max(idx, -1), n)
            out.append(idx)
        return tuple(out)

    def interior_indices(self, values: Sequence[float]) -> Tuple[int, ...]:
        """Like :meth:`indices` but clamped to the interior bins."""
        return tuple(
            min(max(i, 0), self.num_points(k) - 1)
            for k, i in enumerate(self.indices(values))
        )

    def increment(self, values: Sequence[float], amount: int = 1) -> None:
        """Add ``amount`` visits to the bin containing ``values``."""
        shifted = tuple(i + 1 for i in self.indices(values))
        self._counts[shifted] += amount

    def at(self, values: Sequence[float]) -> int:
        shifted = tuple(i + 1 for i in self.indices(values))
        return int(self._counts[shifted])

    # ------------------------------------------------------------------
    # Bulk access
    # ------------------------------------------------------------------
    @property
    def data(self) -> np.ndarray:
        """Flat view of the counts in flat-index order (dimension 0 fastest)."""
        return self._counts.reshape(-1, order="F")

    @data.setter
    def data(self, values: np.ndarray) -> None:
        arr = np.asarray(values).reshape(-1)
        if arr.size != self.size():
            raise ValueError(f"Expected {self.size()} values, got {arr.size}")
        self._counts[...] = arr.reshape(self._shape, order="F")

    def interior_mask(self) -> np.ndarray:
        """Flat boolean mask that is ``True`` for interior bins."""
        mask = np.zeros(self._shape, dtype=bool, order="F")
        mask[tuple(slice(1, -1) for _ in self._shape)] = True
        return mask.reshape(-1, order="F")

    def interior_flat_indices(self) -> np.ndarray:
        return np.flatnonzero(self.interior_mask())

    def interior_multi_indices(self) -> np.ndarray:
        """Per-dimension interior bin indices, shape ``(n_interior, D)``.

        Rows follow flat-index order, matching :meth:`interior_flat_indices`.
        """
        flat = self.interior_flat_indices()
        unravelled = np.unravel_index(flat, self._shape, order="F")
        return np.stack(unravelled, axis=1) - 1

    def reset(self) -> None:
        self._counts[...] = 0

    def copy(self) -> "HistogramGrid":
        clone = HistogramGrid(self._lower, self._upper, self._num_points, self._periodic)
        clone._counts[...] = self._counts
        return clone

    def __iter__(self) -> Iterator[GridPoint]:
        for flat in range(self.size()):
            shifted = np.unravel_index(flat, self._shape, order="F")
            idx = tuple(int(s) - 1 for s in shifted)
            under_over = any(
                i < 0 or i >= self.num_points(k) for k, i in enumerate(idx)
            )
            coords = tuple(
                float(self._lower[k] + (i + 0.5) * self._spacing[k])
                for k, i in enumerate(idx)
            )
            yield GridPoint(flat, idx, coords, under_over)
