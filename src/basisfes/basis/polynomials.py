"""Legendre polynomial lookup tables sampled on the histogram bins.

Each CV dimension ``k`` gets a :class:`BasisLUT` holding the values and first
derivatives of ``P_0 .. P_{p_k}`` at every bin. Bin ``i`` of ``n`` is mapped
to the internal coordinate ``x_i = (2i + 1) / n - 1`` in ``(-1, 1)``.
Tables are stored flat as ``values[bin + order * n]`` to match the layout
used by restart files and older analysis scripts.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

import numpy as np


def internal_coordinates(num_points: int) -> np.ndarray:
    """Map bin indices ``0..n-1`` to ``(2i + 1) / n - 1``."""
    if num_points <= 0:
        raise ValueError("num_points must be positive")
    i = np.arange(num_points, dtype=float)
    return (2.0 * i + 1.0) / num_points - 1.0


def legendre_table(order: int, x: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Return ``(values, derivs)`` of shape ``(order + 1, len(x))``.

    Uses Bonnet's recursion for the values and its derivative for the
    slopes, seeded with ``P_0 = 1`` and ``P_1 = x``.
    """
    if order < 0:
        raise ValueError("order must be non-negative")
    x = np.asarray(x, dtype=float)
    vals = np.zeros((order + 1, x.size), dtype=float)
    dervs = np.zeros((order + 1, x.size), dtype=float)
    vals[0] = 1.0
    if order >= 1:
        vals[1] = x
        dervs[1] = 1.0
    for j in range(2, order + 1):
        vals[j] = ((2.0 * j - 1.0) * x * vals[j - 1] - (j - 1.0) * vals[j - 2]) / j
        dervs[j] = (
            (2.0 * j - 1.0) * (vals[j - 1] + x * dervs[j - 1])
            - (j - 1.0) * dervs[j - 2]
        ) / j
    return vals, dervs


@dataclass(frozen=True)
class BasisLUT:
    """Basis values and derivatives for one CV dimension."""

    values: np.ndarray
    derivs: np.ndarray
    num_points: int
    order: int

    def value(self, bin_index: int, order: int) -> float:
        return float(self.values[bin_index + order * self.num_points])

    def deriv(self, bin_index: int, order: int) -> float:
        return float(self.derivs[bin_index + order * self.num_points])

    def value_matrix(self) -> np.ndarray:
        """Values reshaped to ``(order + 1, num_points)``."""
        return self.values.reshape(self.order + 1, self.num_points)

    def deriv_matrix(self) -> np.ndarray:
        return self.derivs.reshape(self.order + 1, self.num_points)


class PolynomialTable:
    """Per-dimension Legendre lookup tables for the whole CV space."""

    def __init__(self, orders: Sequence[int], num_points: Sequence[int]) -> None:
        if len(orders) != len(num_points):
            raise ValueError(
                f"Got {len(orders)} polynomial orders for {len(num_points)} dimensions"
            )
        self.orders = tuple(int(o) for o in orders)
        self.num_points = tuple(int(n) for n in num_points)
        self.luts: List[BasisLUT] = []
        for order, nbins in zip(self.orders, self.num_points):
            vals, dervs = legendre_table(order, internal_coordinates(nbins))
            self.luts.append(
                BasisLUT(
                    values=vals.reshape(-1),
                    derivs=dervs.reshape(-1),
                    num_points=nbins,
                    order=order,
                )
            )

    @property
    def dimension(self) -> int:
        return len(self.luts)

    def __getitem__(self, dim: int) -> BasisLUT:
        return self.luts[dim]

    def __len__(self) -> int:
        return len(self.luts)

    def product(self, bin_indices: Sequence[int], multi_index: Sequence[int]) -> float:
        """Tensor-product basis value at one bin for one multi-index."""
        out = 1.0
        for lut, b, o in zip(self.luts, bin_indices, multi_index):
            out *= lut.values[b + o * lut.num_points]
        return float(out)
