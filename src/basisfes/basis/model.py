"""Mutable state of one basis-function bias run."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

from basisfes.basis.coefficients import CONSTANT_SLOT, CoefficientIndex
from basisfes.basis.polynomials import PolynomialTable
from basisfes.config import BasisConfig
from basisfes.grid.histogram import HistogramGrid


@dataclass
class BiasModel:
    """Accumulators shared by the reducer, updater, force evaluator and reporter.

    ``unbias`` has one slot per histogram storage slot; under/overflow slots
    stay at zero and are skipped by every consumer.
    """

    histogram: HistogramGrid
    table: PolynomialTable
    index: CoefficientIndex
    coefficients: np.ndarray
    unbias: np.ndarray
    iteration: int = 0
    _basis_cache: np.ndarray | None = field(default=None, init=False, repr=False)

    @classmethod
    def from_config(cls, config: BasisConfig) -> "BiasModel":
        """Allocate zeroed state for a normalized configuration."""
        histogram = HistogramGrid.from_config(config.grid)
        table = PolynomialTable(config.polynomial_orders, config.grid.num_points)
        index = CoefficientIndex(config.polynomial_orders)
        model = cls(
            histogram=histogram,
            table=table,
            index=index,
            coefficients=np.zeros(index.size, dtype=float),
            unbias=np.zeros(histogram.size(), dtype=float),
        )
        if config.coefficients is not None:
            model.load_coefficients(config.coefficients, iteration=config.iteration)
        return model

    @property
    def dimension(self) -> int:
        return self.histogram.dimension()

    def load_coefficients(self, values: Sequence[float], *, iteration: int = 0) -> None:
        arr = np.asarray(values, dtype=float).reshape(-1)
        if arr.size != self.index.size:
            raise ValueError(
                f"Expected {self.index.size} coefficients, got {arr.size}"
            )
        self.coefficients[...] = arr
        self.iteration = int(iteration)

    def basis_matrix(self) -> np.ndarray:
        """Tensor-product basis values, shape ``(n_slots, n_interior)``.

        Column ``b`` corresponds to the ``b``-th interior bin in flat-index
        order. The matrix only depends on the grid and orders, so it is
        built once and cached.
        """
        if self._basis_cache is None:
            bins = self.histogram.interior_multi_indices()
            matrix = np.ones((self.index.size, bins.shape[0]), dtype=float)
            for k, lut in enumerate(self.table.luts):
                values = lut.value_matrix()
                matrix *= values[self.index.multi_indices[:, k]][:, bins[:, k]]
            matrix.setflags(write=False)
            self._basis_cache = matrix
        return self._basis_cache

    def bias_on_grid(self) -> np.ndarray:
        """Current bias estimate at every interior bin (constant slot excluded)."""
        active = self.coefficients.copy()
        active[CONSTANT_SLOT] = 0.0
        return active @ self.basis_matrix()

    def reset(self) -> None:
        self.histogram.reset()
        self.coefficients[...] = 0.0
        self.unbias[...] = 0.0
        self.iteration = 0
