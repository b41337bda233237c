"""Projection of the reweighted histogram onto the basis."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from basisfes.basis.coefficients import CONSTANT_SLOT
from basisfes.basis.model import BiasModel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UpdateResult:
    """Outcome of one coefficient refresh."""

    iteration: int
    delta: float
    converged: bool
    coefficients: np.ndarray


def trapezoid_weights(model: BiasModel) -> np.ndarray:
    """Quadrature weight of every interior bin, flat-index order.

    The base weight is ``2**D``; it is halved once per non-periodic
    dimension in which the bin is the first or last one.
    """
    grid = model.histogram
    bins = grid.interior_multi_indices()
    weights = np.full(bins.shape[0], 2.0 ** grid.dimension(), dtype=float)
    for k in range(grid.dimension()):
        if grid.periodic(k):
            continue
        edge = (bins[:, k] == 0) | (bins[:, k] == grid.num_points(k) - 1)
        weights[edge] /= 2.0
    return weights


def slot_normalization(model: BiasModel) -> np.ndarray:
    """``prod_k (2 o_k + 1) / n_k`` for every coefficient slot."""
    orders = model.index.multi_indices
    nbins = np.asarray([model.histogram.num_points(k) for k in range(model.dimension)])
    return np.prod((2.0 * orders + 1.0) / nbins[None, :], axis=1)


class CoefficientUpdater:
    """Integrate ``log(unbias)`` against each basis function."""

    def __init__(self, tolerance: float) -> None:
        self.tolerance = float(tolerance)

    def project(self, model: BiasModel) -> np.ndarray:
        """Return new coefficients for the current unbias accumulator."""
        interior = model.histogram.interior_flat_indices()
        unbias = model.unbias[interior]
        if np.any(unbias <= 0):
            raise ValueError(
                "unbias accumulator must be positive on every interior bin; "
                "run the histogram reduction before updating coefficients"
            )
        dim = model.dimension
        weights = trapezoid_weights(model)
        integrand = np.log(unbias) * weights / 2.0**dim
        coefficients = (model.basis_matrix() @ integrand) * slot_normalization(model)
        coefficients[CONSTANT_SLOT] = 0.0
        return coefficients

    def update(self, model: BiasModel) -> UpdateResult:
        previous = model.coefficients.copy()
        new = self.project(model)
        diff = previous[CONSTANT_SLOT + 1 :] - new[CONSTANT_SLOT + 1 :]
        delta = float(np.dot(diff, diff))
        model.coefficients[...] = new
        converged = delta < self.tolerance
        logger.debug("Coefficient update %d: delta=%.6g", model.iteration, delta)
        return UpdateResult(
            iteration=model.iteration,
            delta=delta,
            converged=converged,
            coefficients=new.copy(),
        )
