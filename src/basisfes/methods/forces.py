"""Per-step bias derivatives, boundary tracking and harmonic walls."""

from __future__ import annotations

import logging
from enum import Enum
from typing import List, Sequence

import numpy as np

from basisfes.basis.coefficients import CONSTANT_SLOT
from basisfes.basis.model import BiasModel
from basisfes.config import BasisConfig
from basisfes.utils.logging_utils import emit_banner

logger = logging.getLogger("basisfes")


class BoundaryState(Enum):
    INSIDE = "inside"
    ABOVE_MAX = "above-max"
    BELOW_MIN = "below-min"


class BiasForceEvaluator:
    """Evaluate ``dA/dCV`` for the current coefficients.

    The basis-derived force is only applied while every non-periodic CV is
    inside the histogram domain. The harmonic wall on the restraint bounds
    is applied unconditionally and stacks with it.
    """

    def __init__(self, model: BiasModel, config: BasisConfig) -> None:
        self.model = model
        grid = model.histogram
        dim = grid.dimension()
        self.lower = np.array([grid.lower(k) for k in range(dim)])
        self.upper = np.array([grid.upper(k) for k in range(dim)])
        self.periodic = np.array([grid.periodic(k) for k in range(dim)], dtype=bool)
        self.springs = np.asarray(config.restraint_springs, dtype=float)
        self.wall_upper = np.asarray(config.restraint_upper, dtype=float)
        self.wall_lower = np.asarray(config.restraint_lower, dtype=float)
        self.states: List[BoundaryState] = [BoundaryState.INSIDE] * dim

    @property
    def in_bounds(self) -> bool:
        return all(state is BoundaryState.INSIDE for state in self.states)

    def update_bounds(self, values: Sequence[float]) -> bool:
        """Advance the boundary trackers and return whether all CVs are inside.

        A CV sitting exactly on a domain edge keeps its previous state.
        """
        x = np.asarray(values, dtype=float)
        was_inside = self.in_bounds
        for k, val in enumerate(x):
            if self.periodic[k]:
                continue
            previous = self.states[k]
            if val > self.upper[k]:
                current = BoundaryState.ABOVE_MAX
            elif val < self.lower[k]:
                current = BoundaryState.BELOW_MIN
            elif self.lower[k] < val < self.upper[k]:
                current = BoundaryState.INSIDE
            else:
                current = previous
            if current is not previous and current is not BoundaryState.INSIDE:
                where = "above the maximum" if current is BoundaryState.ABOVE_MAX else "below the minimum"
                emit_banner(
                    f"WARNING: CV {k} is {where} boundary.",
                    logger=logger,
                    details=["Statistics will not be gathered during this interval"],
                    level=logging.WARNING,
                )
            elif current is BoundaryState.INSIDE and previous is not BoundaryState.INSIDE:
                logger.info("CV %d has returned in between bounds", k)
            self.states[k] = current

        inside = self.in_bounds
        if inside and not was_inside:
            emit_banner(
                "CV has returned in between bounds. Run is resuming",
                logger=logger,
            )
        return inside

    def basis_derivatives(self, values: Sequence[float]) -> np.ndarray:
        """Derivative of the basis expansion, rescaled to CV units."""
        model = self.model
        dim = model.dimension
        bins = model.histogram.interior_indices(values)
        orders = model.index.multi_indices
        vals = np.empty(orders.shape, dtype=float)
        ders = np.empty(orders.shape, dtype=float)
        for k, lut in enumerate(model.table.luts):
            vals[:, k] = lut.value_matrix()[orders[:, k], bins[k]]
            ders[:, k] = lut.deriv_matrix()[orders[:, k], bins[k]]

        coeffs = model.coefficients.copy()
        coeffs[CONSTANT_SLOT] = 0.0
        out = np.zeros(dim, dtype=float)
        for j in range(dim):
            term = ders[:, j] * 2.0 / (self.upper[j] - self.lower[j])
            for k in range(dim):
                if k != j:
                    term = term * vals[:, k]
            out[j] = -float(np.dot(coeffs, term))
        return out

    def wall_derivatives(self, values: Sequence[float]) -> np.ndarray:
        x = np.asarray(values, dtype=float)
        out = np.zeros(x.size, dtype=float)
        above = ~self.periodic & (x > self.wall_upper)
        below = ~self.periodic & (x < self.wall_lower)
        out[above] -= self.springs[above] * (x[above] - self.wall_upper[above])
        out[below] -= self.springs[below] * (x[below] - self.wall_lower[below])
        return out

    def evaluate(self, values: Sequence[float]) -> np.ndarray:
        """Bias derivatives for the current CV vector.

        Assumes :meth:`update_bounds` has already been called for ``values``.
        """
        x = np.asarray(values, dtype=float)
        derivatives = np.zeros(x.size, dtype=float)
        if self.in_bounds:
            derivatives += self.basis_derivatives(x)
        derivatives += self.wall_derivatives(x)
        return derivatives


def project_bias(snapshot, cvs, derivatives: np.ndarray) -> None:
    """Chain rule: add ``dA_j * grad_j`` to forces and ``-dA_j * box_grad_j`` to the virial."""
    for d, cv in zip(derivatives, cvs):
        snapshot.forces += d * np.asarray(cv.gradient, dtype=float)
        snapshot.virial -= d * np.asarray(cv.box_gradient, dtype=float)
