"""Cross-walker histogram reduction and importance reweighting."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from basisfes.basis.model import BiasModel
from basisfes.parallel.communicator import Communicator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReductionResult:
    """Per-interior-bin data from one reduction, in flat-index order."""

    merged_counts: np.ndarray
    bias: np.ndarray
    increment: np.ndarray

    @property
    def total_visits(self) -> int:
        return int(self.merged_counts.sum())


class HistogramReducer:
    """Merge walker histograms and fold them into the unbias accumulator.

    Every walker must call :meth:`reduce` on the same global step; the
    reduction is the only synchronisation point of a run.
    """

    def __init__(self, comm: Communicator, weight: float, update_period: int) -> None:
        if update_period <= 0:
            raise ValueError("update_period must be positive")
        self.comm = comm
        self.weight = float(weight)
        self.update_period = int(update_period)

    def merge(self, model: BiasModel) -> np.ndarray:
        """Sum the local counts over all walkers into the canonical histogram."""
        merged = self.comm.allreduce_sum(model.histogram.data)
        model.histogram.data = merged
        return merged

    def reduce(self, model: BiasModel) -> ReductionResult:
        merged = self.merge(model)
        interior = model.histogram.interior_flat_indices()
        counts = merged[interior].astype(float)

        # Unvisited bins count once so the projection covers the whole
        # surface and the later logarithm stays finite.
        weighted = np.where(counts == 0, 1.0, counts)

        bias = model.bias_on_grid()
        increment = weighted * np.exp(bias) * self.weight / self.update_period
        model.unbias[interior] += increment

        model.histogram.reset()
        logger.debug(
            "Reduced histogram over %d walker(s): %d visits, %d empty bins",
            self.comm.size,
            int(counts.sum()),
            int(np.count_nonzero(counts == 0)),
        )
        return ReductionResult(merged_counts=counts, bias=bias, increment=increment)
