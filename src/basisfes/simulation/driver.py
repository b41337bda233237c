"""Minimal walker loop around the sampling-method hooks."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional, Sequence

from basisfes.simulation.cvs import CollectiveVariable
from basisfes.simulation.snapshot import Snapshot

if TYPE_CHECKING:  # pragma: no cover - typing only
    from basisfes.methods.basis import BasisFunctionMethod, StepOutcome

logger = logging.getLogger("basisfes")

Propagator = Callable[[Snapshot], None]


@dataclass
class WalkerResult:
    steps: int
    stopped_early: bool
    last_outcome: Optional["StepOutcome"] = None


def run_walker(
    method: "BasisFunctionMethod",
    snapshot: Snapshot,
    cvs: Sequence[CollectiveVariable],
    propagate: Propagator,
    n_steps: int,
) -> WalkerResult:
    """Advance one walker for up to ``n_steps`` steps.

    ``propagate`` integrates one step using ``snapshot.forces`` (which
    already hold the previous bias contribution) and then stores the new
    system forces. The step counter is advanced here so that every walker
    sees the same global step. The loop ends early, on every walker at the
    same step, when the method reports a collective stop.
    """
    if n_steps < 0:
        raise ValueError("n_steps must be non-negative")
    for cv in cvs:
        cv.evaluate(snapshot)
    method.pre_simulation(snapshot, cvs)

    outcome = None
    steps = 0
    stopped = False
    for _ in range(n_steps):
        propagate(snapshot)
        snapshot.iteration += 1
        steps += 1
        for cv in cvs:
            cv.evaluate(snapshot)
        outcome = method.post_integration(snapshot, cvs)
        if outcome.stop:
            stopped = True
            break
    method.post_simulation(snapshot, cvs)
    return WalkerResult(steps=steps, stopped_early=stopped, last_outcome=outcome)
