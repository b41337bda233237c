"""Toy systems for exercising the sampling loop without an MD engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional, Tuple

import numpy as np

from basisfes.simulation.snapshot import Snapshot

ForceField = Callable[[np.ndarray], Tuple[float, np.ndarray]]


def double_well_potential(x: np.ndarray | float, height: float = 2.0) -> np.ndarray:
    """``h (x^2 - 1)^2``: minima at ``x = +-1`` separated by a barrier ``h``."""
    x = np.asarray(x, dtype=float)
    return height * (x * x - 1.0) ** 2


def double_well_force_field(height: float = 2.0) -> ForceField:
    """Force field acting on the x coordinate of every particle."""

    def _compute(positions: np.ndarray) -> Tuple[float, np.ndarray]:
        x = positions[:, 0]
        energy = float(np.sum(double_well_potential(x, height)))
        forces = np.zeros_like(positions)
        forces[:, 0] = -4.0 * height * x * (x * x - 1.0)
        return energy, forces

    return _compute


@dataclass
class OverdampedLangevin:
    """Euler-Maruyama integrator for overdamped Langevin dynamics.

    The snapshot forces must already hold the total force (system plus
    bias) when :meth:`step` is called; after the move the system forces are
    recomputed and stored, ready for the method to add the next bias.
    """

    force_field: ForceField
    temperature: float
    timestep: float = 1e-3
    friction: float = 1.0
    kb: float = 1.0
    rng: np.random.Generator = field(default_factory=np.random.default_rng)
    energy: float = 0.0

    def __post_init__(self) -> None:
        if self.temperature <= 0:
            raise ValueError("temperature must be positive")
        if self.timestep <= 0 or self.friction <= 0:
            raise ValueError("timestep and friction must be positive")

    def initialize(self, snapshot: Snapshot) -> None:
        self.energy, forces = self.force_field(snapshot.positions)
        snapshot.forces[...] = forces
        snapshot.temperature = self.temperature
        snapshot.kb = self.kb

    def step(self, snapshot: Snapshot) -> None:
        drift = self.timestep / self.friction
        noise_scale = np.sqrt(2.0 * self.kb * self.temperature * drift)
        noise = self.rng.standard_normal(snapshot.positions.shape)
        snapshot.positions += drift * snapshot.forces + noise_scale * noise
        self.energy, forces = self.force_field(snapshot.positions)
        snapshot.forces[...] = forces
        snapshot.virial[...] = 0.0

    __call__ = step


def make_particle_snapshot(
    x0: float, *, walker_id: int = 0, temperature: float = 1.0, kb: float = 1.0,
    box: Optional[np.ndarray] = None,
) -> Snapshot:
    positions = np.zeros((1, 3))
    positions[0, 0] = float(x0)
    return Snapshot(
        positions=positions,
        temperature=temperature,
        kb=kb,
        walker_id=walker_id,
        box=box,
    )
