"""Simulation state shared between the driver and the sampling method."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from basisfes.utils.thermodynamics import boltzmann_constant_kj_per_mol


@dataclass
class Snapshot:
    """Positions, forces and virial of one walker.

    ``forces`` and ``virial`` are accumulated into by the sampling method
    after every integration step. ``iteration`` is the global step counter
    and must advance in lockstep on every walker.
    """

    positions: np.ndarray
    forces: Optional[np.ndarray] = None
    virial: np.ndarray = field(default_factory=lambda: np.zeros((3, 3)))
    temperature: float = 0.0
    kb: float = field(default_factory=boltzmann_constant_kj_per_mol)
    iteration: int = 0
    walker_id: int = 0
    box: Optional[np.ndarray] = None

    def __post_init__(self) -> None:
        self.positions = np.atleast_2d(np.asarray(self.positions, dtype=float))
        if self.forces is None:
            self.forces = np.zeros_like(self.positions)
        else:
            self.forces = np.asarray(self.forces, dtype=float).reshape(self.positions.shape)
        self.virial = np.asarray(self.virial, dtype=float).reshape(3, 3)
        if self.box is not None:
            self.box = np.asarray(self.box, dtype=float).reshape(3)

    @property
    def n_atoms(self) -> int:
        return int(self.positions.shape[0])

    def apply_minimum_image(self, vector: np.ndarray) -> np.ndarray:
        """Wrap a displacement into the orthorhombic box, if one is set."""
        vec = np.asarray(vector, dtype=float)
        if self.box is None:
            return vec
        return vec - self.box * np.round(vec / self.box)
