"""Collective variables consumed by the basis-function method."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Tuple

import numpy as np

from basisfes.simulation.snapshot import Snapshot


class CollectiveVariable(ABC):
    """Scalar function of particle coordinates with its gradient.

    Subclasses implement :meth:`evaluate`, which must set ``value``,
    ``gradient`` (shape ``(n_atoms, 3)``) and, when the CV depends on the
    box, ``box_gradient`` (shape ``(3, 3)``).
    """

    def __init__(self, bounds: Tuple[float, float], periodic: bool = False) -> None:
        self.bounds = (float(bounds[0]), float(bounds[1]))
        self.periodic = bool(periodic)
        self.value = 0.0
        self.gradient = np.zeros((0, 3))
        self.box_gradient = np.zeros((3, 3))

    @abstractmethod
    def evaluate(self, snapshot: Snapshot) -> None:
        """Update ``value`` and gradients from ``snapshot``."""

    def difference(self, target: float) -> float:
        """Signed ``value - target``, wrapped into the period for periodic CVs."""
        delta = self.value - float(target)
        if self.periodic:
            period = self.bounds[1] - self.bounds[0]
            delta -= period * round(delta / period)
        return delta


class ParticleCoordinateCV(CollectiveVariable):
    """One Cartesian component of one particle."""

    def __init__(
        self,
        atom: int,
        axis: int = 0,
        bounds: Tuple[float, float] = (-math.inf, math.inf),
    ) -> None:
        super().__init__(bounds, periodic=False)
        if axis not in (0, 1, 2):
            raise ValueError("axis must be 0, 1 or 2")
        self.atom = int(atom)
        self.axis = int(axis)

    def evaluate(self, snapshot: Snapshot) -> None:
        self.value = float(snapshot.positions[self.atom, self.axis])
        self.gradient = np.zeros((snapshot.n_atoms, 3))
        self.gradient[self.atom, self.axis] = 1.0
        self.box_gradient = np.zeros((3, 3))


class AngleCV(CollectiveVariable):
    """Bend angle ``i-j-k`` in radians, bounded to ``(0, pi)``."""

    def __init__(self, atom_i: int, atom_j: int, atom_k: int) -> None:
        super().__init__((0.0, math.pi), periodic=False)
        self.atoms = (int(atom_i), int(atom_j), int(atom_k))

    def evaluate(self, snapshot: Snapshot) -> None:
        i, j, k = self.atoms
        for atom in self.atoms:
            if not 0 <= atom < snapshot.n_atoms:
                raise IndexError(
                    f"AngleCV: atom {atom} not found in a snapshot of {snapshot.n_atoms} atoms"
                )
        pos = snapshot.positions
        rij = snapshot.apply_minimum_image(pos[i] - pos[j])
        rkj = snapshot.apply_minimum_image(pos[k] - pos[j])
        nrij = float(np.linalg.norm(rij))
        nrkj = float(np.linalg.norm(rkj))
        cos_theta = float(np.clip(np.dot(rij, rkj) / (nrij * nrkj), -1.0, 1.0))
        self.value = math.acos(cos_theta)

        sin_theta = math.sqrt(max(1.0 - cos_theta * cos_theta, 1e-12))
        prefactor = -1.0 / sin_theta
        grad_i = prefactor * (rkj / (nrij * nrkj) - cos_theta * rij / (nrij * nrij))
        grad_k = prefactor * (rij / (nrij * nrkj) - cos_theta * rkj / (nrkj * nrkj))

        self.gradient = np.zeros((snapshot.n_atoms, 3))
        self.gradient[i] = grad_i
        self.gradient[k] = grad_k
        self.gradient[j] = -grad_i - grad_k
        self.box_gradient = np.zeros((3, 3))
