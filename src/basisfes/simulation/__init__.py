"""Collaborators of the sampling method: snapshots, CVs and walker loops."""

from .cvs import AngleCV, CollectiveVariable, ParticleCoordinateCV  # noqa: F401
from .driver import WalkerResult, run_walker  # noqa: F401
from .snapshot import Snapshot  # noqa: F401
from .toy import (  # noqa: F401
    OverdampedLangevin,
    double_well_force_field,
    double_well_potential,
    make_particle_snapshot,
)
