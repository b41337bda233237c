"""High-level entry points used by the command line and notebooks."""

from __future__ import annotations

import logging
from concurrent import futures as _fut
from dataclasses import replace
from pathlib import Path
from typing import List, Optional, Sequence

import numpy as np

from basisfes import constants as const
from basisfes.basis.model import BiasModel
from basisfes.config import BasisConfig, GridConfig, normalize_config
from basisfes.methods.basis import BasisFunctionMethod
from basisfes.parallel.communicator import ThreadCommunicatorGroup
from basisfes.reporting.basis_output import write_basis_file
from basisfes.simulation.cvs import ParticleCoordinateCV
from basisfes.simulation.driver import WalkerResult, run_walker
from basisfes.simulation.toy import (
    OverdampedLangevin,
    double_well_force_field,
    make_particle_snapshot,
)
from basisfes.utils.path_utils import ensure_directory

logger = logging.getLogger("basisfes")


def evaluate_surface(
    config: BasisConfig, coefficients: Sequence[float], *, iteration: int = 0
) -> BiasModel:
    """Build a model on ``config``'s grid holding ``coefficients``.

    ``model.bias_on_grid()`` then gives the reconstructed bias; the unbias
    accumulator is left empty.
    """
    normalized = normalize_config(config, config.n_cvs)
    model = BiasModel.from_config(replace(normalized, coefficients=None))
    model.load_coefficients(coefficients, iteration=iteration)
    return model


def reconstruct_to_file(
    config: BasisConfig,
    coefficients: Sequence[float],
    output: Path | str,
    *,
    iteration: int = 0,
    beta: float = 1.0,
) -> Path:
    """Write a basis/PMF file for a stored coefficient vector."""
    model = evaluate_surface(config, coefficients, iteration=iteration)
    out = Path(output)
    ensure_directory(out.parent)
    return write_basis_file(out, model, beta)


def double_well_config(
    output_dir: Path | str,
    *,
    update_period: int = 500,
    order: int = 8,
    num_points: int = 50,
    tolerance: float = 1e-4,
    exit_on_convergence: bool = False,
) -> BasisConfig:
    """Configuration for the one-dimensional double-well demo."""
    return BasisConfig(
        grid=GridConfig(lower=(-1.8,), upper=(1.8,), num_points=(num_points,)),
        polynomial_orders=(order,),
        update_period=update_period,
        tolerance=tolerance,
        exit_on_convergence=exit_on_convergence,
        temperature=1.0,
        restraint_springs=(100.0,),
        restraint_upper=(1.7,),
        restraint_lower=(-1.7,),
        output_dir=Path(output_dir),
    )


def run_double_well_demo(
    output_dir: Path | str,
    *,
    n_steps: int = 20000,
    n_walkers: int = 1,
    seed: Optional[int] = None,
    height: float = 2.0,
    timestep: float = 1e-3,
    config: Optional[BasisConfig] = None,
) -> List[WalkerResult]:
    """Run ``n_walkers`` overdamped particles in a double well as threads.

    All walkers share one bias through an in-process communicator group.
    """
    if n_walkers <= 0:
        raise ValueError("n_walkers must be positive")
    cfg = config if config is not None else double_well_config(output_dir)
    group = ThreadCommunicatorGroup(n_walkers)
    seeds = np.random.SeedSequence(seed).spawn(n_walkers)

    def _walk(rank: int) -> WalkerResult:
        snapshot = make_particle_snapshot(-1.0, walker_id=rank)
        integrator = OverdampedLangevin(
            double_well_force_field(height),
            temperature=1.0,
            timestep=timestep,
            rng=np.random.default_rng(seeds[rank]),
        )
        integrator.initialize(snapshot)
        cvs = [ParticleCoordinateCV(0, axis=0, bounds=(-1.8, 1.8))]
        method = BasisFunctionMethod(cfg, group[rank])
        try:
            result = run_walker(method, snapshot, cvs, integrator.step, n_steps)
        except Exception as exc:
            # Release the other walkers before propagating.
            group[rank].abort(f"{type(exc).__name__}: {exc}")
            raise
        if rank == 0:
            method.save_state(Path(cfg.output_dir) / const.STATE_FILE_NAME)
        return result

    if n_walkers == 1:
        return [_walk(0)]
    with _fut.ThreadPoolExecutor(max_workers=n_walkers) as ex:
        jobs = [ex.submit(_walk, rank) for rank in range(n_walkers)]
        return [job.result() for job in jobs]
