# Copyright (c) 2025 BasisFES Development Team
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Basis-function sampling method.

Every step the current CV vector is binned and the bias derivatives of the
current Legendre expansion are projected onto the atoms. Every
``update_period`` steps the walkers merge their histograms, reweight them
with the bias they were sampled under, and re-project ``log(unbias)`` onto
the basis to obtain new coefficients.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

import numpy as np

from basisfes.basis.model import BiasModel
from basisfes.config import BasisConfig, normalize_config
from basisfes.methods.forces import BiasForceEvaluator, project_bias
from basisfes.methods.reducer import HistogramReducer, ReductionResult
from basisfes.methods.updater import CoefficientUpdater, UpdateResult
from basisfes.parallel.communicator import Communicator, SerialCommunicator
from basisfes.reporting.basis_output import BasisReporter, read_coefficients
from basisfes.simulation.cvs import CollectiveVariable
from basisfes.simulation.snapshot import Snapshot
from basisfes.utils.errors import (
    BasisFunctionError,
    ConfigurationError,
    TemperatureError,
)
from basisfes.utils.json_io import dump_json_file
from basisfes.utils.logging_utils import StageTimer, emit_banner
from basisfes.utils.thermodynamics import resolve_beta

logger = logging.getLogger("basisfes")


@dataclass(frozen=True)
class StepOutcome:
    """What happened during one call to :meth:`BasisFunctionMethod.post_integration`."""

    step: int
    derivatives: np.ndarray
    in_bounds: bool
    update: Optional[UpdateResult] = None
    reduction: Optional[ReductionResult] = None
    stop: bool = False

    @property
    def updated(self) -> bool:
        return self.update is not None


class BasisFunctionMethod:
    """Adaptive bias from a Legendre projection of the reweighted histogram."""

    def __init__(
        self,
        config: BasisConfig,
        comm: Optional[Communicator] = None,
        *,
        reporter: Optional[BasisReporter] = None,
    ) -> None:
        self.config = config
        self.comm: Communicator = comm if comm is not None else SerialCommunicator()
        self._reporter = reporter
        self.model: Optional[BiasModel] = None
        self.reducer: Optional[HistogramReducer] = None
        self.updater: Optional[CoefficientUpdater] = None
        self.evaluator: Optional[BiasForceEvaluator] = None
        self.walker_id = 0
        self.beta: Optional[float] = None
        self.converged = False

    @property
    def reporter(self) -> BasisReporter:
        if self._reporter is None:
            self._reporter = BasisReporter(
                self.config.output_dir,
                self.config.basis_filename,
                self.config.coeff_filename,
            )
        return self._reporter

    def _abort(self, exc: Exception) -> None:
        """Log a fatal error and release every walker of the group."""
        emit_banner(
            f"ERROR: {exc}",
            logger=logger,
            details=[f"Exiting on node [{self.walker_id}]"],
            level=logging.ERROR,
        )
        self.comm.abort(str(exc))

    def _require_model(self) -> BiasModel:
        if self.model is None:
            raise BasisFunctionError("pre_simulation must run before the method is used")
        return self.model

    # ------------------------------------------------------------------
    # Simulation hooks
    # ------------------------------------------------------------------
    def pre_simulation(
        self, snapshot: Snapshot, cvs: Sequence[CollectiveVariable]
    ) -> None:
        """Validate the configuration against ``cvs`` and allocate state."""
        self.walker_id = int(snapshot.walker_id)
        try:
            config = normalize_config(self.config, len(cvs))
        except ConfigurationError as exc:
            self._abort(exc)
            raise
        self.config = config

        model = BiasModel.from_config(config)
        if config.restart_coefficients is not None:
            try:
                iteration, coefficients = read_coefficients(config.restart_coefficients)
                model.load_coefficients(coefficients, iteration=iteration)
            except (OSError, ValueError) as exc:
                self._abort(exc)
                raise
            logger.info(
                "Restarted coefficients from %s at sweep %d",
                config.restart_coefficients,
                iteration,
            )
        self.model = model
        self.reducer = HistogramReducer(self.comm, config.weight, config.update_period)
        self.updater = CoefficientUpdater(config.tolerance)
        self.evaluator = BiasForceEvaluator(model, config)
        self.converged = False
        logger.info(
            "Basis method initialised on node [%d]: %d CV(s), orders %s, %d coefficients",
            self.walker_id,
            len(cvs),
            list(config.polynomial_orders),
            model.index.size,
        )

    def post_integration(
        self, snapshot: Snapshot, cvs: Sequence[CollectiveVariable]
    ) -> StepOutcome:
        """Bin the CVs, refresh the bias when due, and apply the bias forces."""
        model = self._require_model()
        assert self.evaluator is not None
        x = np.asarray([cv.value for cv in cvs], dtype=float)

        in_bounds = self.evaluator.update_bounds(x)
        if in_bounds:
            model.histogram.increment(x)

        update: Optional[UpdateResult] = None
        reduction: Optional[ReductionResult] = None
        stop = False
        if snapshot.iteration % self.config.update_period == 0:
            beta = self._resolve_beta(snapshot)
            reduction, update = self.run_update(beta)
            stop = self._stop_decision(update)
            if stop:
                return StepOutcome(
                    step=snapshot.iteration,
                    derivatives=np.zeros(x.size),
                    in_bounds=in_bounds,
                    update=update,
                    reduction=reduction,
                    stop=True,
                )

        derivatives = self.evaluator.evaluate(x)
        project_bias(snapshot, cvs, derivatives)
        return StepOutcome(
            step=snapshot.iteration,
            derivatives=derivatives,
            in_bounds=in_bounds,
            update=update,
            reduction=reduction,
            stop=stop,
        )

    def post_simulation(
        self, snapshot: Snapshot, cvs: Sequence[CollectiveVariable]
    ) -> None:
        if self.model is not None and self.beta is not None and self.comm.rank == 0:
            self.reporter.write(self.model, self.beta)
        logger.info("Run has finished on node [%d]", self.walker_id)

    # ------------------------------------------------------------------
    # Update cycle
    # ------------------------------------------------------------------
    def _resolve_beta(self, snapshot: Snapshot) -> float:
        try:
            return resolve_beta(snapshot.temperature, snapshot.kb, self.config.temperature)
        except TemperatureError as exc:
            self._abort(exc)
            raise

    def run_update(self, beta: float) -> tuple[ReductionResult, UpdateResult]:
        """Reduce, reweight and re-project; rank 0 writes the report."""
        model = self._require_model()
        assert self.reducer is not None and self.updater is not None
        with StageTimer(f"Sweep {model.iteration + 1}", logger):
            model.iteration += 1
            self.beta = beta
            reduction = self.reducer.reduce(model)
            result = self.updater.update(model)
            if self.comm.rank == 0:
                self.reporter.write(model, beta)
        logger.info("Node: [%d]\tSweep: %d", self.walker_id, model.iteration)
        return reduction, result

    def _stop_decision(self, result: UpdateResult) -> bool:
        wants_stop = False
        if result.converged:
            self.converged = True
            emit_banner(
                "System has converged",
                logger=logger,
                details=[f"Sweep {result.iteration}: delta={result.delta:.6g}"],
            )
            wants_stop = self.config.exit_on_convergence
        # Every walker takes part so that all of them stop at this step.
        stop = self.comm.allreduce_any(wants_stop)
        if stop:
            emit_banner(
                "User has elected to exit. System is now exiting",
                logger=logger,
            )
        return stop

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------
    def to_dict(self) -> Dict[str, Any]:
        """Configuration plus the current coefficients, usable for restart."""
        payload = self.config.to_dict()
        payload.pop("restart_coefficients", None)
        if self.model is not None:
            payload["coefficients"] = self.model.coefficients.tolist()
            payload["iteration"] = int(self.model.iteration)
        return payload

    def save_state(self, path: Path | str) -> Path:
        """Write :meth:`to_dict` as JSON; :func:`~basisfes.config.load_config` reads it back."""
        return dump_json_file(self.to_dict(), path)
