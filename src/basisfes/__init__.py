# Copyright (c) 2025 BasisFES Development Team
# SPDX-License-Identifier: GPL-3.0-or-later

"""
BasisFES: adaptive basis-function biasing for enhanced sampling

Estimates a free-energy surface over a few collective variables by
projecting a reweighted visit histogram onto Legendre polynomials, and
feeds the running estimate back into the simulation as a bias force.
"""

import logging

from .basis import BasisLUT, BiasModel, CoefficientIndex, PolynomialTable
from .config import BasisConfig, GridConfig, load_config, normalize_config
from .grid import HistogramGrid
from .methods import (
    BasisFunctionMethod,
    BiasForceEvaluator,
    CoefficientUpdater,
    HistogramReducer,
    StepOutcome,
)
from .parallel import SerialCommunicator, ThreadCommunicatorGroup
from .reporting import BasisReporter, read_basis_output, read_coefficients
from .simulation import Snapshot, run_walker
from .utils.errors import (
    BasisFunctionError,
    CollectiveAbort,
    ConfigurationError,
    DimensionMismatchError,
    TemperatureError,
)

logger = logging.getLogger("basisfes")
logger.addHandler(logging.NullHandler())

__version__ = "0.1.0"
__author__ = "BasisFES Development Team"

__all__ = [
    "BasisConfig",
    "BasisFunctionError",
    "BasisFunctionMethod",
    "BasisLUT",
    "BasisReporter",
    "BiasForceEvaluator",
    "BiasModel",
    "CoefficientIndex",
    "CoefficientUpdater",
    "CollectiveAbort",
    "ConfigurationError",
    "DimensionMismatchError",
    "GridConfig",
    "HistogramGrid",
    "HistogramReducer",
    "PolynomialTable",
    "SerialCommunicator",
    "Snapshot",
    "StepOutcome",
    "TemperatureError",
    "ThreadCommunicatorGroup",
    "load_config",
    "normalize_config",
    "read_basis_output",
    "read_coefficients",
    "run_walker",
]
