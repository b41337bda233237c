"""Basis-function method and the components of its update cycle."""

from .basis import BasisFunctionMethod, StepOutcome  # noqa: F401
from .forces import BiasForceEvaluator, BoundaryState, project_bias  # noqa: F401
from .reducer import HistogramReducer, ReductionResult  # noqa: F401
from .updater import CoefficientUpdater, UpdateResult  # noqa: F401
