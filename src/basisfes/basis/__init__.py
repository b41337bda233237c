"""Orthogonal basis tables, coefficient indexing and bias state."""

from .coefficients import CONSTANT_SLOT, CoefficientIndex  # noqa: F401
from .model import BiasModel  # noqa: F401
from .polynomials import BasisLUT, PolynomialTable, legendre_table  # noqa: F401
