"""Output files and plots of the reconstructed free-energy surface."""

from .basis_output import (  # noqa: F401
    BasisReporter,
    BasisSurface,
    read_basis_output,
    read_coefficients,
    write_basis_file,
    write_coefficient_file,
)
