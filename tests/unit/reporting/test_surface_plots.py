from __future__ import annotations

import numpy as np
import pytest

from basisfes.reporting.basis_output import BasisSurface, read_basis_output, write_basis_file
from basisfes.reporting.plots import save_surface_plot


def test_one_dimensional_plot(model_1d, tmp_path):
    model_1d.coefficients[2] = 1.0
    surface = read_basis_output(write_basis_file(tmp_path / "basis.out", model_1d, 1.0))
    out = save_surface_plot(surface, tmp_path / "plots", "fes.png")
    assert out is not None
    assert (tmp_path / "plots" / "fes.png").stat().st_size > 0


def test_two_dimensional_plot(model_2d, tmp_path):
    model_2d.coefficients[5] = 0.5
    surface = read_basis_output(write_basis_file(tmp_path / "basis.out", model_2d, 1.0))
    out = save_surface_plot(surface, tmp_path, "fes2d.png", xlabel="phi", ylabel="psi")
    assert out == str(tmp_path / "fes2d.png")


def test_three_dimensional_surfaces_are_rejected(tmp_path):
    surface = BasisSurface(
        coordinates=np.zeros((4, 3)),
        bias=np.zeros(4),
        pmf=np.zeros(4),
        histogram=np.zeros(4),
    )
    with pytest.raises(ValueError, match="1D and 2D"):
        save_surface_plot(surface, tmp_path)
