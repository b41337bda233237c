from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402

from basisfes import constants as const  # noqa: E402
from basisfes.reporting.basis_output import BasisSurface  # noqa: E402
from basisfes.utils.path_utils import ensure_directory  # noqa: E402

logger = logging.getLogger(__name__)


def _grid_axes(coordinates: np.ndarray) -> list[np.ndarray]:
    return [np.unique(coordinates[:, k]) for k in range(coordinates.shape[1])]


def save_surface_plot(
    surface: BasisSurface,
    output_dir: Path | str,
    filename: str = "basis_surface.png",
    *,
    xlabel: str = "CV 1",
    ylabel: str = "CV 2",
) -> Optional[str]:
    """Plot the reconstructed surface of a basis/PMF file.

    One-dimensional surfaces are drawn as lines (basis bias and PMF
    estimate); two-dimensional surfaces as a filled contour of the basis
    bias. Returns the written path, or ``None`` if nothing was written.
    """
    if surface.n_cvs > 2:
        raise ValueError("Only 1D and 2D surfaces can be plotted")

    out_dir = ensure_directory(output_dir)
    filepath = out_dir / filename
    if surface.n_cvs == 1:
        x = surface.coordinates[:, 0]
        plt.figure(figsize=const.PLOT_FIGURE_SIZE_PMF_LINE)
        plt.plot(x, surface.bias, color="steelblue", lw=const.PLOT_LINE_WIDTH, label="Basis set bias")
        plt.plot(x, surface.pmf, color="darkorange", lw=1.0, ls="--", label="PMF estimate")
        plt.xlabel(xlabel)
        plt.ylabel("Free energy")
        plt.legend()
    else:
        xs, ys = _grid_axes(surface.coordinates)
        if xs.size * ys.size != surface.bias.size:
            raise ValueError("Surface coordinates do not form a regular grid")
        # Rows are written with the first CV varying fastest.
        z = surface.bias.reshape(ys.size, xs.size)
        plt.figure(figsize=const.PLOT_FIGURE_SIZE_FES_CONTOUR)
        c = plt.contourf(xs, ys, z, levels=const.PLOT_CONTOUR_LEVELS, cmap="viridis")
        plt.colorbar(c, label="Free energy")
        plt.xlabel(xlabel)
        plt.ylabel(ylabel)
    plt.title("Basis set free energy estimate")
    plt.tight_layout()
    plt.savefig(filepath, dpi=const.PLOT_DPI)
    plt.close()
    logger.info("Saved surface plot to %s", filepath)
    return str(filepath) if filepath.exists() else None
