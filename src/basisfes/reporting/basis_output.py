"""Basis/PMF and coefficient output files.

Two plain-text files are written per update:

``basis<suffix>.out``
    A header row, then one row per interior bin: the CV coordinates, the
    negated bias, the PMF estimate ``-log(unbias) / beta`` (``0`` while the
    accumulator is empty) and the raw reweighted histogram. Columns after the
    first are right-aligned in fields of 35 characters.

``coeff<suffix>.out``
    The iteration count, then one coefficient per line in slot order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple

import numpy as np

from basisfes import constants as const
from basisfes.basis.model import BiasModel
from basisfes.utils.path_utils import ensure_directory

logger = logging.getLogger(__name__)


def format_number(value: float) -> str:
    return f"{float(value):.{const.OUTPUT_SIGNIFICANT_DIGITS}g}"


def _pad(text: str, width: int = const.OUTPUT_COLUMN_WIDTH) -> str:
    return text.rjust(width)


def basis_header(n_cvs: int) -> str:
    cv_col, bias_col, pmf_col, hist_col = const.BASIS_HEADER_COLUMNS
    return (
        cv_col
        + _pad(bias_col, const.OUTPUT_COLUMN_WIDTH * n_cvs)
        + _pad(pmf_col)
        + _pad(hist_col)
    )


def pmf_estimate(unbias: np.ndarray, beta: float) -> np.ndarray:
    """``-log(unbias) / beta``, with ``0`` where the accumulator is empty."""
    unbias = np.asarray(unbias, dtype=float)
    out = np.zeros_like(unbias)
    filled = unbias != 0
    out[filled] = -np.log(unbias[filled]) / beta
    return out


def write_basis_file(path: Path | str, model: BiasModel, beta: float) -> Path:
    grid = model.histogram
    interior = grid.interior_flat_indices()
    bins = grid.interior_multi_indices()
    centers = [grid.bin_centers(k) for k in range(grid.dimension())]
    bias = model.bias_on_grid()
    unbias = model.unbias[interior]
    pmf = pmf_estimate(unbias, beta)

    lines = [basis_header(grid.dimension())]
    for row, multi in enumerate(bins):
        fields = [format_number(centers[k][b]) for k, b in enumerate(multi)]
        fields.append(format_number(-bias[row]))
        if unbias[row]:
            fields.append(format_number(pmf[row]))
        else:
            fields.append("0")
        fields.append(format_number(unbias[row]))
        lines.append(fields[0] + "".join(_pad(f) for f in fields[1:]))

    out = Path(path)
    out.write_text("\n".join(lines) + "\n\n", encoding="utf-8")
    return out


def write_coefficient_file(
    path: Path | str, iteration: int, coefficients: np.ndarray
) -> Path:
    lines = [str(int(iteration))]
    lines.extend(format_number(c) for c in np.asarray(coefficients, dtype=float))
    out = Path(path)
    out.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return out


def read_coefficients(path: Path | str) -> Tuple[int, np.ndarray]:
    """Parse a coefficient file into ``(iteration, coefficients)``."""
    tokens = Path(path).read_text(encoding="utf-8").split()
    if not tokens:
        raise ValueError(f"{path}: coefficient file is empty")
    try:
        iteration = int(tokens[0])
        coefficients = np.asarray([float(t) for t in tokens[1:]], dtype=float)
    except ValueError as exc:
        raise ValueError(f"{path}: malformed coefficient file: {exc}") from exc
    return iteration, coefficients


@dataclass(frozen=True)
class BasisSurface:
    """Columns of a basis/PMF file."""

    coordinates: np.ndarray
    bias: np.ndarray
    pmf: np.ndarray
    histogram: np.ndarray

    @property
    def n_cvs(self) -> int:
        return int(self.coordinates.shape[1])

    @property
    def free_energy(self) -> np.ndarray:
        """Free energy implied by the bias (the file stores ``-bias``)."""
        return self.bias


def read_basis_output(path: Path | str) -> BasisSurface:
    lines = Path(path).read_text(encoding="utf-8").splitlines()
    rows: List[List[float]] = []
    for line in lines[1:]:
        if not line.strip():
            continue
        rows.append([float(tok) for tok in line.split()])
    if not rows:
        raise ValueError(f"{path}: no data rows found")
    width = len(rows[0])
    if width < 4 or any(len(r) != width for r in rows):
        raise ValueError(f"{path}: inconsistent column count")
    data = np.asarray(rows, dtype=float)
    n_cvs = width - 3
    return BasisSurface(
        coordinates=data[:, :n_cvs],
        bias=data[:, n_cvs],
        pmf=data[:, n_cvs + 1],
        histogram=data[:, n_cvs + 2],
    )


class BasisReporter:
    """Writes the basis/PMF and coefficient files into ``output_dir``."""

    def __init__(
        self,
        output_dir: Path | str,
        basis_filename: str = "basis.out",
        coeff_filename: str = "coeff.out",
    ) -> None:
        self.output_dir = Path(output_dir)
        self.basis_filename = basis_filename
        self.coeff_filename = coeff_filename

    @property
    def basis_path(self) -> Path:
        return self.output_dir / self.basis_filename

    @property
    def coeff_path(self) -> Path:
        return self.output_dir / self.coeff_filename

    def write(self, model: BiasModel, beta: float) -> Tuple[Path, Path]:
        ensure_directory(self.output_dir)
        basis = write_basis_file(self.basis_path, model, beta)
        coeff = write_coefficient_file(self.coeff_path, model.iteration, model.coefficients)
        logger.debug("Wrote %s and %s", basis, coeff)
        return basis, coeff
