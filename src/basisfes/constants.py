# Copyright (c) 2025 BasisFES Development Team
# SPDX-License-Identifier: GPL-3.0-or-later

"""Shared numerical and formatting constants."""

from __future__ import annotations

from scipy import constants as _scipy_constants

BOLTZMANN_CONSTANT_J_PER_K: float = float(_scipy_constants.k)
AVOGADRO_NUMBER: float = float(_scipy_constants.Avogadro)
BOLTZMANN_CONSTANT_KJ_PER_MOL: float = (
    BOLTZMANN_CONSTANT_J_PER_K * AVOGADRO_NUMBER / 1000.0
)

# Output file naming: basis<suffix>.out and coeff<suffix>.out
BASIS_FILE_PREFIX = "basis"
COEFF_FILE_PREFIX = "coeff"
OUTPUT_FILE_EXTENSION = ".out"
STATE_FILE_NAME = "basis_state.json"

# Column layout of the basis/PMF file
OUTPUT_COLUMN_WIDTH = 35
OUTPUT_SIGNIFICANT_DIGITS = 5
BASIS_HEADER_COLUMNS = (
    "CV Values",
    "Basis Set Bias",
    "PMF Estimate",
    "Biased Histogram",
)

# Plotting
PLOT_DPI = 200
PLOT_LINE_WIDTH = 2.0
PLOT_CONTOUR_LEVELS = 30
PLOT_FIGURE_SIZE_PMF_LINE = (7, 4)
PLOT_FIGURE_SIZE_FES_CONTOUR = (7, 6)
