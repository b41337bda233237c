# Copyright (c) 2025 BasisFES Development Team
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Configuration objects for the basis-function sampling method.

A :class:`BasisConfig` is built once (from keyword arguments, a mapping or a
JSON file) and then passed through :func:`normalize_config`, which checks it
against the number of CVs and returns a fully specified copy. Runtime code
only ever sees normalized configurations; nothing mutates them mid-run.
"""

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence, Tuple

from basisfes import constants as const
from basisfes.utils.errors import ConfigurationError, DimensionMismatchError
from basisfes.utils.json_io import load_json_file
from basisfes.utils.logging_utils import emit_banner
from basisfes.utils.validation import all_finite, broadcast_per_cv, require

logger = logging.getLogger("basisfes")

METHOD_TYPE = "Basis"


def _as_tuple(values: Any, cast: type) -> tuple:
    if values is None:
        return ()
    if isinstance(values, (str, bytes)) or not isinstance(values, Sequence):
        values = [values]
    return tuple(cast(v) for v in values)


@dataclass(frozen=True)
class GridConfig:
    """Histogram grid layout: one entry per CV dimension."""

    lower: Tuple[float, ...]
    upper: Tuple[float, ...]
    num_points: Tuple[int, ...]
    periodic: Tuple[bool, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "lower", _as_tuple(self.lower, float))
        object.__setattr__(self, "upper", _as_tuple(self.upper, float))
        object.__setattr__(self, "num_points", _as_tuple(self.num_points, int))
        periodic = _as_tuple(self.periodic, bool)
        if not periodic:
            periodic = (False,) * len(self.lower)
        object.__setattr__(self, "periodic", periodic)

        dims = {len(self.lower), len(self.upper), len(self.num_points), len(periodic)}
        require(len(dims) == 1, "grid lower/upper/num_points/periodic lengths differ")
        require(len(self.lower) > 0, "grid must have at least one dimension")
        for k, (lo, hi, n) in enumerate(zip(self.lower, self.upper, self.num_points)):
            require(
                math.isfinite(lo) and math.isfinite(hi) and lo < hi,
                f"grid dimension {k}: lower must be finite and below upper",
            )
            require(n > 0, f"grid dimension {k}: num_points must be positive")

    @property
    def dimension(self) -> int:
        return len(self.lower)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "GridConfig":
        try:
            return cls(
                lower=data["lower"],
                upper=data["upper"],
                num_points=data["num_points"],
                periodic=data.get("periodic", ()),
            )
        except KeyError as exc:
            raise ConfigurationError(f"grid is missing required key {exc}") from exc


@dataclass(frozen=True)
class BasisConfig:
    """Immutable configuration of a basis-function bias run.

    Restraint bounds default to the grid bounds and spring constants to zero
    (no wall). ``temperature`` is only a fallback for snapshots that report
    a temperature of exactly zero.
    """

    grid: GridConfig
    polynomial_orders: Tuple[int, ...]
    update_period: int = 1000
    weight: float = 1.0
    tolerance: float = 1e-6
    exit_on_convergence: bool = False
    temperature: float = 0.0
    restraint_springs: Tuple[float, ...] = ()
    restraint_upper: Tuple[float, ...] = ()
    restraint_lower: Tuple[float, ...] = ()
    basis_suffix: str = ""
    coeff_suffix: str = ""
    output_dir: Path | str = Path(".")
    # Restart options
    coefficients: Optional[Tuple[float, ...]] = None
    iteration: int = 0
    restart_coefficients: Optional[Path | str] = None
    normalized: bool = field(default=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "polynomial_orders", _as_tuple(self.polynomial_orders, int)
        )
        for name in ("restraint_springs", "restraint_upper", "restraint_lower"):
            object.__setattr__(self, name, _as_tuple(getattr(self, name), float))
        object.__setattr__(self, "output_dir", Path(self.output_dir))
        if self.coefficients is not None:
            object.__setattr__(
                self, "coefficients", _as_tuple(self.coefficients, float)
            )

    @property
    def n_cvs(self) -> int:
        return self.grid.dimension

    @property
    def basis_filename(self) -> str:
        return f"{const.BASIS_FILE_PREFIX}{self.basis_suffix}{const.OUTPUT_FILE_EXTENSION}"

    @property
    def coeff_filename(self) -> str:
        return f"{const.COEFF_FILE_PREFIX}{self.coeff_suffix}{const.OUTPUT_FILE_EXTENSION}"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BasisConfig":
        """Build a config from a JSON-style mapping.

        A ``type`` key, when present, must name the basis-function method.
        """
        method_type = data.get("type", METHOD_TYPE)
        if method_type != METHOD_TYPE:
            raise ConfigurationError(f"Unknown method type specified: {method_type!r}")
        if "grid" not in data:
            raise ConfigurationError("configuration is missing the 'grid' section")
        if "polynomial_orders" not in data:
            raise ConfigurationError("configuration is missing 'polynomial_orders'")

        known = {f for f in cls.__dataclass_fields__ if f not in ("grid", "normalized")}
        unknown = set(data) - known - {"grid", "type"}
        if unknown:
            raise ConfigurationError(
                f"Unknown configuration keys: {', '.join(sorted(unknown))}"
            )
        kwargs = {k: v for k, v in data.items() if k in known}
        return cls(grid=GridConfig.from_dict(data["grid"]), **kwargs)

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload.pop("normalized", None)
        payload["type"] = METHOD_TYPE
        payload["output_dir"] = str(self.output_dir)
        if self.restart_coefficients is not None:
            payload["restart_coefficients"] = str(self.restart_coefficients)
        return payload


def load_config(path: Path | str) -> BasisConfig:
    """Read a :class:`BasisConfig` from a JSON file."""

    data = load_json_file(path)
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"{path}: top-level JSON value must be an object")
    return BasisConfig.from_dict(data)


def normalize_config(config: BasisConfig, n_cvs: int) -> BasisConfig:
    """Validate ``config`` against ``n_cvs`` and fill in per-CV defaults.

    Raises:
        DimensionMismatchError: if the grid dimensionality differs from the
            number of CVs.
        ConfigurationError: for any other invalid setting.
    """

    if config.grid.dimension != n_cvs:
        raise DimensionMismatchError(
            f"Histogram dimensions ({config.grid.dimension}) doesn't match "
            f"number of CVs ({n_cvs})."
        )

    orders = config.polynomial_orders
    require(len(orders) > 0, "polynomial_orders must not be empty")
    if len(orders) != n_cvs:
        emit_banner(
            "WARNING: The number of polynomial orders is not the same "
            "as the number of CVs",
            logger=logger,
            details=[
                f"Got {len(orders)} orders for {n_cvs} CVs.",
                f"The simulation will take the first defined input as the same "
                f"for all CVs. [{orders[0]}]",
            ],
            level=logging.WARNING,
        )
        orders = (orders[0],) * n_cvs
    require(all(o >= 0 for o in orders), "polynomial orders must be non-negative")

    require(config.update_period > 0, "update_period must be a positive integer")
    require(
        math.isfinite(config.weight) and config.weight > 0,
        "weight must be a positive finite value",
    )
    require(
        math.isfinite(config.tolerance) and config.tolerance >= 0,
        "tolerance must be a non-negative finite value",
    )
    require(
        math.isfinite(config.temperature) and config.temperature >= 0,
        "temperature must be a non-negative finite value",
    )
    require(config.iteration >= 0, "iteration must be non-negative")

    springs = broadcast_per_cv(config.restraint_springs or (0.0,), n_cvs, "restraint_springs")
    upper = broadcast_per_cv(
        config.restraint_upper or config.grid.upper, n_cvs, "restraint_upper"
    )
    lower = broadcast_per_cv(
        config.restraint_lower or config.grid.lower, n_cvs, "restraint_lower"
    )
    require(
        all_finite(springs + upper + lower), "restraint settings must be finite"
    )
    require(all(k >= 0 for k in springs), "restraint_springs must be non-negative")
    require(
        all(lo <= hi for lo, hi in zip(lower, upper)),
        "restraint_lower must not exceed restraint_upper",
    )

    if config.coefficients is not None:
        expected = 1
        for order in orders:
            expected *= order + 1
        require(
            len(config.coefficients) == expected,
            f"coefficients has {len(config.coefficients)} entries, expected {expected}",
        )
        require(all_finite(config.coefficients), "coefficients must be finite")

    return replace(
        config,
        polynomial_orders=tuple(orders),
        restraint_springs=springs,
        restraint_upper=upper,
        restraint_lower=lower,
        output_dir=Path(config.output_dir),
        normalized=True,
    )


__all__ = [
    "BasisConfig",
    "GridConfig",
    "load_config",
    "normalize_config",
    "METHOD_TYPE",
]
