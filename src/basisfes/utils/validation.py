"""Common validation helpers shared across basisfes modules."""

from __future__ import annotations

from typing import Any, Sequence

import numpy as np

from basisfes.utils.errors import ConfigurationError

__all__ = ["require", "all_finite", "broadcast_per_cv"]


def require(condition: bool, message: str) -> None:
    """Raise :class:`ConfigurationError` when a required condition fails."""
    if not condition:
        raise ConfigurationError(message)


def all_finite(values: Any) -> bool:
    """Return ``True`` when all numeric entries are finite.

    Empty arrays are treated as finite to keep downstream shape handling simple.
    """

    arr = values if isinstance(values, np.ndarray) else np.asarray(values)
    if arr.size == 0:
        return True
    return bool(np.isfinite(arr).all())


def broadcast_per_cv(
    values: Sequence[float], n_cvs: int, name: str
) -> tuple[float, ...]:
    """Return one value per CV, broadcasting a single entry.

    Empty sequences are not allowed; lengths other than 1 or ``n_cvs`` are
    rejected.
    """

    vals = tuple(float(v) for v in values)
    require(len(vals) > 0, f"{name} must not be empty")
    if len(vals) == 1 and n_cvs != 1:
        return vals * n_cvs
    require(
        len(vals) == n_cvs,
        f"{name} has {len(vals)} entries but there are {n_cvs} CVs",
    )
    return vals
