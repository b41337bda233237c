"""Thermodynamic helper functions used across the codebase."""

from __future__ import annotations

import math

from basisfes import constants as const
from basisfes.utils.errors import TemperatureError


def boltzmann_constant_kj_per_mol() -> float:
    return float(const.BOLTZMANN_CONSTANT_KJ_PER_MOL)


def resolve_beta(
    temperature: float,
    kb: float,
    fallback_temperature: float | None = None,
) -> float:
    """Return ``1 / (kb * T)`` for the current snapshot.

    Systems with a poorly defined instantaneous temperature (a single
    particle, for example) report ``T == 0``; the configured fallback
    temperature is used instead.

    Raises:
        TemperatureError: if ``T == 0`` and no non-zero fallback is set, or
            if ``kb`` is not positive.
    """

    if not math.isfinite(kb) or kb <= 0:
        raise TemperatureError(f"Boltzmann constant must be positive, got {kb}")
    temp = float(temperature)
    if temp == 0.0:
        if not fallback_temperature:
            raise TemperatureError(
                "Input temperature needs to be defined for this simulation"
            )
        temp = float(fallback_temperature)
    if not math.isfinite(temp) or temp <= 0:
        raise TemperatureError(f"Temperature must be positive, got {temp}")
    return 1.0 / (kb * temp)


__all__ = ["boltzmann_constant_kj_per_mol", "resolve_beta"]
