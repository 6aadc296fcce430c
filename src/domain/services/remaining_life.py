"""
Remaining-Life Estimator - Domain Service

Evaluates a two-parameter Weibull survival model. Shape and scale are fitted
offline and supplied by the model registry; this module only evaluates them.

    R(t) = exp(-(t / scale) ** shape)
    h(t) = (shape / scale) * (t / scale) ** (shape - 1)

Remaining life is the median life ``scale * ln(2) ** (1 / shape)`` minus the
elapsed age, clamped at zero.
"""

import math
from dataclasses import dataclass

import numpy as np

from src.domain.entities.errors import ModelConfigurationError

HOURS_PER_DAY = 24.0


@dataclass(frozen=True)
class LifeEstimate:
    age_hours: float
    survival_probability: float
    failure_probability: float
    hazard_rate: float
    median_life_hours: float
    remaining_life_hours: float

    @property
    def remaining_life_days(self) -> float:
        return self.remaining_life_hours / HOURS_PER_DAY


def _check_parameters(shape: float, scale_hours: float) -> None:
    if shape <= 0 or scale_hours <= 0 or not math.isfinite(shape * scale_hours):
        raise ModelConfigurationError(
            "Weibull shape and scale must be positive",
            {"shape": shape, "scale_hours": scale_hours},
        )


def survival(shape: float, scale_hours: float, hours: float) -> float:
    _check_parameters(shape, scale_hours)
    if hours < 0:
        raise ValueError("hours must be non-negative")
    return float(np.exp(-np.power(hours / scale_hours, shape)))


def failure_probability_at(shape: float, scale_hours: float, hours: float) -> float:
    """Probability that the asset has failed by ``hours`` in service."""
    return 1.0 - survival(shape, scale_hours, hours)


def conditional_failure_probability(
    shape: float, scale_hours: float, age_hours: float, horizon_hours: float
) -> float:
    """Probability of failing within ``horizon_hours`` given survival to age."""
    current = survival(shape, scale_hours, age_hours)
    if current <= 0.0:
        return 1.0
    return 1.0 - survival(shape, scale_hours, age_hours + horizon_hours) / current


def median_life_hours(shape: float, scale_hours: float) -> float:
    _check_parameters(shape, scale_hours)
    return scale_hours * math.log(2.0) ** (1.0 / shape)


def hazard_rate(shape: float, scale_hours: float, hours: float) -> float:
    _check_parameters(shape, scale_hours)
    if hours == 0:
        # h(0) diverges for shape < 1 and is 1/scale for the exponential case.
        if shape < 1:
            return math.inf
        return 1.0 / scale_hours if shape == 1 else 0.0
    return (shape / scale_hours) * (hours / scale_hours) ** (shape - 1.0)


def estimate(shape: float, scale_hours: float, age_hours: float) -> LifeEstimate:
    """
    Evaluate survival, hazard and remaining life at the asset's current age.

    Raises:
        ModelConfigurationError: If shape or scale is not positive.
        ValueError: If age is negative.
    """
    _check_parameters(shape, scale_hours)
    if age_hours < 0:
        raise ValueError("age_hours must be non-negative")

    survival_probability = survival(shape, scale_hours, age_hours)
    median = median_life_hours(shape, scale_hours)
    return LifeEstimate(
        age_hours=float(age_hours),
        survival_probability=survival_probability,
        failure_probability=1.0 - survival_probability,
        hazard_rate=hazard_rate(shape, scale_hours, age_hours),
        median_life_hours=median,
        remaining_life_hours=max(0.0, median - age_hours),
    )
