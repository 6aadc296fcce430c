"""
Trend Estimator - Domain Service

Holt's double exponential smoothing:

    S_t = alpha * x_t + (1 - alpha) * S_{t-1}
    b_t = beta * (S_t - S_{t-1}) + (1 - beta) * b_{t-1}

with S_0 = x_0 and b_0 = 0. The slope is expressed in value units per reading.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, Optional

from src.domain.entities.errors import ModelConfigurationError

DEFAULT_ALPHA = 0.3
DEFAULT_BETA = 0.1


@dataclass(frozen=True)
class TrendState:
    smoothed: float
    slope: float
    observations: int = 1

    @property
    def direction(self) -> str:
        if self.slope > 0.01:
            return "increasing"
        if self.slope < -0.01:
            return "decreasing"
        return "stable"


def _check_constants(alpha: float, beta: float) -> None:
    if not 0.0 < alpha <= 1.0:
        raise ModelConfigurationError(
            "Smoothing constant alpha must be within (0, 1]", {"alpha": alpha}
        )
    if not 0.0 <= beta <= 1.0:
        raise ModelConfigurationError(
            "Trend constant beta must be within [0, 1]", {"beta": beta}
        )


def step(state: Optional[TrendState], value: float, alpha: float, beta: float) -> TrendState:
    """Advance the smoothing state by one observation."""
    if state is None:
        return TrendState(smoothed=float(value), slope=0.0)
    smoothed = alpha * value + (1 - alpha) * state.smoothed
    slope = beta * (smoothed - state.smoothed) + (1 - beta) * state.slope
    return TrendState(
        smoothed=smoothed, slope=slope, observations=state.observations + 1
    )


def smooth(
    values: Iterable[float],
    alpha: float = DEFAULT_ALPHA,
    beta: float = DEFAULT_BETA,
) -> Optional[TrendState]:
    """Replay a whole series and return the final state (None when empty)."""
    _check_constants(alpha, beta)
    state: Optional[TrendState] = None
    for value in values:
        state = step(state, float(value), alpha, beta)
    return state


class TrendEstimator:
    """Keeps one smoothing state per sensor stream."""

    def __init__(self, alpha: float = DEFAULT_ALPHA, beta: float = DEFAULT_BETA):
        _check_constants(alpha, beta)
        self.alpha = alpha
        self.beta = beta
        self._states: Dict[str, TrendState] = {}

    def update(self, stream_key: str, value: float) -> TrendState:
        state = step(self._states.get(stream_key), float(value), self.alpha, self.beta)
        self._states[stream_key] = state
        return state

    def state(self, stream_key: str) -> Optional[TrendState]:
        return self._states.get(stream_key)

    def reset(self, stream_key: str) -> None:
        self._states.pop(stream_key, None)


def exceeds_threshold(state: TrendState, threshold: float) -> bool:
    """Whether the slope magnitude signals degradation."""
    if threshold <= 0:
        raise ModelConfigurationError(
            "Degradation threshold must be positive", {"threshold": threshold}
        )
    return abs(state.slope) > threshold
