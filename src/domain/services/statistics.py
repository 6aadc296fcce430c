"""Descriptive statistics used when training models."""

from typing import Sequence

import numpy as np

from src.domain.entities.errors import InsufficientDataError
from src.domain.entities.model import TrainingStats


def describe(values: Sequence[float]) -> TrainingStats:
    """Summarise a sample; the standard deviation is the sample (ddof=1) one."""
    if len(values) == 0:
        raise InsufficientDataError(1, 0)
    data = np.asarray(values, dtype=float)
    q1, q2, q3 = np.percentile(data, [25, 50, 75])
    return TrainingStats(
        count=int(data.size),
        mean=float(data.mean()),
        std_dev=float(data.std(ddof=1)) if data.size > 1 else 0.0,
        min=float(data.min()),
        max=float(data.max()),
        q1=float(q1),
        q2=float(q2),
        q3=float(q3),
    )


def adaptive_z_threshold(stats: TrainingStats) -> float:
    """Looser thresholds for highly variable signals, stricter for stable ones."""
    variation = stats.coefficient_of_variation
    if variation > 0.5:
        return 4.0
    if variation > 0.25:
        return 3.0
    return 2.5
