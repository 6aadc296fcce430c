"""
Domain Entities - Risk

The single risk taxonomy shared by anomalies, predictions and dashboard
aggregates.
"""

from enum import Enum


class RiskLevel(str, Enum):
    """Four-level risk classification."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        """Ordinal position, low=0 through critical=3."""
        return _RANKS[self]

    @classmethod
    def highest(cls, levels) -> "RiskLevel":
        """Return the most severe level of an iterable (LOW when empty)."""
        return max(levels, key=lambda level: level.rank, default=cls.LOW)


_RANKS = {
    RiskLevel.LOW: 0,
    RiskLevel.MEDIUM: 1,
    RiskLevel.HIGH: 2,
    RiskLevel.CRITICAL: 3,
}
