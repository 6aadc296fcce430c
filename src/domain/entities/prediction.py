"""
Domain Entities - Prediction

This module defines the prediction entity and its lifecycle state machine.
A prediction is created by a scoring run and then moves through human
disposition (acknowledge, convert to a work order, dismiss) until it reaches
a terminal state.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Dict, FrozenSet, List, Optional
from uuid import UUID, uuid4

from .errors import InvalidTransitionError
from .risk import RiskLevel


class PredictionType(str, Enum):
    """Kind of signal a prediction reports."""

    ANOMALY = "anomaly"
    FAILURE = "failure"
    REMAINING_LIFE = "remaining_life"
    DEGRADATION = "degradation"


class PredictionStatus(str, Enum):
    """Lifecycle status of a prediction."""

    NEW = "new"
    ACKNOWLEDGED = "acknowledged"
    WORK_ORDER_CREATED = "work_order_created"
    RESOLVED = "resolved"
    DISMISSED = "dismissed"
    FALSE_POSITIVE = "false_positive"


OPEN_STATUSES: FrozenSet[PredictionStatus] = frozenset(
    {PredictionStatus.NEW, PredictionStatus.ACKNOWLEDGED}
)

TERMINAL_STATUSES: FrozenSet[PredictionStatus] = frozenset(
    {
        PredictionStatus.RESOLVED,
        PredictionStatus.DISMISSED,
        PredictionStatus.FALSE_POSITIVE,
    }
)

# Legal source states for each target state.
_ALLOWED_SOURCES: Dict[PredictionStatus, FrozenSet[PredictionStatus]] = {
    PredictionStatus.ACKNOWLEDGED: frozenset({PredictionStatus.NEW}),
    PredictionStatus.WORK_ORDER_CREATED: OPEN_STATUSES,
    PredictionStatus.DISMISSED: OPEN_STATUSES,
    PredictionStatus.FALSE_POSITIVE: OPEN_STATUSES,
    PredictionStatus.RESOLVED: frozenset({PredictionStatus.WORK_ORDER_CREATED}),
}


class DismissalReason(str, Enum):
    """Terminal outcome chosen by the reviewer when discarding a prediction."""

    DISMISSED = "dismissed"
    FALSE_POSITIVE = "false_positive"

    @property
    def status(self) -> PredictionStatus:
        return PredictionStatus(self.value)


@dataclass(frozen=True)
class Factor:
    """A weighted input that contributed to a prediction."""

    name: str
    value: float
    contribution: float
    threshold: Optional[float] = None
    unit: Optional[str] = None
    description: Optional[str] = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.contribution <= 100.0:
            raise ValueError(
                f"Factor '{self.name}' contribution must be within 0..100, "
                f"got {self.contribution}"
            )


def validate_factors(factors: List[Factor]) -> None:
    """Ensure the contributions of a factor set do not exceed 100."""
    total = sum(factor.contribution for factor in factors)
    # Tolerate float noise from normalised contributions.
    if total > 100.0 + 1e-6:
        raise ValueError(f"Factor contributions sum to {total:.2f}, exceeding 100")


@dataclass(frozen=True)
class PredictionScore:
    """Output of one scoring stage, ready to be ingested by the lifecycle."""

    asset_id: str
    prediction_type: PredictionType
    prediction_text: str
    probability: float
    confidence: float
    risk_level: RiskLevel
    factors: List[Factor] = field(default_factory=list)
    low_confidence: bool = False
    recommended_action: Optional[str] = None
    predicted_date: Optional[datetime] = None
    remaining_life_days: Optional[float] = None
    estimated_cost: Optional[float] = None
    potential_savings: Optional[float] = None
    model_id: Optional[UUID] = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.probability <= 100.0:
            raise ValueError(f"probability must be within 0..100, got {self.probability}")
        if not 0.0 <= self.confidence <= 100.0:
            raise ValueError(f"confidence must be within 0..100, got {self.confidence}")
        validate_factors(self.factors)


@dataclass
class Prediction:
    """A scored prediction for an asset and its disposition history."""

    id: UUID = field(default_factory=uuid4)
    tenant_id: str = ""
    asset_id: str = ""
    prediction_type: PredictionType = PredictionType.FAILURE
    prediction_text: str = ""
    probability: float = 0.0
    confidence: float = 0.0
    low_confidence: bool = False
    risk_level: RiskLevel = RiskLevel.LOW
    status: PredictionStatus = PredictionStatus.NEW
    factors: List[Factor] = field(default_factory=list)
    recommended_action: Optional[str] = None
    predicted_date: Optional[datetime] = None
    remaining_life_days: Optional[float] = None
    estimated_cost: Optional[float] = None
    potential_savings: Optional[float] = None
    model_id: Optional[UUID] = None

    # Disposition tracking
    acknowledged_at: Optional[datetime] = None
    acknowledged_by: Optional[str] = None
    work_order_ref: Optional[str] = None
    work_order_created_at: Optional[datetime] = None
    work_order_claim: Optional[str] = None
    work_order_requested_at: Optional[datetime] = None
    dismissed_at: Optional[datetime] = None
    dismissed_by: Optional[str] = None
    dismissal_notes: Optional[str] = None
    resolved_at: Optional[datetime] = None
    resolution_notes: Optional[str] = None
    was_accurate: Optional[bool] = None
    actual_failure_date: Optional[datetime] = None

    version: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_score(cls, tenant_id: str, score: PredictionScore) -> "Prediction":
        """Create a new prediction in status NEW from a scoring result."""
        prediction = cls(
            tenant_id=tenant_id,
            asset_id=score.asset_id,
            prediction_type=score.prediction_type,
        )
        prediction.apply_score(score)
        return prediction

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def update_timestamp(self) -> None:
        """Update the 'updated_at' timestamp to current time."""
        self.updated_at = datetime.now(timezone.utc)

    def apply_score(self, score: PredictionScore) -> None:
        """Overwrite the scored values in place, keeping the lifecycle status."""
        if (score.asset_id, score.prediction_type) != (
            self.asset_id,
            self.prediction_type,
        ):
            raise ValueError("Score does not belong to this prediction")
        self.prediction_text = score.prediction_text
        self.probability = score.probability
        self.confidence = score.confidence
        self.low_confidence = score.low_confidence
        self.risk_level = score.risk_level
        self.factors = list(score.factors)
        self.recommended_action = score.recommended_action
        self.predicted_date = score.predicted_date
        self.remaining_life_days = score.remaining_life_days
        self.estimated_cost = score.estimated_cost
        self.potential_savings = score.potential_savings
        self.model_id = score.model_id
        self.update_timestamp()

    def _begin_transition(self, target: PredictionStatus) -> bool:
        """
        Check a transition towards ``target``.

        Returns:
            False when the prediction already sits in ``target`` (idempotent
            retry), True when the transition must be applied.

        Raises:
            InvalidTransitionError: When ``target`` is not reachable.
        """
        if self.status == target:
            return False
        if self.status not in _ALLOWED_SOURCES[target]:
            raise InvalidTransitionError(
                str(self.id), self.status.value, target.value
            )
        return True

    def can_transition_to(self, target: PredictionStatus) -> bool:
        return self.status == target or self.status in _ALLOWED_SOURCES[target]

    def acknowledge(self, actor_id: str) -> bool:
        """Mark the prediction as reviewed by a human."""
        if not self._begin_transition(PredictionStatus.ACKNOWLEDGED):
            return False
        self.status = PredictionStatus.ACKNOWLEDGED
        self.acknowledged_at = datetime.now(timezone.utc)
        self.acknowledged_by = actor_id
        self.update_timestamp()
        return True

    def has_live_work_order_claim(self, now: datetime, ttl: timedelta) -> bool:
        """Whether another request is still raising a work order for this prediction."""
        if self.work_order_claim is None or self.work_order_requested_at is None:
            return False
        requested_at = self.work_order_requested_at
        if requested_at.tzinfo is None:
            requested_at = requested_at.replace(tzinfo=timezone.utc)
        return now - requested_at < ttl

    def claim_work_order(self, token: str, now: datetime) -> None:
        """
        Reserve the work-order conversion for the holder of ``token``.

        Raises:
            InvalidTransitionError: If the prediction cannot become a work order
        """
        if self.status == PredictionStatus.WORK_ORDER_CREATED or not self.is_open:
            raise InvalidTransitionError(
                str(self.id),
                self.status.value,
                PredictionStatus.WORK_ORDER_CREATED.value,
            )
        self.work_order_claim = token
        self.work_order_requested_at = now
        self.update_timestamp()

    def release_work_order_claim(self, token: str) -> bool:
        """Drop the reservation held by ``token``; False if someone else holds it."""
        if self.work_order_claim != token:
            return False
        self.work_order_claim = None
        self.work_order_requested_at = None
        self.update_timestamp()
        return True

    def convert_to_work_order(self, work_order_ref: str) -> bool:
        """Link the prediction to the work order raised for it."""
        if not work_order_ref:
            raise ValueError("work_order_ref is required")
        if not self._begin_transition(PredictionStatus.WORK_ORDER_CREATED):
            return False
        self.status = PredictionStatus.WORK_ORDER_CREATED
        self.work_order_ref = work_order_ref
        self.work_order_created_at = datetime.now(timezone.utc)
        self.work_order_claim = None
        self.work_order_requested_at = None
        self.update_timestamp()
        return True

    def dismiss(
        self,
        reason: DismissalReason,
        actor_id: str,
        notes: Optional[str] = None,
    ) -> bool:
        """Close the prediction without action."""
        if not self._begin_transition(reason.status):
            return False
        self.status = reason.status
        self.dismissed_at = datetime.now(timezone.utc)
        self.dismissed_by = actor_id
        self.dismissal_notes = notes
        self.update_timestamp()
        return True

    def resolve(
        self,
        resolution_notes: Optional[str] = None,
        was_accurate: Optional[bool] = None,
        actual_failure_date: Optional[datetime] = None,
    ) -> bool:
        """Close the prediction once its work order is completed."""
        if not self._begin_transition(PredictionStatus.RESOLVED):
            return False
        self.status = PredictionStatus.RESOLVED
        self.resolved_at = datetime.now(timezone.utc)
        self.resolution_notes = resolution_notes
        self.was_accurate = was_accurate
        self.actual_failure_date = actual_failure_date
        self.update_timestamp()
        return True
