"""
Prediction Lifecycle Manager - Application Layer

Owns every write to predictions. Writes for one (tenant, asset, prediction
type) key are serialized by an in-process lock and guarded by a version
compare-and-swap in storage, so that at most one open prediction exists per
key even when several workers score the same asset. Work-order conversion is
claimed in storage before the work-order system is called, so API replicas
and workers never raise two work orders for one prediction.
"""

import asyncio
import weakref
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Optional, Tuple
from uuid import UUID, uuid4

from src.domain.entities.context import RequestContext
from src.domain.entities.errors import (
    ConcurrentUpdateError,
    DuplicateOpenPredictionError,
    InvalidTransitionError,
    PredictionNotFoundError,
)
from src.domain.entities.prediction import (
    DismissalReason,
    Prediction,
    PredictionScore,
    PredictionStatus,
    PredictionType,
)
from src.domain.repositories.prediction_repository import IPredictionRepository
from src.shared import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_CLAIM_TTL = timedelta(minutes=5)
DEFAULT_CLAIM_POLL_INTERVAL = 0.2

LockKey = Tuple[str, str, str]
WorkOrderIssuer = Callable[[Prediction], Awaitable[str]]


class PredictionLifecycleManager:
    """State machine and storage guard for predictions."""

    def __init__(
        self,
        prediction_repository: IPredictionRepository,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        claim_ttl: timedelta = DEFAULT_CLAIM_TTL,
        claim_poll_interval: float = DEFAULT_CLAIM_POLL_INTERVAL,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._repository = prediction_repository
        self._max_attempts = max_attempts
        self._claim_ttl = claim_ttl
        self._claim_poll_interval = claim_poll_interval
        self._locks: "weakref.WeakValueDictionary[LockKey, asyncio.Lock]" = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(
        self, tenant_id: str, asset_id: str, prediction_type: PredictionType
    ) -> asyncio.Lock:
        key = (tenant_id, asset_id, prediction_type.value)
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    async def _load(self, context: RequestContext, prediction_id: UUID) -> Prediction:
        prediction = await self._repository.find_by_id(context.tenant_id, prediction_id)
        if prediction is None:
            raise PredictionNotFoundError(str(prediction_id))
        return prediction

    async def _save(self, prediction: Prediction) -> bool:
        expected_version = prediction.version
        prediction.version = expected_version + 1
        saved = await self._repository.compare_and_swap(prediction, expected_version)
        if not saved:
            prediction.version = expected_version
        return saved

    def _exhausted(self, prediction_id: object, operation: str) -> ConcurrentUpdateError:
        logger.error(
            "prediction.lifecycle.retries_exhausted",
            prediction_id=str(prediction_id),
            operation=operation,
            attempts=self._max_attempts,
        )
        return ConcurrentUpdateError(
            f"Prediction {prediction_id} kept changing during {operation}",
            {"prediction_id": str(prediction_id), "operation": operation},
        )

    async def ingest_score(
        self, context: RequestContext, score: PredictionScore
    ) -> Prediction:
        """
        Record a scoring result.

        Updates the open prediction for the key in place, keeping its status,
        or creates a new prediction in status NEW when none is open.

        Raises:
            ConcurrentUpdateError: If the key kept changing for every attempt
        """
        tenant_id = context.tenant_id
        async with self._lock_for(tenant_id, score.asset_id, score.prediction_type):
            for attempt in range(1, self._max_attempts + 1):
                current = await self._repository.find_open(
                    tenant_id, score.asset_id, score.prediction_type
                )
                if current is None:
                    prediction = Prediction.from_score(tenant_id, score)
                    try:
                        created = await self._repository.create(prediction)
                    except DuplicateOpenPredictionError:
                        logger.info(
                            "prediction.lifecycle.create_race_lost",
                            asset_id=score.asset_id,
                            prediction_type=score.prediction_type.value,
                            attempt=attempt,
                        )
                        continue
                    logger.info(
                        "prediction.lifecycle.created",
                        prediction_id=str(created.id),
                        tenant_id=tenant_id,
                        asset_id=score.asset_id,
                        prediction_type=score.prediction_type.value,
                        risk_level=created.risk_level.value,
                        probability=created.probability,
                    )
                    return created

                current.apply_score(score)
                if await self._save(current):
                    logger.info(
                        "prediction.lifecycle.duplicate_suppressed",
                        prediction_id=str(current.id),
                        tenant_id=tenant_id,
                        asset_id=score.asset_id,
                        prediction_type=score.prediction_type.value,
                        status=current.status.value,
                        probability=current.probability,
                    )
                    return current
                logger.info(
                    "prediction.lifecycle.version_conflict",
                    prediction_id=str(current.id),
                    attempt=attempt,
                )

        raise self._exhausted(
            f"{score.asset_id}/{score.prediction_type.value}", "ingest_score"
        )

    async def _transition(
        self,
        context: RequestContext,
        prediction_id: UUID,
        operation: str,
        apply: Callable[[Prediction], bool],
    ) -> Prediction:
        located = await self._load(context, prediction_id)
        lock = self._lock_for(
            located.tenant_id, located.asset_id, located.prediction_type
        )
        async with lock:
            for attempt in range(1, self._max_attempts + 1):
                prediction = await self._load(context, prediction_id)
                if not apply(prediction):
                    logger.debug(
                        "prediction.lifecycle.transition_noop",
                        prediction_id=str(prediction_id),
                        operation=operation,
                        status=prediction.status.value,
                    )
                    return prediction
                if await self._save(prediction):
                    logger.info(
                        f"prediction.lifecycle.{operation}",
                        prediction_id=str(prediction_id),
                        tenant_id=context.tenant_id,
                        actor_id=context.actor_id,
                        status=prediction.status.value,
                    )
                    return prediction
                logger.info(
                    "prediction.lifecycle.version_conflict",
                    prediction_id=str(prediction_id),
                    operation=operation,
                    attempt=attempt,
                )
        raise self._exhausted(prediction_id, operation)

    async def acknowledge(
        self, context: RequestContext, prediction_id: UUID
    ) -> Prediction:
        """
        Mark a NEW prediction as reviewed.

        Raises:
            PredictionNotFoundError: If the tenant has no such prediction
            InvalidTransitionError: If the prediction is past NEW
        """
        return await self._transition(
            context,
            prediction_id,
            "acknowledged",
            lambda prediction: prediction.acknowledge(context.actor_id),
        )

    async def convert_to_work_order(
        self, context: RequestContext, prediction_id: UUID, work_order_ref: str
    ) -> Prediction:
        """Record that a work order was raised for an open prediction."""
        return await self._transition(
            context,
            prediction_id,
            "work_order_created",
            lambda prediction: prediction.convert_to_work_order(work_order_ref),
        )

    async def _claim_work_order(
        self, context: RequestContext, prediction_id: UUID, token: str
    ) -> Prediction:
        """
        Reserve the conversion in storage before any work order is raised.

        Returns the claimed prediction, or the prediction unchanged when a
        work order is already linked to it.
        """
        for attempt in range(1, self._max_attempts + 1):
            prediction = await self._load(context, prediction_id)
            if prediction.status == PredictionStatus.WORK_ORDER_CREATED:
                return prediction
            now = datetime.now(timezone.utc)
            if prediction.is_open and prediction.has_live_work_order_claim(
                now, self._claim_ttl
            ):
                logger.info(
                    "prediction.lifecycle.work_order_pending",
                    prediction_id=str(prediction_id),
                    attempt=attempt,
                )
                await asyncio.sleep(self._claim_poll_interval)
                continue
            prediction.claim_work_order(token, now)
            if await self._save(prediction):
                return prediction
            logger.info(
                "prediction.lifecycle.version_conflict",
                prediction_id=str(prediction_id),
                operation="claim_work_order",
                attempt=attempt,
            )
        raise self._exhausted(prediction_id, "claim_work_order")

    async def _link_work_order(
        self,
        context: RequestContext,
        prediction_id: UUID,
        token: str,
        work_order_ref: str,
    ) -> Prediction:
        for attempt in range(1, self._max_attempts + 1):
            prediction = await self._load(context, prediction_id)
            if prediction.work_order_claim != token or not prediction.is_open:
                logger.warning(
                    "prediction.lifecycle.work_order_orphaned",
                    prediction_id=str(prediction_id),
                    work_order_ref=work_order_ref,
                    status=prediction.status.value,
                    linked_ref=prediction.work_order_ref,
                )
                if prediction.status == PredictionStatus.WORK_ORDER_CREATED:
                    return prediction
                raise InvalidTransitionError(
                    str(prediction_id),
                    prediction.status.value,
                    PredictionStatus.WORK_ORDER_CREATED.value,
                )
            prediction.convert_to_work_order(work_order_ref)
            if await self._save(prediction):
                logger.info(
                    "prediction.lifecycle.work_order_created",
                    prediction_id=str(prediction_id),
                    tenant_id=context.tenant_id,
                    actor_id=context.actor_id,
                    work_order_ref=work_order_ref,
                )
                return prediction
            logger.info(
                "prediction.lifecycle.version_conflict",
                prediction_id=str(prediction_id),
                operation="convert_using",
                attempt=attempt,
            )
        raise self._exhausted(prediction_id, "convert_using")

    async def _release_claim(
        self, context: RequestContext, prediction_id: UUID, token: str
    ) -> None:
        """Give the reservation back so that a retry may raise the work order."""
        try:
            for _ in range(self._max_attempts):
                prediction = await self._load(context, prediction_id)
                if not prediction.release_work_order_claim(token):
                    return
                if await self._save(prediction):
                    return
        except Exception as exc:
            logger.warning(
                "prediction.lifecycle.work_order_claim_release_failed",
                prediction_id=str(prediction_id),
                error=str(exc),
            )
            return
        logger.warning(
            "prediction.lifecycle.work_order_claim_release_failed",
            prediction_id=str(prediction_id),
            error="retries exhausted",
        )

    async def convert_using(
        self,
        context: RequestContext,
        prediction_id: UUID,
        issue_work_order: WorkOrderIssuer,
    ) -> Prediction:
        """
        Raise a work order through ``issue_work_order`` and link it.

        The conversion is first claimed with a version compare-and-swap, and
        only the holder of the claim calls ``issue_work_order``. Requests in
        other processes that find a live claim wait for it to settle, so a
        prediction gets a single work order. A claim left behind by a crashed
        request expires after ``claim_ttl``. A prediction that already has a
        work order is returned unchanged.

        Raises:
            PredictionNotFoundError: If the tenant has no such prediction
            InvalidTransitionError: If the prediction is closed
            ConcurrentUpdateError: If another request still holds the claim
            WorkOrderGatewayError: If the work order cannot be raised
        """
        located = await self._load(context, prediction_id)
        lock = self._lock_for(
            located.tenant_id, located.asset_id, located.prediction_type
        )
        token = uuid4().hex
        async with lock:
            prediction = await self._claim_work_order(context, prediction_id, token)
            if prediction.status == PredictionStatus.WORK_ORDER_CREATED:
                return prediction
            try:
                work_order_ref = await issue_work_order(prediction)
            except Exception:
                await self._release_claim(context, prediction_id, token)
                raise
            return await self._link_work_order(
                context, prediction_id, token, work_order_ref
            )

    async def dismiss(
        self,
        context: RequestContext,
        prediction_id: UUID,
        reason: DismissalReason = DismissalReason.DISMISSED,
        notes: Optional[str] = None,
    ) -> Prediction:
        """Close an open prediction as dismissed or false positive."""
        return await self._transition(
            context,
            prediction_id,
            reason.value,
            lambda prediction: prediction.dismiss(reason, context.actor_id, notes),
        )

    async def resolve(
        self,
        context: RequestContext,
        prediction_id: UUID,
        resolution_notes: Optional[str] = None,
        was_accurate: Optional[bool] = None,
        actual_failure_date: Optional[datetime] = None,
    ) -> Prediction:
        """Close a prediction whose work order has been completed."""
        return await self._transition(
            context,
            prediction_id,
            "resolved",
            lambda prediction: prediction.resolve(
                resolution_notes, was_accurate, actual_failure_date
            ),
        )
