"""
Scoring Dispatch Use Case - Application Layer

Queues a scoring run when the telemetry pipeline reports new readings for an
asset, so anomalies are flagged on arrival instead of at the next daily run.
Runs are idempotent per reading, so repeated notices are harmless.
"""

from datetime import datetime, timezone

from dependency_injector.wiring import Provide, inject

from src.domain.entities.context import RequestContext
from src.domain.ports.scoring_dispatcher import IScoringDispatcher
from src.shared import get_logger

from ..dtos.scoring_dto import ReadingsArrivedDTO, ScoringDispatchDTO

logger = get_logger(__name__)


class DispatchScoringRunUseCase:
    """Use case for scoring an asset after new readings arrive."""

    @inject
    def __init__(
        self,
        scoring_dispatcher: IScoringDispatcher = Provide["scoring_dispatcher"],
    ):
        self.scoring_dispatcher = scoring_dispatcher

    async def execute(
        self, context: RequestContext, notice: ReadingsArrivedDTO
    ) -> ScoringDispatchDTO:
        task_id = await self.scoring_dispatcher.dispatch_scoring_run(
            tenant_id=context.tenant_id, asset_id=notice.asset_id
        )
        logger.info(
            "scoring.dispatch.readings_arrived",
            tenant_id=context.tenant_id,
            actor_id=context.actor_id,
            asset_id=notice.asset_id,
            task_id=task_id,
        )
        return ScoringDispatchDTO(
            asset_id=notice.asset_id,
            task_id=task_id,
            dispatched_at=datetime.now(timezone.utc),
        )
