"""Domain port for handing scoring runs to background workers."""

from __future__ import annotations

from typing import Protocol


class IScoringDispatcher(Protocol):
    """Defines how a scoring run for one asset is queued."""

    async def dispatch_scoring_run(self, *, tenant_id: str, asset_id: str) -> str:
        """Queue a scoring run for asynchronous execution.

        Returns:
            Identifier of the dispatched task (if available).
        """
        ...
