"""Request-scoped context threaded through every engine call."""

from dataclasses import dataclass

SCHEDULER_ACTOR = "system:scheduler"


@dataclass(frozen=True)
class RequestContext:
    """Tenant and actor on whose behalf an operation runs."""

    tenant_id: str
    actor_id: str

    def __post_init__(self) -> None:
        if not self.tenant_id:
            raise ValueError("tenant_id is required")
        if not self.actor_id:
            raise ValueError("actor_id is required")

    @classmethod
    def for_scheduler(cls, tenant_id: str) -> "RequestContext":
        return cls(tenant_id=tenant_id, actor_id=SCHEDULER_ACTOR)
