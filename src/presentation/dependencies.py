"""Request-scoped FastAPI dependencies."""

from typing import Optional

from fastapi import Header, HTTPException, status

from src.domain.entities.context import RequestContext
from src.shared import ACTOR_HEADER, TENANT_HEADER, bind_request_context


async def get_request_context(
    x_tenant_id: Optional[str] = Header(None, alias=TENANT_HEADER),
    x_actor_id: Optional[str] = Header(None, alias=ACTOR_HEADER),
) -> RequestContext:
    """Build the tenant and actor context from the request headers."""
    missing = [
        name
        for name, value in ((TENANT_HEADER, x_tenant_id), (ACTOR_HEADER, x_actor_id))
        if not value or not value.strip()
    ]
    if missing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Missing required header(s): {', '.join(missing)}",
        )
    context = RequestContext(tenant_id=x_tenant_id.strip(), actor_id=x_actor_id.strip())
    bind_request_context(context.tenant_id, context.actor_id)
    return context
