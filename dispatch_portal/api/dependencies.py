"""
FastAPI dependency injection container.
"""

from typing import Annotated, AsyncGenerator, Optional

from fastapi import Depends, Header

from dispatch_portal.application.services.dispatch_coordinator import DispatchCoordinator
from dispatch_portal.application.use_cases.submit_request import SubmitRequestUseCase
from dispatch_portal.config.logging import get_logger
from dispatch_portal.domain.value_objects.actor import Actor, ActorRole
from dispatch_portal.infrastructure.storage import Storage, open_storage

logger = get_logger(__name__)


# Storage Dependencies
async def get_storage() -> AsyncGenerator[Storage, None]:
    """Get storage for the configured backend, scoped to one request."""
    async with open_storage() as storage:
        yield storage


StorageDep = Annotated[Storage, Depends(get_storage)]


# Service Dependencies
async def get_dispatch_coordinator(storage: StorageDep) -> DispatchCoordinator:
    """Get dispatch coordinator instance."""
    return storage.coordinator()


async def get_submit_request_use_case(storage: StorageDep) -> SubmitRequestUseCase:
    """Get submit request use case instance."""
    return storage.submit_request_use_case()


# Identity (authentication itself is handled upstream)
async def get_actor(
    x_actor_id: Annotated[Optional[int], Header()] = None,
    x_actor_role: Annotated[Optional[ActorRole], Header()] = None,
) -> Actor:
    """Acting identity forwarded by the gateway."""
    return Actor(id=x_actor_id, role=x_actor_role)


# Type aliases for cleaner dependency injection
DispatchCoordinatorDep = Annotated[DispatchCoordinator, Depends(get_dispatch_coordinator)]
SubmitRequestUseCaseDep = Annotated[SubmitRequestUseCase, Depends(get_submit_request_use_case)]
ActorDep = Annotated[Actor, Depends(get_actor)]
