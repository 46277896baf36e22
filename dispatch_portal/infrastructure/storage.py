"""
Storage backends and dispatch service composition.
"""

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from dispatch_portal.application.interfaces.repositories import (
    AssignmentRepositoryInterface,
    ServiceRequestRepositoryInterface,
    TimelineRepositoryInterface,
)
from dispatch_portal.application.interfaces.services import (
    BranchDirectoryInterface,
    ConfigurationStoreInterface,
    NotifierInterface,
    TransactionServiceInterface,
)
from dispatch_portal.application.services.dispatch_coordinator import DispatchCoordinator
from dispatch_portal.application.services.sla_policy import SlaPolicy
from dispatch_portal.application.services.timeline import Timeline
from dispatch_portal.application.use_cases.reclaim_expired_assignments import (
    ReclaimExpiredAssignmentsUseCase,
)
from dispatch_portal.application.use_cases.submit_request import SubmitRequestUseCase
from dispatch_portal.config.database import get_session_factory
from dispatch_portal.config.logging import get_logger
from dispatch_portal.config.settings import settings
from dispatch_portal.domain.clock import Clock, utc_now
from dispatch_portal.infrastructure.database.repositories import (
    AssignmentRepository,
    BranchRepository,
    ConfigurationRepository,
    ServiceRequestRepository,
    TimelineRepository,
    TransactionService,
)
from dispatch_portal.infrastructure.memory import (
    InMemoryAssignmentRepository,
    InMemoryBranchDirectory,
    InMemoryConfigurationStore,
    InMemoryServiceRequestRepository,
    InMemoryStore,
    InMemoryTimelineRepository,
    InMemoryTransactionService,
    get_memory_store,
)
from dispatch_portal.infrastructure.notifications import LoggingNotifier, OutboxNotifier

logger = get_logger(__name__)


def build_sla_policy() -> SlaPolicy:
    """SLA policy configured from settings."""
    return SlaPolicy(
        default_timeout_minutes=settings.DEFAULT_SLA_TIMEOUT_MINUTES,
        max_timeout_minutes=settings.MAX_SLA_TIMEOUT_MINUTES,
    )


@dataclass
class Storage:
    """One unit of work's worth of repositories and collaborators."""

    request_repo: ServiceRequestRepositoryInterface
    timeline_repo: TimelineRepositoryInterface
    assignment_repo: AssignmentRepositoryInterface
    branch_directory: BranchDirectoryInterface
    config_store: ConfigurationStoreInterface
    notifier: NotifierInterface
    transaction_service: TransactionServiceInterface
    sla_policy: SlaPolicy

    @property
    def timeline(self) -> Timeline:
        return Timeline(self.timeline_repo)

    def coordinator(self, clock: Clock = utc_now) -> DispatchCoordinator:
        """Dispatch coordinator wired to this storage."""
        return DispatchCoordinator(
            request_repo=self.request_repo,
            timeline=self.timeline,
            branch_directory=self.branch_directory,
            config_store=self.config_store,
            notifier=self.notifier,
            transaction_service=self.transaction_service,
            assignment_repo=self.assignment_repo,
            sla_policy=self.sla_policy,
            clock=clock,
            rejection_reason_min_length=settings.REJECTION_REASON_MIN_LENGTH,
        )

    def submit_request_use_case(self, clock: Clock = utc_now) -> SubmitRequestUseCase:
        return SubmitRequestUseCase(
            request_repo=self.request_repo,
            timeline=self.timeline,
            transaction_service=self.transaction_service,
            clock=clock,
            request_number_prefix=settings.REQUEST_NUMBER_PREFIX,
            max_number_attempts=settings.REQUEST_NUMBER_MAX_ATTEMPTS,
        )

    def reclaim_use_case(self, clock: Clock = utc_now) -> ReclaimExpiredAssignmentsUseCase:
        return ReclaimExpiredAssignmentsUseCase(
            request_repo=self.request_repo,
            coordinator=self.coordinator(clock),
            system_user_id=settings.SYSTEM_USER_ID,
            clock=clock,
        )


def build_sql_storage(session: AsyncSession) -> Storage:
    """Storage backed by a SQLAlchemy session."""
    sla_policy = build_sla_policy()
    return Storage(
        request_repo=ServiceRequestRepository(session),
        timeline_repo=TimelineRepository(session),
        assignment_repo=AssignmentRepository(session),
        branch_directory=BranchRepository(session),
        config_store=ConfigurationRepository(
            session, sla_policy, settings.SLA_TIMEOUT_CONFIG_KEY
        ),
        notifier=OutboxNotifier(session),
        transaction_service=TransactionService(session),
        sla_policy=sla_policy,
    )


def build_memory_storage(store: InMemoryStore) -> Storage:
    """Storage backed by the process-local store."""
    sla_policy = build_sla_policy()
    return Storage(
        request_repo=InMemoryServiceRequestRepository(store),
        timeline_repo=InMemoryTimelineRepository(store),
        assignment_repo=InMemoryAssignmentRepository(store),
        branch_directory=InMemoryBranchDirectory(store),
        config_store=InMemoryConfigurationStore(
            store, sla_policy, settings.SLA_TIMEOUT_CONFIG_KEY
        ),
        notifier=LoggingNotifier(store),
        transaction_service=InMemoryTransactionService(store),
        sla_policy=sla_policy,
    )


@asynccontextmanager
async def open_storage(backend: Optional[str] = None) -> AsyncIterator[Storage]:
    """Open storage for the configured backend, closing any session afterwards."""
    backend = backend or settings.STORAGE_BACKEND

    if backend == "memory":
        yield build_memory_storage(get_memory_store())
        return

    async with get_session_factory()() as session:
        try:
            yield build_sql_storage(session)
        except Exception:
            await session.rollback()
            raise
