"""Submit service request use case."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from dispatch_portal.application.interfaces.repositories import (
    ServiceRequestRepositoryInterface,
)
from dispatch_portal.application.interfaces.services import TransactionServiceInterface
from dispatch_portal.application.services.timeline import Timeline
from dispatch_portal.config.logging import get_logger
from dispatch_portal.domain.clock import Clock, utc_now
from dispatch_portal.domain.entities.service_request import ServiceRequest
from dispatch_portal.domain.exceptions.dispatch_error import DuplicateRequestNumberError
from dispatch_portal.domain.exceptions.validation_error import ValidationError
from dispatch_portal.domain.value_objects.actor import Actor, ActorRole
from dispatch_portal.domain.value_objects.customer_snapshot import CustomerSnapshot
from dispatch_portal.domain.value_objects.geo_point import GeoPoint
from dispatch_portal.domain.value_objects.request_status import RequestStatus
from dispatch_portal.infrastructure.monitoring.metrics import record_request_submitted

logger = get_logger(__name__)

SUBMITTED_NOTES = "Request submitted"


@dataclass(frozen=True)
class SubmitRequestCommand:
    """Data captured by the intake form."""

    category_id: int
    pickup_option_id: int
    customer_name: str
    customer_phone: str
    customer_address: str
    customer_lat: float
    customer_lng: float
    service_id: Optional[int] = None
    customer_id: Optional[int] = None


def format_request_number(prefix: str, day: datetime, sequence: int) -> str:
    """Build a human-readable number such as REQ-20240115-0001."""
    return f"{prefix}-{day.strftime('%Y%m%d')}-{sequence:04d}"


class SubmitRequestUseCase:
    """Use case for creating a request in the submitted status."""

    def __init__(
        self,
        request_repo: ServiceRequestRepositoryInterface,
        timeline: Timeline,
        transaction_service: TransactionServiceInterface,
        clock: Clock = utc_now,
        request_number_prefix: str = "REQ",
        max_number_attempts: int = 5,
    ):
        self.request_repo = request_repo
        self.timeline = timeline
        self.transaction_service = transaction_service
        self.clock = clock
        self.request_number_prefix = request_number_prefix
        self.max_number_attempts = max(1, max_number_attempts)

    async def execute(self, command: SubmitRequestCommand) -> ServiceRequest:
        """
        Create the request and its initial timeline entry atomically.

        The number is the day's count plus one. When a concurrent submission
        took that number first, the whole unit of work is rolled back and run
        again so the recount sees the winner.

        Raises:
            ValidationError: customer data or location is invalid
            DuplicateRequestNumberError: still colliding after the last attempt
        """
        location = GeoPoint.try_create(command.customer_lat, command.customer_lng)
        if location is None:
            raise ValidationError("Customer location is invalid")

        try:
            customer = CustomerSnapshot(
                name=command.customer_name.strip(),
                phone=command.customer_phone.strip(),
                address=command.customer_address.strip(),
                location=location,
            )
        except ValueError as e:
            raise ValidationError(str(e))

        now = self.clock()
        actor = Actor(id=command.customer_id, role=ActorRole.CUSTOMER)

        async def operation() -> ServiceRequest:
            day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
            count = await self.request_repo.count_submitted_between(
                day_start, day_start + timedelta(days=1)
            )
            request = await self.request_repo.create(
                ServiceRequest(
                    request_number=format_request_number(
                        self.request_number_prefix, now, count + 1
                    ),
                    category_id=command.category_id,
                    service_id=command.service_id,
                    pickup_option_id=command.pickup_option_id,
                    customer_id=command.customer_id,
                    customer=customer,
                    status=RequestStatus.SUBMITTED,
                    submitted_at=now,
                    updated_at=now,
                )
            )
            await self.timeline.append(
                request.id, RequestStatus.SUBMITTED, actor, SUBMITTED_NOTES, now
            )
            return request

        attempt = 1
        while True:
            try:
                request = await self.transaction_service.execute_in_transaction(operation)
                break
            except DuplicateRequestNumberError as e:
                if attempt >= self.max_number_attempts:
                    logger.error(
                        "Request number still taken after retries",
                        request_number=e.request_number,
                        attempts=attempt,
                    )
                    raise
                logger.info(
                    "Request number taken concurrently, retrying",
                    request_number=e.request_number,
                    attempt=attempt,
                )
                attempt += 1

        record_request_submitted(command.category_id)
        logger.info(
            "Service request submitted",
            request_id=request.id,
            request_number=request.request_number,
            category_id=command.category_id,
        )
        return request
