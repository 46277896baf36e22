"""
Transaction service for dispatch units of work.
"""

from typing import Awaitable, Callable, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from dispatch_portal.application.interfaces.services import TransactionServiceInterface
from dispatch_portal.config.logging import get_logger
from dispatch_portal.domain.exceptions.dispatch_error import ConflictError, DispatchError
from dispatch_portal.domain.exceptions.validation_error import ValidationError

logger = get_logger(__name__)

T = TypeVar("T")


class TransactionService(TransactionServiceInterface):
    """Runs a dispatch operation against one session and commits it atomically."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def execute_in_transaction(self, operation: Callable[[], Awaitable[T]]) -> T:
        """
        Execute an operation and commit everything it wrote.

        The request update, its timeline events and any outbox rows are
        flushed through the same session, so a rollback discards all of
        them together.

        Raises:
            Whatever the operation raised, after rolling back.
        """
        try:
            result = await operation()
            await self.session.commit()
        except ConflictError as e:
            await self.session.rollback()
            logger.info(
                "Lost concurrent update",
                request_id=e.request_id,
                expected_version=e.expected_version,
            )
            raise
        except (DispatchError, ValidationError) as e:
            await self.session.rollback()
            logger.warning("Dispatch transaction rolled back", error=str(e))
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error("Dispatch transaction failed", error=str(e), exc_info=True)
            raise

        logger.debug("Dispatch transaction committed")
        return result
