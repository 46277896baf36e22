"""
Collaborator interfaces consumed by the dispatch core.
"""

from abc import ABC, abstractmethod
from typing import Awaitable, Callable, List, Optional, TypeVar

from dispatch_portal.domain.entities.branch import Branch
from dispatch_portal.domain.events.request_status_changed import RequestStatusChanged

T = TypeVar("T")


class BranchDirectoryInterface(ABC):
    """Read-only access to partner branches."""

    @abstractmethod
    async def get_branch(self, branch_id: int) -> Optional[Branch]:
        """Get branch by ID."""
        pass

    @abstractmethod
    async def list_branches(self, partner_id: Optional[int] = None) -> List[Branch]:
        """
        List active branches.

        With partner_id, only that partner's branches; otherwise the branches
        of every active partner.
        """
        pass


class ConfigurationStoreInterface(ABC):
    """Read-only access to admin-editable configuration values."""

    @abstractmethod
    async def get_config(self, key: str, partner_id: Optional[int] = None) -> Optional[str]:
        """
        Get raw configuration value, or None if absent.

        With partner_id, the partner-scoped value; otherwise the global one.
        """
        pass

    @abstractmethod
    async def get_sla_timeout_minutes(self, partner_id: Optional[int] = None) -> int:
        """
        SLA timeout in minutes for a partner.

        A valid partner-scoped value wins; otherwise the global value, and
        the default when neither is usable.
        """
        pass


class NotifierInterface(ABC):
    """Customer/partner notification collaborator."""

    @abstractmethod
    async def notify(self, event: RequestStatusChanged) -> None:
        """Inform the outside world of a committed status change."""
        pass


class TransactionServiceInterface(ABC):
    """Unit-of-work boundary for a single operation."""

    @abstractmethod
    async def execute_in_transaction(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Run operation atomically: commit on success, roll back and re-raise on error."""
        pass
