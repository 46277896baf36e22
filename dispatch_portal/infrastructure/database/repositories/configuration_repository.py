"""
Configuration store repository implementation.
"""

from typing import Optional

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from dispatch_portal.application.interfaces.services import ConfigurationStoreInterface
from dispatch_portal.application.services.sla_policy import SlaPolicy
from dispatch_portal.config.logging import get_logger
from dispatch_portal.infrastructure.database.models.configuration import ConfigurationModel

logger = get_logger(__name__)


class ConfigurationRepository(ConfigurationStoreInterface):
    """Reads admin-editable configuration values from the database."""

    def __init__(
        self,
        db: AsyncSession,
        sla_policy: SlaPolicy,
        sla_timeout_key: str = "sla_timeout_minutes",
    ):
        self.db = db
        self.sla_policy = sla_policy
        self.sla_timeout_key = sla_timeout_key

    def _scope(self, key: str, partner_id: Optional[int]):
        if partner_id is None:
            return and_(ConfigurationModel.key == key, ConfigurationModel.partner_id.is_(None))
        return and_(ConfigurationModel.key == key, ConfigurationModel.partner_id == partner_id)

    async def get_config(self, key: str, partner_id: Optional[int] = None) -> Optional[str]:
        """Get raw configuration value for the global scope or one partner."""
        stmt = select(ConfigurationModel.value).where(self._scope(key, partner_id))
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def set_config(
        self,
        key: str,
        value: str,
        description: Optional[str] = None,
        partner_id: Optional[int] = None,
    ) -> None:
        """Create or update a configuration value."""
        stmt = select(ConfigurationModel).where(self._scope(key, partner_id))
        result = await self.db.execute(stmt)
        model = result.scalar_one_or_none()

        if model is None:
            model = ConfigurationModel(
                key=key, value=value, description=description, partner_id=partner_id
            )
            self.db.add(model)
        else:
            model.value = value
            if description is not None:
                model.description = description

        await self.db.flush()
        logger.info("Configuration updated", key=key, value=value, partner_id=partner_id)

    async def get_sla_timeout_minutes(self, partner_id: Optional[int] = None) -> int:
        """
        SLA timeout in minutes.

        The partner's own value is used when it is a valid timeout; otherwise
        the global value, and the default when that is unusable too.
        """
        partner_value = None
        if partner_id is not None:
            partner_value = await self.get_config(self.sla_timeout_key, partner_id)
        global_value = await self.get_config(self.sla_timeout_key)
        return self.sla_policy.resolve_timeout(partner_value, global_value)
