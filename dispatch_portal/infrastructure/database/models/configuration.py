"""
Configuration SQLAlchemy model.
"""

from sqlalchemy import (
    Column,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)

from .base import BaseModel


class ConfigurationModel(BaseModel):
    """Admin-editable key/value configuration, global or scoped to one partner."""

    __tablename__ = "configurations"

    key = Column(String(100), nullable=False, index=True)
    value = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    # NULL means the global scope
    partner_id = Column(Integer, ForeignKey("partners.id"), nullable=True, index=True)

    __table_args__ = (
        UniqueConstraint("key", "partner_id", name="uq_configurations_key_partner"),
        # NULLs never collide in the constraint above
        Index(
            "uq_configurations_global_key",
            "key",
            unique=True,
            postgresql_where=text("partner_id IS NULL"),
            sqlite_where=text("partner_id IS NULL"),
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<Configuration(key={self.key}, partner_id={self.partner_id}, "
            f"value={self.value})>"
        )
