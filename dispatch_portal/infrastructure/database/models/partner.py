"""
Partner and branch SQLAlchemy models.
"""

from sqlalchemy import Boolean, Column, Float, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from .base import BaseModel


class PartnerModel(BaseModel):
    """Partner database model (owned by the partner CRUD collaborator)."""

    __tablename__ = "partners"

    name = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False, index=True)

    branches = relationship("BranchModel", back_populates="partner")

    def __repr__(self) -> str:
        return f"<Partner(id={self.id}, name={self.name})>"


class BranchModel(BaseModel):
    """Branch database model."""

    __tablename__ = "branches"

    partner_id = Column(Integer, ForeignKey("partners.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False, default="")
    lat = Column(Float, nullable=True)
    lng = Column(Float, nullable=True)
    service_radius_km = Column(Float, nullable=False, default=10.0)
    is_active = Column(Boolean, default=True, nullable=False)

    partner = relationship("PartnerModel", back_populates="branches")

    __table_args__ = (Index("idx_branches_partner_active", "partner_id", "is_active"),)

    def __repr__(self) -> str:
        return f"<Branch(id={self.id}, partner_id={self.partner_id})>"
