"""
Organization model and the enums shared with tax configuration
"""
import enum
import uuid
from sqlalchemy import Column, String, Boolean, Text, Enum, Uuid
from sqlalchemy.orm import relationship

from venue_api.core.database import Base
from venue_api.models.base import TimestampMixin


class OrganizationType(str, enum.Enum):
    RESTAURANT = "RESTAURANT"
    HOTEL = "HOTEL"
    CAFE = "CAFE"
    FOOD_TRUCK = "FOOD_TRUCK"
    BAR = "BAR"


class Organization(Base, TimestampMixin):
    """
    Organization model for multi-tenancy
    Each organization owns its venues, staff and tax configurations
    """

    __tablename__ = "organizations"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    slug = Column(String(100), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)
    type = Column(
        Enum(OrganizationType, name="organization_type"),
        nullable=False,
        default=OrganizationType.RESTAURANT,
    )
    owner_id = Column(Uuid(as_uuid=True), nullable=True)

    # Status
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    users = relationship(
        "User", back_populates="organization", cascade="all, delete-orphan"
    )
    tax_configurations = relationship(
        "TaxConfiguration", back_populates="organization", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Organization {self.name} ({self.slug})>"
