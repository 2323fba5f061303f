"""
Tax Configuration model
"""
import enum
import uuid
from sqlalchemy import (
    Column,
    String,
    Boolean,
    DECIMAL,
    Text,
    Enum,
    Uuid,
    CheckConstraint,
    Index,
)
from sqlalchemy.orm import relationship

from venue_api.core.database import Base
from venue_api.models.base import TimestampMixin, OrganizationMixin
from venue_api.models.organization import OrganizationType


class TaxType(str, enum.Enum):
    GST = "GST"


class ServiceType(str, enum.Enum):
    DINE_IN = "DINE_IN"
    TAKEAWAY = "TAKEAWAY"
    DELIVERY = "DELIVERY"
    ALL = "ALL"


class TaxConfiguration(Base, TimestampMixin, OrganizationMixin):
    """
    Tax Configuration model - one tax rule owned by an organization
    Several may coexist; the resolver picks the newest active one
    """

    __tablename__ = "tax_configurations"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_type = Column(
        Enum(OrganizationType, name="organization_type"), nullable=False
    )
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    # Rate details
    tax_type = Column(Enum(TaxType, name="tax_type"), default=TaxType.GST, nullable=False)
    tax_rate = Column(DECIMAL(5, 2), nullable=False)

    # Flags
    is_default = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    is_tax_exempt = Column(Boolean, default=False, nullable=False)
    is_price_inclusive = Column(Boolean, default=False, nullable=False)

    # Scoping (informational: service type does not affect resolution)
    applicable_region = Column(String(255), nullable=True)
    service_type = Column(Enum(ServiceType, name="service_type"), nullable=True)

    # Relationships
    organization = relationship("Organization", back_populates="tax_configurations")

    __table_args__ = (
        CheckConstraint("tax_rate >= 0 AND tax_rate <= 100", name="ck_tax_rate_range"),
        Index(
            "ix_tax_configurations_lookup",
            "organization_id",
            "organization_type",
            "is_active",
        ),
    )

    def __repr__(self):
        return f"<TaxConfiguration {self.name} - {self.tax_rate}%>"
