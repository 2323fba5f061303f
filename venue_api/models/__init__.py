"""
SQLAlchemy models for the application
"""
from venue_api.models.base import Base, TimestampMixin, OrganizationMixin
from venue_api.models.organization import Organization, OrganizationType
from venue_api.models.user import User, UserSession
from venue_api.models.tax import TaxConfiguration, TaxType, ServiceType

__all__ = [
    "Base",
    "TimestampMixin",
    "OrganizationMixin",
    "Organization",
    "OrganizationType",
    "User",
    "UserSession",
    "TaxConfiguration",
    "TaxType",
    "ServiceType",
]
