"""
Base model classes and mixins
"""
from datetime import datetime
from sqlalchemy import Column, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import declared_attr

from venue_api.core.database import Base


class TimestampMixin:
    """Mixin for created_at and updated_at timestamps"""

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )


class OrganizationMixin:
    """Mixin for organization_id foreign key"""

    @declared_attr
    def organization_id(cls):
        return Column(
            Uuid(as_uuid=True),
            ForeignKey("organizations.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
