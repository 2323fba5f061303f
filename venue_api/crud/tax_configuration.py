"""
Tax Configuration CRUD Operations
Database access for tax configurations and their owning organizations
"""
from typing import List, Optional, Protocol
from uuid import UUID
from sqlalchemy import case
from sqlalchemy.orm import Session

from venue_api.models.organization import Organization, OrganizationType
from venue_api.models.tax import TaxConfiguration


class TaxConfigurationRepository(Protocol):
    """What the tax services need from a configuration store"""

    def find_active(
        self, organization_id: UUID, organization_type: OrganizationType
    ) -> List[TaxConfiguration]: ...

    def list_for_organization(self, organization_id: UUID) -> List[TaxConfiguration]: ...

    def get(
        self, configuration_id: UUID, organization_id: UUID
    ) -> Optional[TaxConfiguration]: ...

    def add(self, configuration: TaxConfiguration) -> TaxConfiguration: ...

    def save(self, configuration: TaxConfiguration) -> TaxConfiguration: ...

    def delete(self, configuration: TaxConfiguration) -> None: ...


class OrganizationRepository(Protocol):
    def get(self, organization_id: UUID) -> Optional[Organization]: ...


class TaxConfigurationCRUD:
    """SQLAlchemy-backed tax configuration store bound to one session"""

    def __init__(self, db: Session):
        self.db = db

    def find_active(
        self, organization_id: UUID, organization_type: OrganizationType
    ) -> List[TaxConfiguration]:
        """Active configurations for the organization type, newest first"""
        return self.db.query(TaxConfiguration).filter(
            TaxConfiguration.organization_id == organization_id,
            TaxConfiguration.organization_type == organization_type,
            TaxConfiguration.is_active == True
        ).order_by(
            TaxConfiguration.created_at.desc(),
            TaxConfiguration.id.asc()
        ).all()

    def list_for_organization(self, organization_id: UUID) -> List[TaxConfiguration]:
        # NULL service types sort after the named ones, as on PostgreSQL
        return self.db.query(TaxConfiguration).filter(
            TaxConfiguration.organization_id == organization_id
        ).order_by(
            TaxConfiguration.is_default.desc(),
            TaxConfiguration.organization_type.asc(),
            case((TaxConfiguration.service_type.is_(None), 1), else_=0),
            TaxConfiguration.service_type.asc(),
            TaxConfiguration.created_at.desc()
        ).all()

    def get(
        self, configuration_id: UUID, organization_id: UUID
    ) -> Optional[TaxConfiguration]:
        return self.db.query(TaxConfiguration).filter(
            TaxConfiguration.id == configuration_id,
            TaxConfiguration.organization_id == organization_id
        ).first()

    def add(self, configuration: TaxConfiguration) -> TaxConfiguration:
        self.db.add(configuration)
        return self.save(configuration)

    def save(self, configuration: TaxConfiguration) -> TaxConfiguration:
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(configuration)
        return configuration

    def delete(self, configuration: TaxConfiguration) -> None:
        self.db.delete(configuration)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise


class OrganizationCRUD:
    """Organization lookups used by the tax services"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, organization_id: UUID) -> Optional[Organization]:
        return self.db.query(Organization).filter(
            Organization.id == organization_id
        ).first()

    def list_without_tax_configuration(self) -> List[Organization]:
        """Organizations that have never had a tax configuration"""
        return self.db.query(Organization).filter(
            ~Organization.tax_configurations.any()
        ).order_by(Organization.created_at.asc()).all()
