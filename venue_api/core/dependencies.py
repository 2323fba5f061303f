from uuid import UUID
from fastapi import Depends, HTTPException, Path, status
from sqlalchemy.orm import Session

from venue_api.core.database import get_db
from venue_api.core.security import get_current_user
from venue_api.crud.tax_configuration import TaxConfigurationCRUD, OrganizationCRUD
from venue_api.models.user import User
from venue_api.models.organization import Organization
from venue_api.services.tax_configuration import TaxConfigurationService
from venue_api.services.tax_calculation import TaxCalculationService


# -------------------------
# ORGANIZATION DEPENDENCIES
# -------------------------
def ensure_organization_access(user: User, organization_id) -> None:
    """
    Users act only inside their own organization; super_admin acts anywhere

    Raises:
        HTTPException: 403 for a foreign organization
    """
    if getattr(user, "role", None) == "super_admin":
        return

    if str(user.organization_id) != str(organization_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": {"code": "FORBIDDEN", "message": "Access to this organization is not allowed"}}
        )


def get_accessible_organization(
    organizationId: UUID = Path(..., description="Organization ID"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> Organization:
    """
    Organization from the path, checked against the current user

    Raises:
        HTTPException: 404 if missing, 403 if not the user's own
    """
    organization = OrganizationCRUD(db).get(organizationId)

    if not organization:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": {"code": "ORGANIZATION_NOT_FOUND", "message": f"Organization with ID {organizationId} not found"}}
        )

    ensure_organization_access(current_user, organization.id)
    return organization


def require_organization_manager(
    current_user: User = Depends(get_current_user)
) -> User:
    """Require admin or manager role for configuration changes"""
    if current_user.role not in ("super_admin", "admin", "manager"):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": {"code": "FORBIDDEN", "message": "Admin or manager privileges required"}}
        )
    return current_user


# -------------------------
# SERVICE FACTORIES
# -------------------------
def get_tax_configuration_service(
    db: Session = Depends(get_db)
) -> TaxConfigurationService:
    return TaxConfigurationService(TaxConfigurationCRUD(db))


def get_tax_calculation_service(
    db: Session = Depends(get_db),
    configuration_service: TaxConfigurationService = Depends(get_tax_configuration_service)
) -> TaxCalculationService:
    return TaxCalculationService(configuration_service, OrganizationCRUD(db))
