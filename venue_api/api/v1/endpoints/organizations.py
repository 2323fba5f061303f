from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from uuid import uuid4
import logging

from venue_api.core.database import get_db
from venue_api.core.dependencies import get_accessible_organization, get_tax_configuration_service
from venue_api.core.security import require_role
from venue_api.models.organization import Organization
from venue_api.models.user import User
from venue_api.schemas.organization import OrganizationCreate, OrganizationResponse
from venue_api.services.tax_configuration import TaxConfigurationService
from venue_api.api.v1.endpoints.tax_configurations import build_tax_configuration_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/organizations", tags=["Organizations"])


def build_organization_response(organization, tax_configurations) -> OrganizationResponse:
    """Build organization response with its tax configurations"""
    return OrganizationResponse(
        id=str(organization.id),
        name=organization.name,
        slug=organization.slug,
        description=organization.description,
        type=organization.type,
        isActive=organization.is_active,
        createdAt=organization.created_at.isoformat() if organization.created_at else "",
        updatedAt=organization.updated_at.isoformat() if organization.updated_at else "",
        taxConfigurations=[build_tax_configuration_response(c) for c in tax_configurations]
    )


@router.post("", response_model=OrganizationResponse, status_code=status.HTTP_201_CREATED)
def create_organization(
    payload: OrganizationCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role("super_admin")),
    service: TaxConfigurationService = Depends(get_tax_configuration_service)
):
    """Create an organization and seed its default tax configurations"""
    # 1. Slug must be unique
    existing = db.query(Organization).filter(Organization.slug == payload.slug).first()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"error": {"code": "SLUG_EXISTS", "message": "Organization slug already taken"}}
        )

    # 2. Insert organization
    organization = Organization(
        id=uuid4(),
        name=payload.name,
        slug=payload.slug,
        description=payload.description,
        type=payload.type,
        owner_id=current_user.id,
        is_active=True,
    )
    db.add(organization)
    try:
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to create organization {payload.slug}: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": {"code": "DATABASE_ERROR", "message": "Failed to create organization"}}
        )
    db.refresh(organization)

    # 3. Seed default tax configurations
    if payload.seedDefaultTaxConfigurations:
        service.create_default_tax_configurations(organization)

    return build_organization_response(organization, service.find_by_organization(organization.id))


@router.get("/{organizationId}", response_model=OrganizationResponse)
def get_organization(
    organization: Organization = Depends(get_accessible_organization),
    service: TaxConfigurationService = Depends(get_tax_configuration_service)
):
    return build_organization_response(organization, service.find_by_organization(organization.id))
