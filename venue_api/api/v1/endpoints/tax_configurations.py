from fastapi import APIRouter, Depends, HTTPException, Query, status
from uuid import UUID
from typing import List

from venue_api.core.dependencies import (
    get_accessible_organization,
    get_tax_configuration_service,
    get_tax_calculation_service,
    require_organization_manager,
)
from venue_api.core.exceptions import TaxConfigurationNotFoundError, OrganizationNotFoundError
from venue_api.models.organization import Organization
from venue_api.models.tax import ServiceType
from venue_api.models.user import User
from venue_api.schemas.tax import (
    TaxConfigurationCreate,
    TaxConfigurationUpdate,
    TaxConfigurationResponse,
    TaxPreviewResponse,
)
from venue_api.services.tax_configuration import TaxConfigurationService
from venue_api.services.tax_calculation import TaxCalculationService

router = APIRouter(
    prefix="/organizations/{organizationId}/tax-configurations",
    tags=["Tax Configurations"]
)


def build_tax_configuration_response(configuration) -> TaxConfigurationResponse:
    """Build tax configuration response from a model row"""
    return TaxConfigurationResponse(
        id=str(configuration.id),
        organizationId=str(configuration.organization_id),
        organizationType=configuration.organization_type,
        name=configuration.name,
        description=configuration.description,
        taxType=configuration.tax_type,
        taxRate=float(configuration.tax_rate),
        isDefault=configuration.is_default,
        isActive=configuration.is_active,
        isTaxExempt=configuration.is_tax_exempt,
        isPriceInclusive=configuration.is_price_inclusive,
        applicableRegion=configuration.applicable_region,
        serviceType=configuration.service_type,
        createdAt=configuration.created_at.isoformat() if configuration.created_at else "",
        updatedAt=configuration.updated_at.isoformat() if configuration.updated_at else ""
    )


def _not_found(exc: TaxConfigurationNotFoundError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=exc.to_detail()
    )


@router.post("", response_model=TaxConfigurationResponse, status_code=status.HTTP_201_CREATED)
def create_tax_configuration(
    payload: TaxConfigurationCreate,
    organization: Organization = Depends(get_accessible_organization),
    current_user: User = Depends(require_organization_manager),
    service: TaxConfigurationService = Depends(get_tax_configuration_service)
):
    """Create a tax configuration for the organization"""
    configuration = service.create(organization, payload)
    return build_tax_configuration_response(configuration)


@router.get("", response_model=List[TaxConfigurationResponse])
def list_tax_configurations(
    organization: Organization = Depends(get_accessible_organization),
    service: TaxConfigurationService = Depends(get_tax_configuration_service)
):
    """List the organization's tax configurations, defaults first"""
    configurations = service.find_by_organization(organization.id)
    return [build_tax_configuration_response(c) for c in configurations]


@router.get("/preview", response_model=TaxPreviewResponse)
def preview_tax_configuration(
    serviceType: ServiceType = Query(ServiceType.DINE_IN),
    organization: Organization = Depends(get_accessible_organization),
    service: TaxCalculationService = Depends(get_tax_calculation_service)
):
    """Example calculation with the configuration currently applied to orders"""
    try:
        return service.get_tax_preview(organization.id, serviceType)
    except OrganizationNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.to_detail())


@router.get("/{configurationId}", response_model=TaxConfigurationResponse)
def get_tax_configuration(
    configurationId: UUID,
    organization: Organization = Depends(get_accessible_organization),
    service: TaxConfigurationService = Depends(get_tax_configuration_service)
):
    try:
        configuration = service.find_one(configurationId, organization.id)
    except TaxConfigurationNotFoundError as e:
        raise _not_found(e)
    return build_tax_configuration_response(configuration)


@router.patch("/{configurationId}", response_model=TaxConfigurationResponse)
def update_tax_configuration(
    configurationId: UUID,
    payload: TaxConfigurationUpdate,
    organization: Organization = Depends(get_accessible_organization),
    current_user: User = Depends(require_organization_manager),
    service: TaxConfigurationService = Depends(get_tax_configuration_service)
):
    """Update only the fields present in the request"""
    try:
        configuration = service.update(configurationId, organization.id, payload)
    except TaxConfigurationNotFoundError as e:
        raise _not_found(e)
    return build_tax_configuration_response(configuration)


@router.delete("/{configurationId}", status_code=status.HTTP_204_NO_CONTENT)
def delete_tax_configuration(
    configurationId: UUID,
    organization: Organization = Depends(get_accessible_organization),
    current_user: User = Depends(require_organization_manager),
    service: TaxConfigurationService = Depends(get_tax_configuration_service)
):
    try:
        service.remove(configurationId, organization.id)
    except TaxConfigurationNotFoundError as e:
        raise _not_found(e)
    return None
