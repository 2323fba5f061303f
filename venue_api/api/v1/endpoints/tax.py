"""
Tax calculation API endpoint
Computes order totals from the organization's applicable tax configuration
"""
from fastapi import APIRouter, Depends, HTTPException, status

from venue_api.core.dependencies import ensure_organization_access, get_tax_calculation_service
from venue_api.core.exceptions import TaxValidationError, OrganizationNotFoundError
from venue_api.core.security import get_current_user
from venue_api.models.user import User
from venue_api.schemas.tax import CalculateTaxRequest, OrderTotals
from venue_api.services.tax_calculation import TaxCalculationService, validate_tax_calculation_params

router = APIRouter(prefix="/tax", tags=["Tax"])


@router.post("/calculate", response_model=OrderTotals)
def calculate_tax(
    request: CalculateTaxRequest,
    current_user: User = Depends(get_current_user),
    service: TaxCalculationService = Depends(get_tax_calculation_service)
):
    """
    Calculate subtotal, tax and total for an order
    Invalid items are rejected with 400 before the organization is looked up
    """
    try:
        # 1. Validate items
        validate_tax_calculation_params(request.items)

        # 2. Caller must belong to the organization
        ensure_organization_access(current_user, request.organizationId)

        # 3. Resolve configuration and compute
        return service.calculate_tax(request)
    except TaxValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.to_detail())
    except OrganizationNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.to_detail())
