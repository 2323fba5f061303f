"""
Tax Calculation Service
Computes subtotal, tax and total for an order from the organization's
applicable tax configuration

Three pricing modes:
    exempt     - no tax, whatever rate is stored
    inclusive  - prices already contain tax; it is backed out of the subtotal
    exclusive  - tax is added on top of the subtotal (the default)

Every derived amount is rounded half-up to 2 places where it is computed.
"""
import logging
import math
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import List, NamedTuple, Optional, Sequence, Union
from uuid import UUID

from venue_api.core.config import settings
from venue_api.core.exceptions import TaxValidationError, OrganizationNotFoundError
from venue_api.crud.tax_configuration import OrganizationRepository
from venue_api.models.organization import OrganizationType
from venue_api.models.tax import TaxConfiguration, TaxType, ServiceType
from venue_api.schemas.tax import (
    CalculateTaxRequest,
    ExampleCalculation,
    OrderItemForTax,
    OrderTotals,
    TaxBreakdown,
    TaxPreviewConfiguration,
    TaxPreviewResponse,
)
from venue_api.services.tax_configuration import TaxConfigurationService

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")

NO_CONFIGURATION_MESSAGE = "No tax configuration found"
EXEMPT_MESSAGE = "Tax Exempt"
INCLUSIVE_MESSAGE = "Tax Inclusive Pricing"
EXCLUSIVE_MESSAGE = "Tax Exclusive Pricing"

Number = Union[int, float, Decimal, str]


def to_decimal(value: Optional[Number]) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    # str() first so 0.1 stays 0.1 rather than its binary expansion
    return Decimal(str(value))


def round_money(amount: Number) -> Decimal:
    """Round to 2 decimal places, half-up"""
    return to_decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


class TaxResult(NamedTuple):
    subtotal: Decimal
    tax_amount: Decimal
    total: Decimal
    breakdown: TaxBreakdown
    display_message: Optional[str]


# -------------------------
# VALIDATION
# -------------------------
def validate_tax_calculation_params(items: Optional[Sequence[OrderItemForTax]]) -> None:
    """
    Reject the whole calculation before any arithmetic runs

    Raises:
        TaxValidationError: naming the offending field
    """
    if not items:
        raise TaxValidationError(
            "At least one item is required for tax calculation", field="items"
        )

    for item in items:
        if item.quantity is None or item.quantity <= 0:
            raise TaxValidationError(
                "Item quantity must be greater than 0", field="quantity"
            )
        if item.unitPrice is None or not math.isfinite(item.unitPrice):
            raise TaxValidationError(
                "Item unit price must be a finite number", field="unitPrice"
            )
        if item.unitPrice < 0:
            raise TaxValidationError(
                "Item unit price cannot be negative", field="unitPrice"
            )
        if item.modifiersPrice is not None and not math.isfinite(item.modifiersPrice):
            raise TaxValidationError(
                "Modifiers price must be a finite number", field="modifiersPrice"
            )
        if item.modifiersPrice is not None and item.modifiersPrice < 0:
            raise TaxValidationError(
                "Modifiers price cannot be negative", field="modifiersPrice"
            )


# -------------------------
# ARITHMETIC
# -------------------------
def calculate_subtotal(items: Sequence[OrderItemForTax]) -> Decimal:
    """Sum of quantity x unit price plus modifiers, rounded once at the end"""
    subtotal = sum(
        (
            to_decimal(item.quantity) * to_decimal(item.unitPrice)
            + to_decimal(item.modifiersPrice)
            for item in items
        ),
        ZERO,
    )
    return round_money(subtotal)


def apply_tax(subtotal: Number, configuration: Optional[TaxConfiguration]) -> TaxResult:
    """
    Apply a resolved configuration to a subtotal
    Invariant for every branch: total == subtotal + tax_amount
    """
    subtotal = round_money(subtotal)

    if configuration is None:
        return TaxResult(
            subtotal=subtotal,
            tax_amount=ZERO,
            total=subtotal,
            breakdown=TaxBreakdown(
                taxType=TaxType.GST,
                taxRate=0,
                taxAmount=0,
                isPriceInclusive=False,
                isTaxExempt=True,
            ),
            display_message=NO_CONFIGURATION_MESSAGE,
        )

    tax_rate = to_decimal(configuration.tax_rate)
    tax_type = configuration.tax_type or TaxType.GST

    if configuration.is_tax_exempt:
        return TaxResult(
            subtotal=subtotal,
            tax_amount=ZERO,
            total=subtotal,
            breakdown=TaxBreakdown(
                taxType=tax_type,
                taxRate=float(tax_rate),
                taxAmount=0,
                isPriceInclusive=False,
                isTaxExempt=True,
            ),
            display_message=EXEMPT_MESSAGE,
        )

    if configuration.is_price_inclusive:
        tax_amount = round_money(subtotal - subtotal / (1 + tax_rate / HUNDRED))
        return TaxResult(
            subtotal=subtotal - tax_amount,
            tax_amount=tax_amount,
            total=subtotal,
            breakdown=TaxBreakdown(
                taxType=tax_type,
                taxRate=float(tax_rate),
                taxAmount=float(tax_amount),
                isPriceInclusive=True,
                isTaxExempt=False,
            ),
            display_message=INCLUSIVE_MESSAGE,
        )

    tax_amount = round_money(subtotal * tax_rate / HUNDRED)
    return TaxResult(
        subtotal=subtotal,
        tax_amount=tax_amount,
        total=subtotal + tax_amount,
        breakdown=TaxBreakdown(
            taxType=tax_type,
            taxRate=float(tax_rate),
            taxAmount=float(tax_amount),
            isPriceInclusive=False,
            isTaxExempt=False,
        ),
        display_message=None,
    )


class TaxCalculationService:
    """
    Order tax calculation and preview
    Stateless apart from the single configuration lookup per call
    """

    def __init__(
        self,
        configuration_service: TaxConfigurationService,
        organizations: OrganizationRepository,
    ):
        self.configuration_service = configuration_service
        self.organizations = organizations

    def _get_organization(self, organization_id: Union[str, UUID]):
        try:
            organization_uuid = UUID(str(organization_id))
        except ValueError:
            raise OrganizationNotFoundError(organization_id)

        organization = self.organizations.get(organization_uuid)
        if not organization:
            raise OrganizationNotFoundError(organization_id)
        return organization

    def calculate_order_tax(
        self,
        organization_id: UUID,
        organization_type: OrganizationType,
        service_type: ServiceType,
        items: List[OrderItemForTax]
    ) -> OrderTotals:
        """
        Calculate tax for an order
        service_type is echoed back but does not change the rate
        """
        validate_tax_calculation_params(items)

        configuration = self.configuration_service.get_applicable_tax_configuration(
            organization_id, organization_type
        )
        try:
            result = apply_tax(calculate_subtotal(items), configuration)
        except InvalidOperation:
            # Amounts beyond the decimal context precision cannot be rounded to cents
            raise TaxValidationError(
                "Order amount is too large to calculate", field="items"
            )

        logger.debug(
            f"Tax for organization {organization_id}: subtotal={result.subtotal} "
            f"tax={result.tax_amount} total={result.total} "
            f"config={getattr(configuration, 'id', None)}"
        )

        return OrderTotals(
            subtotalAmount=float(result.subtotal),
            taxAmount=float(result.tax_amount),
            totalAmount=float(result.total),
            serviceType=service_type,
            taxBreakdown=result.breakdown,
            displayMessage=result.display_message,
        )

    def calculate_tax(self, request: CalculateTaxRequest) -> OrderTotals:
        """Calculate tax for a request, resolving the organization type first"""
        organization = self._get_organization(request.organizationId)
        return self.calculate_order_tax(
            organization.id,
            organization.type,
            request.serviceType,
            request.items,
        )

    def get_tax_preview(
        self,
        organization_id: Union[str, UUID],
        service_type: ServiceType = ServiceType.DINE_IN
    ) -> TaxPreviewResponse:
        """
        Example breakdown against a fixed reference amount for display
        service_type is accepted for API compatibility only
        """
        organization = self._get_organization(organization_id)

        configuration = self.configuration_service.get_applicable_tax_configuration(
            organization.id, organization.type
        )
        if not configuration:
            return TaxPreviewResponse(
                hasConfiguration=False,
                message="No tax configuration found for this organization",
            )

        result = apply_tax(settings.TAX_PREVIEW_REFERENCE_AMOUNT, configuration)

        return TaxPreviewResponse(
            hasConfiguration=True,
            configuration=TaxPreviewConfiguration(
                id=str(configuration.id),
                name=configuration.name,
                description=configuration.description,
                taxType=configuration.tax_type,
                taxRate=float(to_decimal(configuration.tax_rate)),
                isDefault=configuration.is_default,
                isActive=configuration.is_active,
                isTaxExempt=configuration.is_tax_exempt,
                isPriceInclusive=configuration.is_price_inclusive,
                serviceType=configuration.service_type,
            ),
            exampleCalculation=ExampleCalculation(
                subtotal=float(result.subtotal),
                taxAmount=float(result.tax_amount),
                total=float(result.total),
                message=result.display_message or EXCLUSIVE_MESSAGE,
            ),
        )
