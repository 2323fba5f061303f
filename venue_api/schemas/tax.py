import math
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List

from venue_api.models.organization import OrganizationType
from venue_api.models.tax import TaxType, ServiceType


def _check_rate(v):
    if v is not None and (not math.isfinite(v) or v < 0 or v > 100):
        raise ValueError('Tax rate must be between 0 and 100')
    return v


# Tax Configuration Schemas
class TaxConfigurationCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    organizationType: Optional[OrganizationType] = None
    taxType: TaxType = TaxType.GST
    taxRate: float
    isDefault: bool = False
    isActive: bool = True
    isTaxExempt: bool = False
    isPriceInclusive: bool = False
    applicableRegion: Optional[str] = None
    serviceType: Optional[ServiceType] = None

    @field_validator('taxRate')
    @classmethod
    def validate_tax_rate(cls, v):
        return _check_rate(v)

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Restaurant GST - Dine In",
                "description": "Standard GST rate for restaurant dine-in service",
                "organizationType": "RESTAURANT",
                "taxType": "GST",
                "taxRate": 5.0,
                "isDefault": True,
                "isPriceInclusive": False
            }
        }


class TaxConfigurationUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    organizationType: Optional[OrganizationType] = None
    taxType: Optional[TaxType] = None
    taxRate: Optional[float] = None
    isDefault: Optional[bool] = None
    isActive: Optional[bool] = None
    isTaxExempt: Optional[bool] = None
    isPriceInclusive: Optional[bool] = None
    applicableRegion: Optional[str] = None
    serviceType: Optional[ServiceType] = None

    @field_validator('taxRate')
    @classmethod
    def validate_tax_rate(cls, v):
        return _check_rate(v)

    @field_validator(
        'name', 'organizationType', 'taxType', 'taxRate',
        'isDefault', 'isActive', 'isTaxExempt', 'isPriceInclusive'
    )
    @classmethod
    def reject_null(cls, v, info):
        # Omit a field to leave it unchanged; these columns cannot be cleared
        if v is None:
            raise ValueError(f'{info.field_name} cannot be null')
        return v


class TaxConfigurationResponse(BaseModel):
    id: str
    organizationId: str
    organizationType: OrganizationType
    name: str
    description: Optional[str] = None
    taxType: TaxType
    taxRate: float
    isDefault: bool
    isActive: bool
    isTaxExempt: bool
    isPriceInclusive: bool
    applicableRegion: Optional[str] = None
    serviceType: Optional[ServiceType] = None
    createdAt: str
    updatedAt: str


# Tax Calculation Schemas
class OrderItemForTax(BaseModel):
    """Range checks live in validate_tax_calculation_params, not here"""
    menuItemId: str
    quantity: int
    unitPrice: float
    modifiersPrice: Optional[float] = 0


class CalculateTaxRequest(BaseModel):
    organizationId: str
    serviceType: ServiceType = ServiceType.DINE_IN
    items: List[OrderItemForTax] = []

    class Config:
        json_schema_extra = {
            "example": {
                "organizationId": "6f1c2a8e-3d44-4a8f-9a55-0f7b1b2f9e10",
                "serviceType": "DINE_IN",
                "items": [
                    {"menuItemId": "paneer-tikka", "quantity": 2, "unitPrice": 150.0},
                    {"menuItemId": "dal-makhani", "quantity": 1, "unitPrice": 200.0}
                ]
            }
        }


class TaxBreakdown(BaseModel):
    taxType: TaxType
    taxRate: float
    taxAmount: float
    isPriceInclusive: bool
    isTaxExempt: bool


class OrderTotals(BaseModel):
    subtotalAmount: float
    taxAmount: float
    totalAmount: float
    serviceType: ServiceType
    taxBreakdown: TaxBreakdown
    displayMessage: Optional[str] = None


# Tax Preview Schemas
class ExampleCalculation(BaseModel):
    subtotal: float
    taxAmount: float
    total: float
    message: str


class TaxPreviewConfiguration(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    taxType: TaxType
    taxRate: float
    isDefault: bool
    isActive: bool
    isTaxExempt: bool
    isPriceInclusive: bool
    serviceType: Optional[ServiceType] = None


class TaxPreviewResponse(BaseModel):
    hasConfiguration: bool
    message: Optional[str] = None
    configuration: Optional[TaxPreviewConfiguration] = None
    exampleCalculation: Optional[ExampleCalculation] = None
