from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
import re

from venue_api.models.organization import OrganizationType
from venue_api.schemas.tax import TaxConfigurationResponse


class OrganizationCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    slug: str = Field(..., min_length=2, max_length=100)
    description: Optional[str] = None
    type: OrganizationType
    seedDefaultTaxConfigurations: bool = True

    @field_validator('slug')
    @classmethod
    def validate_slug(cls, v):
        if not re.match(r'^[a-z0-9-]+$', v):
            raise ValueError('Slug must contain only lowercase letters, numbers, and hyphens')
        return v


class OrganizationResponse(BaseModel):
    id: str
    name: str
    slug: str
    description: Optional[str] = None
    type: OrganizationType
    isActive: bool
    createdAt: str
    updatedAt: str
    taxConfigurations: List[TaxConfigurationResponse] = []
