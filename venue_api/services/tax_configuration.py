"""
Tax Configuration Service
Admin-facing CRUD on tax configurations plus the resolver that picks the
single configuration applied to an organization's orders
"""
import logging
from typing import List, Optional
from uuid import UUID, uuid4

from venue_api.core.exceptions import TaxConfigurationNotFoundError
from venue_api.crud.tax_configuration import TaxConfigurationRepository
from venue_api.models.organization import Organization, OrganizationType
from venue_api.models.tax import TaxConfiguration, TaxType, ServiceType
from venue_api.schemas.tax import TaxConfigurationCreate, TaxConfigurationUpdate

logger = logging.getLogger(__name__)

# Request field -> model column
FIELD_MAP = {
    "name": "name",
    "description": "description",
    "organizationType": "organization_type",
    "taxType": "tax_type",
    "taxRate": "tax_rate",
    "isDefault": "is_default",
    "isActive": "is_active",
    "isTaxExempt": "is_tax_exempt",
    "isPriceInclusive": "is_price_inclusive",
    "applicableRegion": "applicable_region",
    "serviceType": "service_type",
}

# One default row per organization type; no service type means every service
DEFAULT_TAX_CONFIGURATIONS = {
    OrganizationType.RESTAURANT: {
        "name": "Restaurant GST",
        "description": "Standard GST rate for restaurant services (applies to dine-in, takeaway, and delivery)",
        "taxRate": 5.0,
        "serviceType": None,
    },
    OrganizationType.HOTEL: {
        "name": "Hotel GST - Budget",
        "description": "Standard GST rate for hotels with room tariff below 7,500 (applies to all food services)",
        "taxRate": 5.0,
        "serviceType": None,
    },
    OrganizationType.CAFE: {
        "name": "Cafe GST",
        "description": "Standard GST rate for cafe services",
        "taxRate": 5.0,
        "serviceType": ServiceType.ALL,
    },
    OrganizationType.FOOD_TRUCK: {
        "name": "Food Truck GST",
        "description": "Standard GST rate for food truck services",
        "taxRate": 5.0,
        "serviceType": ServiceType.ALL,
    },
    OrganizationType.BAR: {
        "name": "Bar GST",
        "description": "Higher GST rate for establishments serving alcohol",
        "taxRate": 18.0,
        "serviceType": ServiceType.ALL,
    },
}

FALLBACK_TAX_CONFIGURATION = {
    "name": "Default GST",
    "description": "Default GST configuration (applies to all service types)",
    "taxRate": 5.0,
    "serviceType": None,
}


def default_tax_configurations_for(
    organization_type: OrganizationType,
) -> List[TaxConfigurationCreate]:
    """Seed payloads for a new organization of the given type"""
    template = DEFAULT_TAX_CONFIGURATIONS.get(organization_type, FALLBACK_TAX_CONFIGURATION)
    return [
        TaxConfigurationCreate(
            organizationType=organization_type,
            taxType=TaxType.GST,
            isDefault=True,
            isActive=True,
            isTaxExempt=False,
            isPriceInclusive=False,
            **template,
        )
    ]


class TaxConfigurationService:
    """
    Tax configuration business logic
    The store is injected so the resolver can run against any repository
    """

    def __init__(self, repository: TaxConfigurationRepository):
        self.repository = repository

    # ========================================================================
    # RESOLVER
    # ========================================================================

    def get_applicable_tax_configuration(
        self,
        organization_id: UUID,
        organization_type: OrganizationType
    ) -> Optional[TaxConfiguration]:
        """
        Most recently created active configuration for the organization type.
        Equal creation times fall back to the lowest id.
        Service type never narrows the choice.
        """
        candidates = self.repository.find_active(organization_id, organization_type)
        if not candidates:
            logger.debug(
                f"No active tax configuration for organization {organization_id} ({organization_type.value})"
            )
            return None

        # Two stable sorts: newest first, lowest id among equals
        ordered = sorted(candidates, key=lambda c: str(c.id))
        ordered = sorted(ordered, key=lambda c: c.created_at, reverse=True)
        return ordered[0]

    # ========================================================================
    # CRUD
    # ========================================================================

    def create(
        self, organization: Organization, payload: TaxConfigurationCreate
    ) -> TaxConfiguration:
        """Create a tax configuration owned by the organization"""
        values = {
            FIELD_MAP[key]: value for key, value in payload.model_dump().items()
        }
        if values["organization_type"] is None:
            values["organization_type"] = organization.type

        configuration = TaxConfiguration(
            id=uuid4(),
            organization_id=organization.id,
            **values,
        )
        configuration = self.repository.add(configuration)
        logger.info(
            f"Created tax configuration '{configuration.name}' ({configuration.tax_rate}%) "
            f"for organization {organization.id}"
        )
        return configuration

    def find_by_organization(self, organization_id: UUID) -> List[TaxConfiguration]:
        return self.repository.list_for_organization(organization_id)

    def find_one(self, configuration_id: UUID, organization_id: UUID) -> TaxConfiguration:
        configuration = self.repository.get(configuration_id, organization_id)
        if not configuration:
            raise TaxConfigurationNotFoundError(configuration_id)
        return configuration

    def update(
        self,
        configuration_id: UUID,
        organization_id: UUID,
        payload: TaxConfigurationUpdate
    ) -> TaxConfiguration:
        """Partial update; only fields present in the request change"""
        configuration = self.find_one(configuration_id, organization_id)

        changes = payload.model_dump(exclude_unset=True)
        for key, value in changes.items():
            setattr(configuration, FIELD_MAP[key], value)

        configuration = self.repository.save(configuration)
        logger.info(
            f"Updated tax configuration {configuration_id} fields: {', '.join(sorted(changes)) or 'none'}"
        )
        return configuration

    def remove(self, configuration_id: UUID, organization_id: UUID) -> TaxConfiguration:
        configuration = self.find_one(configuration_id, organization_id)
        self.repository.delete(configuration)
        logger.info(f"Deleted tax configuration {configuration_id}")
        return configuration

    # ========================================================================
    # SEEDING
    # ========================================================================

    def create_default_tax_configurations(
        self, organization: Organization
    ) -> List[TaxConfiguration]:
        """
        Seed default configurations for a new organization
        A row that fails is logged and skipped; the rest are still created
        """
        created = []
        for payload in default_tax_configurations_for(organization.type):
            try:
                created.append(self.create(organization, payload))
            except Exception as e:
                logger.error(
                    f"Failed to create default tax configuration '{payload.name}' "
                    f"for organization {organization.id}: {e}"
                )
        return created
