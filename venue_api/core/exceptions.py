"""
Domain exceptions raised by the service layer
Endpoints translate these into HTTP responses
"""
from typing import Optional


class VenueAPIError(Exception):
    """Base class for service-layer errors"""

    code = "ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_detail(self) -> dict:
        return {"error": {"code": self.code, "message": self.message}}


class TaxValidationError(VenueAPIError, ValueError):
    """Order items failed validation before tax calculation"""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field

    def to_detail(self) -> dict:
        detail = super().to_detail()
        detail["error"]["field"] = self.field
        return detail


class OrganizationNotFoundError(VenueAPIError):
    code = "ORGANIZATION_NOT_FOUND"

    def __init__(self, organization_id):
        super().__init__(f"Organization with ID {organization_id} not found")
        self.organization_id = organization_id


class TaxConfigurationNotFoundError(VenueAPIError):
    code = "TAX_CONFIGURATION_NOT_FOUND"

    def __init__(self, configuration_id):
        super().__init__(f"Tax configuration with ID {configuration_id} not found")
        self.configuration_id = configuration_id
