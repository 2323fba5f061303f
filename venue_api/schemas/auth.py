"""
Authentication request and response schemas
"""
from typing import Optional, List
from pydantic import BaseModel, EmailStr, Field, field_validator
import re

from venue_api.models.organization import OrganizationType


# ============================================================================
# REGISTRATION SCHEMAS
# ============================================================================

class RegisterRequest(BaseModel):
    """Request schema for owner registration; creates the organization too"""
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=8, description="User password")
    firstName: str = Field(..., min_length=2, max_length=100)
    lastName: Optional[str] = Field(None, max_length=100)
    organizationName: str = Field(..., min_length=2, max_length=255)
    organizationSlug: str = Field(..., min_length=2, max_length=100)
    organizationType: OrganizationType = OrganizationType.RESTAURANT

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        """Validate password strength"""
        if not re.search(r'[A-Z]', v):
            raise ValueError('Password must contain at least one uppercase letter')
        if not re.search(r'[a-z]', v):
            raise ValueError('Password must contain at least one lowercase letter')
        if not re.search(r'[0-9]', v):
            raise ValueError('Password must contain at least one number')
        return v

    @field_validator('organizationSlug')
    @classmethod
    def validate_slug(cls, v):
        """Validate slug format"""
        if not re.match(r'^[a-z0-9-]+$', v):
            raise ValueError('Slug must contain only lowercase letters, numbers, and hyphens')
        if v.startswith('-') or v.endswith('-'):
            raise ValueError('Slug cannot start or end with a hyphen')
        return v

    class Config:
        json_schema_extra = {
            "example": {
                "email": "owner@example.com",
                "password": "SecurePassword123",
                "firstName": "Asha",
                "lastName": "Rao",
                "organizationName": "The Grand Restaurant",
                "organizationSlug": "grand-restaurant",
                "organizationType": "RESTAURANT"
            }
        }


class UserResponse(BaseModel):
    id: str
    email: str
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    role: str
    organizationId: str


class OrganizationSummary(BaseModel):
    id: str
    name: str
    slug: str
    type: OrganizationType


# ============================================================================
# LOGIN SCHEMAS
# ============================================================================

class LoginRequest(BaseModel):
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., description="User password")
    fingerprint: Optional[str] = Field(None, max_length=255, description="Client device fingerprint")


class TokenResponse(BaseModel):
    """JWT tokens response schema"""
    accessToken: str
    refreshToken: str
    expiresIn: int = Field(default=1800, description="Access token expiration in seconds")
    sessionId: str
    sessionExpiresAt: str


class LoginResponse(BaseModel):
    user: UserResponse
    organization: OrganizationSummary
    tokens: TokenResponse


class RegisterResponse(LoginResponse):
    message: str


# ============================================================================
# REFRESH / LOGOUT SCHEMAS
# ============================================================================

class RefreshTokenRequest(BaseModel):
    refreshToken: str = Field(..., description="Refresh token")
    fingerprint: Optional[str] = Field(None, max_length=255)


class LogoutRequest(BaseModel):
    refreshToken: str = Field(..., description="Refresh token of the session to end")


class MessageResponse(BaseModel):
    message: str


# ============================================================================
# SESSION SCHEMAS
# ============================================================================

class SessionResponse(BaseModel):
    id: str
    deviceType: Optional[str] = None
    browser: Optional[str] = None
    os: Optional[str] = None
    ipAddress: Optional[str] = None
    createdAt: str
    lastActivityAt: Optional[str] = None
    expiresAt: str
    isCurrent: bool


class SessionListResponse(BaseModel):
    data: List[SessionResponse]


class RevokeAllRequest(BaseModel):
    keepCurrent: bool = True


class RevokeAllResponse(BaseModel):
    message: str
    revokedCount: int
