"""
Application configuration
Loads settings from environment variables
"""
from pydantic_settings import BaseSettings
from typing import List, Union
from pydantic import field_validator


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Venue Tax API"
    VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"

    # API
    API_V1_PREFIX: str = "/api/v1"

    # Security
    SECRET_KEY: str
    REFRESH_SECRET_KEY: str = ""
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    REFRESH_TOKEN_EXPIRE_DAYS: int = 30
    BCRYPT_ROUNDS: int = 12

    # Sessions
    SESSION_EXPIRE_DAYS: int = 30
    SESSION_RENEWAL_THRESHOLD_DAYS: int = 7
    SESSION_INACTIVITY_TIMEOUT_DAYS: int = 14
    SESSION_RETENTION_DAYS: int = 7
    STRICT_FINGERPRINT_CHECK: bool = False

    # Database
    DATABASE_URL: str
    DATABASE_POOL_SIZE: int = 5
    DATABASE_MAX_OVERFLOW: int = 0

    # Tax
    TAX_PREVIEW_REFERENCE_AMOUNT: float = 100.0

    # CORS Origins
    CORS_ORIGINS: Union[List[str], str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from string or list"""
        if isinstance(v, list):
            return v

        if isinstance(v, str):
            if not v.strip():
                return []
            origins = [origin.strip() for origin in v.split(",")]
            return [origin for origin in origins if origin]

        return ["http://localhost:3000", "http://localhost:5173"]

    @property
    def refresh_secret(self) -> str:
        """Refresh tokens fall back to the access secret when none is set"""
        return self.REFRESH_SECRET_KEY or self.SECRET_KEY

    class Config:
        env_file = ".env"
        case_sensitive = True


# Create settings instance
settings = Settings()
