"""
app/core/config.py

Purpose: Application configuration

- Loads environment variables
- Centralizes config values (DB URI, LINE channel, SlipOK, media storage)
- Validates configuration on startup
- Environment-specific settings
"""

from pydantic import Field, validator
from pydantic_settings import BaseSettings
from typing import List, Optional, Literal


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Validates all required configs on startup.
    """

    # Environment
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"

    # MongoDB
    MONGODB_URL: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URI"
    )
    MONGODB_DB_NAME: str = Field(
        default="dormline",
        description="MongoDB database name"
    )

    # LINE Messaging API
    LINE_CHANNEL_ACCESS_TOKEN: Optional[str] = Field(
        default=None,
        description="Long-lived channel access token for reply/push/content calls"
    )
    LINE_CHANNEL_SECRET: Optional[str] = Field(
        default=None,
        description="Channel secret used to verify x-line-signature"
    )
    LINE_ENFORCE_SIGNATURE: bool = Field(
        default=False,
        description="Reject webhook calls whose signature does not match"
    )
    LINE_API_BASE_URL: str = Field(
        default="https://api.line.me",
        description="LINE messaging API base URL"
    )
    LINE_DATA_API_BASE_URL: str = Field(
        default="https://api-data.line.me",
        description="LINE content API base URL (attachments)"
    )
    LINE_API_TIMEOUT: int = Field(
        default=15,
        description="LINE API request timeout in seconds"
    )
    LINE_ADMIN_USER_IDS: str = Field(
        default="",
        description="Comma separated LINE user ids with admin rights"
    )
    LINE_STAFF_USER_IDS: str = Field(
        default="",
        description="Comma separated LINE user ids with staff rights"
    )

    # Slip verification (SlipOK)
    SLIPOK_API_KEY: Optional[str] = Field(
        default=None,
        description="SlipOK API key (x-authorization header)"
    )
    SLIPOK_CHECK_URL: str = Field(
        default="https://api.slipok.com/api/line/apikey/60698",
        description="SlipOK slip check endpoint"
    )
    SLIPOK_TIMEOUT: int = Field(
        default=30,
        description="SlipOK request timeout in seconds"
    )

    # Media storage
    UPLOAD_DIR: str = Field(
        default="uploads",
        description="Directory where downloaded slips and meter photos are stored"
    )
    PUBLIC_API_URL: str = Field(
        default="http://localhost:8000",
        description="Public base URL used to build media links"
    )
    IMAGE_MAX_WIDTH: int = Field(
        default=1200,
        description="Images wider than this are downsampled"
    )
    IMAGE_QUALITY: int = Field(
        default=80,
        description="JPEG quality used when re-encoding images"
    )

    # Session Management
    SESSION_TIMEOUT_SECONDS: int = Field(
        default=180,
        description="Per-flow session timeout in seconds"
    )
    STAFF_ACK_TIMEOUT_SECONDS: int = Field(
        default=120,
        description="Maintenance acknowledgment window for notified staff"
    )
    SLIP_RESULT_DELAY_SECONDS: float = Field(
        default=1.0,
        description="Delay before pushing the slip result card"
    )

    # Dormitory info shown to tenants
    DORM_BANK_NAME: str = Field(default="", description="Bank name for rent transfers")
    DORM_BANK_ACCOUNT_NO: str = Field(default="", description="Bank account number")
    DORM_BANK_ACCOUNT_NAME: str = Field(default="", description="Bank account holder")
    DORM_CONTACT_PHONE: str = Field(default="", description="Office phone number")
    DORM_CONTACT_LINE_ID: str = Field(default="", description="Office LINE id")

    # Application
    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    API_PREFIX: str = Field(
        default="/api/v1",
        description="API route prefix"
    )
    CORS_ORIGINS: list = Field(
        default=["*"],
        description="Allowed CORS origins"
    )

    @validator("LINE_CHANNEL_ACCESS_TOKEN")
    def validate_access_token(cls, v, values):
        """Ensure the LINE token is set in production."""
        if values.get("ENVIRONMENT") == "production" and not v:
            raise ValueError("LINE_CHANNEL_ACCESS_TOKEN is required in production environment")
        return v

    @validator("PUBLIC_API_URL")
    def normalize_public_url(cls, v):
        """Strip wrapping quotes and trailing slashes from the media base URL."""
        return v.strip().strip("\"'").rstrip("/")

    @validator("IMAGE_QUALITY")
    def validate_quality(cls, v):
        if not 1 <= v <= 95:
            raise ValueError("IMAGE_QUALITY must be between 1 and 95")
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"

    @property
    def admin_user_ids(self) -> List[str]:
        return [x.strip() for x in self.LINE_ADMIN_USER_IDS.split(",") if x.strip()]

    @property
    def staff_user_ids(self) -> List[str]:
        return [x.strip() for x in self.LINE_STAFF_USER_IDS.split(",") if x.strip()]

    class Config:
        env_file = ".env"
        case_sensitive = True
        env_file_encoding = "utf-8"


# Global settings instance
settings = Settings()


def validate_settings():
    """
    Validates critical settings on application startup.
    Raises ValueError if any required setting is missing or invalid.
    """
    errors = []

    if not settings.MONGODB_URL:
        errors.append("MONGODB_URL is required")

    if not settings.PUBLIC_API_URL:
        errors.append("PUBLIC_API_URL is required")

    # Production-specific validations
    if settings.is_production:
        if not settings.LINE_CHANNEL_SECRET:
            errors.append("LINE_CHANNEL_SECRET is required in production")
        if not settings.SLIPOK_API_KEY:
            errors.append("SLIPOK_API_KEY is required in production")

    if errors:
        raise ValueError(f"Configuration validation failed: {', '.join(errors)}")

    return True
