"""
trok/core/config.py

Purpose: Application configuration

- Loads environment variables
- Centralizes config values (DB URI, platform credentials, bucket, etc.)
- Validates configuration on startup
- Environment-specific settings
"""

from pydantic import Field, validator
from pydantic_settings import BaseSettings
from typing import Optional, Literal

from trok.utils.constants import ONE_MINUTE, TWO_DAYS


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
        default="trok",
        description="MongoDB database name"
    )

    # Stripe (card issuing / connected accounts)
    STRIPE_SECRET_KEY: Optional[str] = Field(
        default=None,
        description="Stripe secret API key"
    )
    STRIPE_API_URL: str = Field(
        default="https://api.stripe.com/v1",
        description="Stripe REST API base URL"
    )
    STRIPE_WEBHOOK_SECRET: Optional[str] = Field(
        default=None,
        description="Signing secret used to verify Stripe webhook events"
    )

    # Plaid (bank account linking / payment initiation)
    PLAID_CLIENT_ID: Optional[str] = Field(
        default=None,
        description="Plaid client ID"
    )
    PLAID_SECRET: Optional[str] = Field(
        default=None,
        description="Plaid secret for the selected environment"
    )
    PLAID_ENV: Literal["sandbox", "development", "production"] = Field(
        default="sandbox",
        description="Plaid environment"
    )
    PLAID_CLIENT_NAME: str = Field(
        default="Trok",
        description="Client name shown inside Plaid Link"
    )
    PLAID_PAYMENT_RECIPIENT_ID: Optional[str] = Field(
        default=None,
        description="Default recipient for top-up payments when no bank details are supplied"
    )

    # Google Cloud Storage
    GCS_BUCKET_NAME: Optional[str] = Field(
        default=None,
        description="Bucket receiving onboarding documents"
    )
    GCS_UPLOAD_EXPIRY_SECONDS: int = Field(
        default=ONE_MINUTE,
        description="Lifetime of signed upload policies"
    )

    # Signup staging
    SIGNUP_TTL_SECONDS: int = Field(
        default=TWO_DAYS,
        description="Expiry of in-progress signup records"
    )

    # Background jobs
    STATEMENT_CHECK_INTERVAL_MINUTES: int = Field(
        default=60,
        description="Interval between past-due statement checks"
    )
    SCHEDULER_ENABLED: bool = Field(
        default=True,
        description="Start the background scheduler with the app"
    )

    # External services
    EXTERNAL_SERVICE_TIMEOUT: float = Field(
        default=30.0,
        description="Timeout in seconds for Stripe and Plaid requests"
    )

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
        default="/server",
        description="API route prefix"
    )
    CORS_ORIGINS: list = Field(
        default=["*"],
        description="Allowed CORS origins"
    )
    PORT: int = Field(
        default=3333,
        description="Port used when running the server directly"
    )

    @validator("STRIPE_SECRET_KEY")
    def validate_stripe_key(cls, v, values):
        """Ensure Stripe key is set in production."""
        if values.get("ENVIRONMENT") == "production" and not v:
            raise ValueError("STRIPE_SECRET_KEY is required in production environment")
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
    def plaid_base_url(self) -> str:
        return f"https://{self.PLAID_ENV}.plaid.com"

    class Config:
        env_file = ".env"
        case_sensitive = True
        env_file_encoding = "utf-8"
        extra = "ignore"


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

    if not settings.MONGODB_DB_NAME:
        errors.append("MONGODB_DB_NAME is required")

    # Production-specific validations
    if settings.is_production:
        if not settings.STRIPE_SECRET_KEY:
            errors.append("STRIPE_SECRET_KEY is required in production")
        if not settings.STRIPE_WEBHOOK_SECRET:
            errors.append("STRIPE_WEBHOOK_SECRET is required in production")
        if not settings.PLAID_CLIENT_ID or not settings.PLAID_SECRET:
            errors.append("PLAID_CLIENT_ID and PLAID_SECRET are required in production")
        if not settings.GCS_BUCKET_NAME:
            errors.append("GCS_BUCKET_NAME is required in production")

    if errors:
        raise ValueError(f"Configuration validation failed: {', '.join(errors)}")

    return True
