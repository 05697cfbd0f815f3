"""
app/core/config.py

Purpose: Application configuration

- Loads environment variables
- Centralizes config values (DB URI, vendor keys, etc.)
- Validates configuration on startup
- Environment-specific settings
"""

from pydantic import Field, validator
from pydantic_settings import BaseSettings
from typing import Optional, Literal


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
        default="roommatch",
        description="MongoDB database name"
    )

    # Gemini (survey assistant)
    GEMINI_MODEL: str = Field(
        default="gemini-2.0-flash-001",
        description="Gemini model used for survey replies and extraction"
    )
    GOOGLE_API_KEY: Optional[str] = Field(
        default=None,
        description="Gemini Developer API key (takes precedence over Vertex AI)"
    )
    VERTEX_AI_ACCOUNT: Optional[str] = Field(
        default=None,
        description="Vertex AI service account JSON"
    )
    VERTEX_AI_LOCATION: str = Field(
        default="us-central1",
        description="Vertex AI region"
    )
    SURVEY_RECENT_MESSAGES: int = Field(
        default=5,
        description="Number of messages returned by the recent-messages endpoint"
    )

    # Stripe
    STRIPE_SECRET_KEY: Optional[str] = Field(
        default=None,
        description="Stripe secret API key"
    )
    STRIPE_WEBHOOK_SECRET: Optional[str] = Field(
        default=None,
        description="Stripe webhook signing secret"
    )
    CLIENT_URL: str = Field(
        default="http://localhost:3000",
        description="Frontend base URL (checkout success/cancel redirects)"
    )

    # Square
    SQUARE_BASE_URL: str = Field(
        default="https://connect.squareup.com",
        description="Square OAuth and API base URL"
    )
    SQUARE_REDIRECT_URI: str = Field(
        default="http://localhost:8000/api/square-callback",
        description="Square OAuth redirect URI registered with the application"
    )
    SQUARE_TIMEOUT: int = Field(
        default=30,
        description="Square request timeout in seconds"
    )

    # Firebase (ID token verification)
    FIREBASE_PROJECT_ID: Optional[str] = Field(
        default=None,
        description="Firebase project ID"
    )
    FIREBASE_CREDENTIALS: Optional[str] = Field(
        default=None,
        description="Firebase service account JSON"
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
        default="/api/v1",
        description="API route prefix"
    )
    CORS_ORIGINS: list = Field(
        default=["*"],
        description="Allowed CORS origins"
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

    if not settings.GOOGLE_API_KEY and not settings.VERTEX_AI_ACCOUNT:
        if settings.is_production:
            errors.append("GOOGLE_API_KEY or VERTEX_AI_ACCOUNT is required in production")

    # Production-specific validations
    if settings.is_production:
        if not settings.STRIPE_WEBHOOK_SECRET:
            errors.append("STRIPE_WEBHOOK_SECRET is required in production")
        if not settings.FIREBASE_PROJECT_ID and not settings.FIREBASE_CREDENTIALS:
            errors.append("FIREBASE_PROJECT_ID or FIREBASE_CREDENTIALS is required in production")

    if errors:
        raise ValueError(f"Configuration validation failed: {', '.join(errors)}")

    return True
