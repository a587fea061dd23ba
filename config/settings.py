"""
Configuration settings for the application
"""
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,  # Allow both field name and alias
        extra="ignore",
    )

    # Stripe billing configuration
    stripe_secret_key: Optional[str] = Field(default=None, alias="STRIPE_SECRET_KEY")
    stripe_webhook_secret: Optional[str] = Field(default=None, alias="STRIPE_WEBHOOK_SECRET")
    # Recurring price; without it an inline price on STRIPE_PRODUCT_ID is used
    stripe_price_id: Optional[str] = Field(default=None, alias="STRIPE_PRICE_ID")
    stripe_product_id: Optional[str] = Field(default=None, alias="STRIPE_PRODUCT_ID")
    stripe_api_version: str = Field(default="2024-06-20", alias="STRIPE_API_VERSION")
    # Max age (seconds) of a webhook signature timestamp
    stripe_webhook_tolerance: int = Field(default=300, alias="STRIPE_WEBHOOK_TOLERANCE")

    # Pricing configuration (minor units)
    billing_currency: str = Field(default="usd", alias="BILLING_CURRENCY")
    monthly_price_cents: int = Field(default=499, alias="MONTHLY_PRICE_CENTS")
    lifetime_price_cents: int = Field(default=2999, alias="LIFETIME_PRICE_CENTS")
    # Stripe customers are keyed by <wallet>@<domain>
    customer_email_domain: str = Field(default="lexiguard.app", alias="CUSTOMER_EMAIL_DOMAIN")

    # Profile limits
    max_trusted_contacts: int = Field(default=5, alias="MAX_TRUSTED_CONTACTS")

    # Infrastructure configuration
    database_url: Optional[str] = Field(default="sqlite+aiosqlite:///./lexiguard.db", alias="DATABASE_URL")

    # Frontend configuration
    frontend_url: Optional[str] = Field(default="http://localhost:3000", alias="FRONTEND_URL")

    # Render.com deployment configuration
    render: Optional[str] = Field(default=None, alias="RENDER")
    render_external_url: Optional[str] = Field(default=None, alias="RENDER_EXTERNAL_URL")
    render_service_name: Optional[str] = Field(default=None, alias="RENDER_SERVICE_NAME")

    # Environment configuration
    env: Optional[str] = Field(default=None, alias="ENV")


# Instantiate settings object
settings = Settings()

# Determine if we're in production mode
IS_PRODUCTION = bool(settings.render) or bool(settings.env and settings.env.lower() == "production")
