"""Authentication and subscription configuration."""

from decimal import Decimal

from pydantic import BaseModel, Field


class AuthConfig(BaseModel):
    """
    Session and subscription configuration.

    Durations are in their natural units (hours for sessions, days for
    trial and subscription periods).
    """

    # Session settings
    session_expiry_hours: int = Field(
        default=2160,  # 90 days
        description="Session lifetime in hours",
        ge=1,
        le=2160,
    )
    session_extend_on_activity: bool = Field(
        default=True,
        description="Whether to extend session expiry on activity",
    )

    # Subscription settings
    trial_days: int = Field(
        default=7,
        description="Length of the free trial",
        ge=1,
        le=90,
    )
    subscription_days: int = Field(
        default=30,
        description="Days added by each redeemed license code",
        ge=1,
        le=366,
    )
    license_price: Decimal = Field(
        default=Decimal("65.00"),
        description="Amount recorded for a redeemed monthly license",
        ge=0,
    )

    # Application
    app_name: str = Field(
        default="Oficina Pro",
        description="Application name shown on documents and responses",
    )
