"""User profile and subscription state."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class UserRole(str, Enum):
    ADMIN = "admin"
    EMPLOYEE = "employee"


class SubscriptionStatus(str, Enum):
    """Access state of an account."""

    TRIAL = "trial"
    ACTIVE = "active"
    EXPIRED = "expired"


class UserCreate(BaseModel):
    """Profile created after the identity provider registers an account."""

    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=3, max_length=255)
    company_name: str | None = Field(None, max_length=255)
    role: UserRole = UserRole.ADMIN

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class User(BaseModel):
    """
    Account profile. id is the owner id every record is scoped to.

    Passwords live with the identity provider and are never stored here.
    """

    id: UUID
    name: str
    email: str
    role: UserRole = UserRole.ADMIN
    company_name: str | None = None
    trial_start_date: datetime | None = None
    subscription_expiry_date: datetime | None = None
    subscription_status: SubscriptionStatus = SubscriptionStatus.TRIAL
    redeemed_codes: list[str] = Field(default_factory=list)

    model_config = {"from_attributes": True}

    @field_validator("redeemed_codes", mode="before")
    @classmethod
    def null_codes(cls, value):
        return value or []
