"""Pydantic models for auth domain."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from core.models import SubscriptionStatus


class Session(BaseModel):
    """An active owner session."""

    token: str = Field(..., description="Session token (opaque string)")
    owner_id: UUID
    created_at: datetime
    expires_at: datetime
    last_activity_at: datetime


class SubscriptionState(BaseModel):
    """Result of a subscription check, as shown to the client."""

    status: SubscriptionStatus
    has_access: bool
    days_remaining: int
    expires_at: datetime | None = None


class RedeemRequest(BaseModel):
    """Payload for redeeming a monthly license code."""

    code: str = Field(..., min_length=1, max_length=40)
