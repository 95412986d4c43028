"""Payment transaction models."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import AliasChoices, BaseModel, Field, field_validator

from core.models.money import to_amount


class PaymentMethod(str, Enum):
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    PIX = "pix"
    TICKET = "ticket"  # boleto bancário


class PaymentStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    REFUNDED = "refunded"


class TransactionCreate(BaseModel):
    """Data required to record a payment."""

    amount: Decimal
    method: PaymentMethod
    status: PaymentStatus = PaymentStatus.PENDING
    description: str = Field(..., max_length=255)
    external_reference: str | None = Field(None, max_length=100)

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount(cls, value):
        return to_amount(value)


class Transaction(BaseModel):
    """Full transaction entity as stored."""

    id: UUID
    owner_id: UUID = Field(validation_alias=AliasChoices("owner_id", "user_id"))
    amount: Decimal
    method: PaymentMethod
    status: PaymentStatus
    date: datetime
    description: str
    external_reference: str | None = None

    model_config = {"from_attributes": True}
