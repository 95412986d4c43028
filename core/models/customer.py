"""Customer domain models."""

from datetime import datetime
from uuid import UUID

from pydantic import AliasChoices, BaseModel, Field, EmailStr, field_validator


class CustomerCreate(BaseModel):
    """Data required to create a customer."""

    name: str = Field(..., min_length=1, max_length=255)
    phone: str | None = Field(None, max_length=50)
    email: EmailStr | None = None
    document: str | None = Field(None, max_length=20, description="CPF or CNPJ")
    address: str | None = Field(None, max_length=500)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Customer name is required")
        return value

    @field_validator("email", mode="before")
    @classmethod
    def blank_email(cls, value):
        return value or None


class CustomerUpdate(BaseModel):
    """Data that can be updated on a customer. All fields optional."""

    name: str | None = Field(None, min_length=1, max_length=255)
    phone: str | None = Field(None, max_length=50)
    email: EmailStr | None = None
    document: str | None = Field(None, max_length=20)
    address: str | None = Field(None, max_length=500)


class Customer(BaseModel):
    """Full customer entity as stored."""

    id: UUID
    owner_id: UUID = Field(validation_alias=AliasChoices("owner_id", "user_id"))
    name: str
    phone: str | None = None
    email: str | None = None
    document: str | None = None
    address: str | None = None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
