"""Vehicle domain models."""

from uuid import UUID

from pydantic import AliasChoices, BaseModel, Field, field_validator


def _normalize_plate(value):
    if isinstance(value, str):
        return value.strip().upper()
    return value


class VehicleCreate(BaseModel):
    """Data required to register a vehicle for a customer."""

    customer_id: UUID
    plate: str = Field(..., min_length=1, max_length=10)
    brand: str | None = Field(None, max_length=100)
    model: str | None = Field(None, max_length=100)
    year: str | None = Field(None, max_length=10)
    color: str | None = Field(None, max_length=50)

    @field_validator("plate", mode="before")
    @classmethod
    def upper_plate(cls, value):
        return _normalize_plate(value)


class VehicleUpdate(BaseModel):
    """Data that can be updated on a vehicle. All fields optional."""

    customer_id: UUID | None = None
    plate: str | None = Field(None, min_length=1, max_length=10)
    brand: str | None = Field(None, max_length=100)
    model: str | None = Field(None, max_length=100)
    year: str | None = Field(None, max_length=10)
    color: str | None = Field(None, max_length=50)

    @field_validator("plate", mode="before")
    @classmethod
    def upper_plate(cls, value):
        return _normalize_plate(value)


class Vehicle(BaseModel):
    """Full vehicle entity as stored."""

    id: UUID
    owner_id: UUID = Field(validation_alias=AliasChoices("owner_id", "user_id"))
    customer_id: UUID
    plate: str
    brand: str | None = None
    model: str | None = None
    year: str | None = None
    color: str | None = None

    model_config = {"from_attributes": True}

    @field_validator("year", mode="before")
    @classmethod
    def year_as_text(cls, value):
        return str(value) if value is not None else None

    @property
    def display_name(self) -> str:
        """'Model (PLATE)', as shown in lists and search."""
        label = " ".join(p for p in [self.brand, self.model] if p) or "Veículo"
        return f"{label} ({self.plate})"
