"""Workshop identity (settings) models.

One settings row per owner. Printed on every document header and footer.
"""

from uuid import UUID

from pydantic import AliasChoices, BaseModel, Field, field_validator


class WorkshopAddress(BaseModel):
    """Postal address of the workshop."""

    street: str = ""
    number: str = ""
    neighborhood: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""

    def one_line(self) -> str:
        """Render as a single printable line, skipping empty parts."""
        street = ", ".join(p for p in [self.street, self.number] if p)
        city = " - ".join(p for p in [self.city, self.state] if p)
        parts = [street, self.neighborhood, city]
        line = ", ".join(p for p in parts if p)
        if self.zip:
            line = f"{line} - CEP {self.zip}" if line else f"CEP {self.zip}"
        return line


class WorkshopSettingsUpdate(BaseModel):
    """Editable workshop identity fields. All optional."""

    name: str | None = Field(None, min_length=1, max_length=255)
    legal_name: str | None = Field(None, max_length=255)
    document: str | None = Field(None, max_length=20)
    phone: str | None = Field(None, max_length=50)
    email: str | None = Field(None, max_length=255)
    website: str | None = Field(None, max_length=255)
    logo: str | None = None
    address: WorkshopAddress | None = None
    policy_terms: str | None = Field(None, max_length=2000)


class WorkshopSettings(BaseModel):
    """Workshop identity as stored."""

    owner_id: UUID = Field(validation_alias=AliasChoices("owner_id", "user_id"))
    name: str
    legal_name: str | None = None
    document: str | None = None
    phone: str | None = None
    email: str | None = None
    website: str | None = None
    logo: str | None = Field(None, description="Base64 image or data URL")
    address: WorkshopAddress = Field(default_factory=WorkshopAddress)
    policy_terms: str | None = None

    model_config = {"from_attributes": True}

    @field_validator("address", mode="before")
    @classmethod
    def null_address(cls, value):
        return value or {}
