"""Workshop-level configuration."""

from pydantic import BaseModel, Field, field_validator

from utils.timezone import get_zone


class WorkshopConfig(BaseModel):
    """
    Display and default-record configuration.

    Calendar bucketing for the dashboard and reports happens in
    display_timezone; storage stays UTC.
    """

    display_timezone: str = Field(
        default="America/Sao_Paulo",
        description="IANA timezone used for calendar days/months in reports",
    )
    default_workshop_name: str = Field(
        default="Minha Oficina",
        description="Name given to auto-created workshop settings",
        min_length=1,
        max_length=255,
    )
    default_policy_terms: str = Field(
        default="Garantia de 90 dias para serviços.",
        description="Footer text given to auto-created workshop settings",
        max_length=2000,
    )

    @field_validator("display_timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        get_zone(value)
        return value
