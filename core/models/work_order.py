"""Work order (OS) domain models.

Money fields are Decimal with two places. total is a cached projection of
services and discount; compute_total() in core.work_orders is its only writer.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID, uuid4

from pydantic import AliasChoices, BaseModel, Field, field_validator

from core.models.money import ZERO, to_amount


class WorkOrderStatus(str, Enum):
    """Work order lifecycle status."""

    PENDING_QUOTE = "pending_quote"
    QUOTE_APPROVED = "quote_approved"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"
    DELIVERED = "delivered"
    CANCELED = "canceled"

    @property
    def label(self) -> str:
        """Operator-facing label."""
        return _STATUS_LABELS[self]

    @property
    def counts_as_revenue(self) -> bool:
        """Whether orders in this status contribute to revenue figures."""
        return self in REVENUE_STATUSES


_STATUS_LABELS = {
    WorkOrderStatus.PENDING_QUOTE: "Aguardando Orçamento",
    WorkOrderStatus.QUOTE_APPROVED: "Orçamento Aprovado",
    WorkOrderStatus.IN_PROGRESS: "Em Serviço",
    WorkOrderStatus.FINISHED: "Finalizado",
    WorkOrderStatus.DELIVERED: "Entregue",
    WorkOrderStatus.CANCELED: "Cancelado",
}

# Informational progression shown as a stepper; not enforced.
STATUS_PROGRESSION = (
    WorkOrderStatus.PENDING_QUOTE,
    WorkOrderStatus.QUOTE_APPROVED,
    WorkOrderStatus.IN_PROGRESS,
    WorkOrderStatus.FINISHED,
    WorkOrderStatus.DELIVERED,
)

REVENUE_STATUSES = frozenset({WorkOrderStatus.FINISHED, WorkOrderStatus.DELIVERED})


class ServiceItem(BaseModel):
    """One itemized service or part on a work order."""

    id: UUID = Field(default_factory=uuid4)
    description: str = Field("", max_length=500)
    price: Decimal = ZERO

    @field_validator("price", mode="before")
    @classmethod
    def coerce_price(cls, value):
        """Blank becomes zero; negative or malformed prices are rejected."""
        return to_amount(value)


class WorkOrderEdit(BaseModel):
    """
    A batch of operator edits to apply to a work order. All fields optional.

    services, when given, replaces the whole list (insertion order kept).
    """

    customer_id: UUID | None = None
    vehicle_id: UUID | None = None
    status: WorkOrderStatus | None = None
    description: str | None = Field(None, max_length=5000)
    services: list[ServiceItem] | None = None
    discount: Decimal | None = None
    exit_date: datetime | None = None
    notes: str | None = Field(None, max_length=5000)
    payment_method: str | None = Field(None, max_length=50)

    @field_validator("discount", mode="before")
    @classmethod
    def coerce_discount(cls, value):
        if value is None:
            return None
        return to_amount(value)


class WorkOrder(BaseModel):
    """Full work order entity. id is None until the first save."""

    id: UUID | None = None
    owner_id: UUID = Field(validation_alias=AliasChoices("owner_id", "user_id"))
    customer_id: UUID | None = None
    vehicle_id: UUID | None = None
    entry_date: datetime
    exit_date: datetime | None = None
    status: WorkOrderStatus = WorkOrderStatus.PENDING_QUOTE
    description: str = ""
    services: list[ServiceItem] = Field(default_factory=list)
    discount: Decimal = ZERO
    total: Decimal = ZERO
    notes: str | None = None
    payment_method: str | None = None

    model_config = {"from_attributes": True}

    @field_validator("discount", "total", mode="before")
    @classmethod
    def coerce_money(cls, value):
        return to_amount(value)

    @field_validator("description", mode="before")
    @classmethod
    def blank_description(cls, value):
        return value or ""

    @field_validator("services", mode="before")
    @classmethod
    def null_services(cls, value):
        return value or []

    @property
    def is_new(self) -> bool:
        """Whether the order has never been saved."""
        return self.id is None

    @property
    def subtotal(self) -> Decimal:
        """Sum of service line prices before discount."""
        return sum((s.price for s in self.services), ZERO)

    @property
    def revenue_date(self) -> datetime:
        """Date revenue is attributed to: exit date if recorded, else entry date."""
        return self.exit_date or self.entry_date

    @property
    def short_code(self) -> str:
        """Six-character display code, e.g. 'OS #3F9A1C'."""
        if self.id is None:
            return "NOVA"
        return self.id.hex[:6].upper()
