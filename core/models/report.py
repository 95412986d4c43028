"""Derived report structures. Computed on demand, never persisted."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field

from core.models.customer import Customer
from core.models.money import ZERO
from core.models.settings import WorkshopSettings
from core.models.transaction import Transaction
from core.models.user import User
from core.models.vehicle import Vehicle
from core.models.work_order import WorkOrder, WorkOrderStatus


class RevenuePoint(BaseModel):
    """Revenue for one calendar month."""

    year: int
    month: int
    label: str
    value: Decimal = ZERO


class StatusBucket(BaseModel):
    """One slice of the dashboard status chart."""

    name: str
    value: int
    color: str


class RecentOrder(BaseModel):
    """Dashboard list entry for one of the newest orders."""

    order_id: UUID | None
    short_code: str
    status: WorkOrderStatus
    entry_date: datetime
    total: Decimal
    customer_name: str
    vehicle_name: str


class DashboardStats(BaseModel):
    """Dashboard KPIs for one owner at one instant."""

    workshop_name: str | None = None
    pending_quotes: int = 0
    in_progress: int = 0
    finished_total: int = 0
    monthly_revenue: Decimal = ZERO
    finished_today: int = 0
    delayed_orders: int = 0
    revenue_history: list[RevenuePoint] = Field(default_factory=list)
    status_distribution: list[StatusBucket] = Field(default_factory=list)
    recent_orders: list[RecentOrder] = Field(default_factory=list)


class FinancialReportRow(BaseModel):
    """One revenue-generating order inside the report window."""

    order_id: UUID | None
    short_code: str
    revenue_date: datetime
    customer_id: UUID | None = None
    customer_name: str | None = None
    total: Decimal


class FinancialReport(BaseModel):
    """Revenue of finished/delivered orders between start and end (inclusive)."""

    start: date
    end: date
    total_revenue: Decimal = ZERO
    count: int = 0
    average_ticket: Decimal = ZERO
    rows: list[FinancialReportRow] = Field(default_factory=list)


class QuickFilter(str, Enum):
    """Named date-range presets for the report screen."""

    TODAY = "today"
    THIS_MONTH = "this_month"
    LAST_MONTH = "last_month"

    @property
    def label(self) -> str:
        return _QUICK_FILTER_LABELS[self]


_QUICK_FILTER_LABELS = {
    QuickFilter.TODAY: "Hoje",
    QuickFilter.THIS_MONTH: "Este Mês",
    QuickFilter.LAST_MONTH: "Mês Passado",
}


class DateRange(BaseModel):
    """Inclusive calendar-day range."""

    start: date
    end: date
    label: str | None = None


class SystemStatus(BaseModel):
    """Record counts shown on the settings screen."""

    customers: int = 0
    vehicles: int = 0
    work_orders: int = 0


class WorkshopBackup(BaseModel):
    """Full JSON export of one owner's records."""

    version: str
    date: datetime
    profile: User | None = None
    settings: WorkshopSettings
    customers: list[Customer] = Field(default_factory=list)
    vehicles: list[Vehicle] = Field(default_factory=list)
    work_orders: list[WorkOrder] = Field(default_factory=list)
    transactions: list[Transaction] = Field(default_factory=list)
