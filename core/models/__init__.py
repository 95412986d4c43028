"""Core domain models."""

from core.models.customer import Customer, CustomerCreate, CustomerUpdate
from core.models.vehicle import Vehicle, VehicleCreate, VehicleUpdate
from core.models.work_order import (
    WorkOrder, WorkOrderEdit, WorkOrderStatus, ServiceItem, STATUS_PROGRESSION, REVENUE_STATUSES,
)
from core.models.settings import WorkshopSettings, WorkshopSettingsUpdate, WorkshopAddress
from core.models.user import User, UserCreate, UserRole, SubscriptionStatus
from core.models.transaction import Transaction, TransactionCreate, PaymentMethod, PaymentStatus
from core.models.report import (
    DashboardStats, RevenuePoint, StatusBucket, RecentOrder, FinancialReport, FinancialReportRow,
    QuickFilter, DateRange, SystemStatus, WorkshopBackup,
)

__all__ = [
    # Customer
    "Customer", "CustomerCreate", "CustomerUpdate",
    # Vehicle
    "Vehicle", "VehicleCreate", "VehicleUpdate",
    # WorkOrder
    "WorkOrder", "WorkOrderEdit", "WorkOrderStatus", "ServiceItem",
    "STATUS_PROGRESSION", "REVENUE_STATUSES",
    # Settings
    "WorkshopSettings", "WorkshopSettingsUpdate", "WorkshopAddress",
    # User
    "User", "UserCreate", "UserRole", "SubscriptionStatus",
    # Transaction
    "Transaction", "TransactionCreate", "PaymentMethod", "PaymentStatus",
    # Reports
    "DashboardStats", "RevenuePoint", "StatusBucket", "RecentOrder", "FinancialReport",
    "FinancialReportRow", "QuickFilter", "DateRange", "SystemStatus", "WorkshopBackup",
]
