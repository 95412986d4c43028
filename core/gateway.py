"""
Persistence gateway.

Facade over the per-entity services exposing the storage operations the
work order engine, reporting and document rendering depend on. Getters
return None for missing records; callers decide whether that is fatal.
"""

from uuid import UUID

from clients.postgres_client import PostgresClient
from core.config import WorkshopConfig
from core.context import OwnerContext
from core.models import Customer, SystemStatus, Vehicle, WorkOrder, WorkshopSettings
from core.services.customer_service import CustomerService
from core.services.settings_service import SettingsService
from core.services.vehicle_service import VehicleService
from core.services.work_order_service import WorkOrderService


class PersistenceGateway:
    """Storage contract consumed by the core."""

    def __init__(
        self,
        customers: CustomerService,
        vehicles: VehicleService,
        work_orders: WorkOrderService,
        settings: SettingsService,
    ):
        self.customers = customers
        self.vehicles = vehicles
        self.work_orders = work_orders
        self.settings = settings

    @classmethod
    def from_postgres(
        cls, postgres: PostgresClient, config: WorkshopConfig | None = None
    ) -> "PersistenceGateway":
        """Build the gateway with every service sharing one client."""
        return cls(
            customers=CustomerService(postgres),
            vehicles=VehicleService(postgres),
            work_orders=WorkOrderService(postgres),
            settings=SettingsService(postgres, config),
        )

    # Work orders

    def list_work_orders(self, ctx: OwnerContext) -> list[WorkOrder]:
        return self.work_orders.list_all(ctx)

    def get_work_order(self, ctx: OwnerContext, order_id: UUID) -> WorkOrder | None:
        return self.work_orders.get_by_id(ctx, order_id)

    def upsert_work_order(self, ctx: OwnerContext, order: WorkOrder) -> WorkOrder:
        """Insert or update. Assigns id and entry_date when absent; recomputes total."""
        return self.work_orders.upsert(ctx, order)

    # Read-only dependencies

    def list_customers(self, ctx: OwnerContext) -> list[Customer]:
        return self.customers.list_all(ctx)

    def get_customer(self, ctx: OwnerContext, customer_id: UUID) -> Customer | None:
        return self.customers.get_by_id(ctx, customer_id)

    def list_vehicles(self, ctx: OwnerContext) -> list[Vehicle]:
        return self.vehicles.list_all(ctx)

    def get_vehicle(self, ctx: OwnerContext, vehicle_id: UUID) -> Vehicle | None:
        return self.vehicles.get_by_id(ctx, vehicle_id)

    def get_workshop_identity(self, ctx: OwnerContext) -> WorkshopSettings:
        """Workshop identity for document headers. Created with defaults on first read."""
        return self.settings.get(ctx)

    def system_status(self, ctx: OwnerContext) -> SystemStatus:
        """Counts of the owner's records."""
        return SystemStatus(
            customers=self.customers.count(ctx),
            vehicles=self.vehicles.count(ctx),
            work_orders=self.work_orders.count(ctx),
        )
