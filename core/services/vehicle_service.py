"""
Vehicle service.

Vehicles belong to one customer. Plates are stored upper-cased.
"""

import logging
from uuid import UUID, uuid4

from clients.postgres_client import PostgresClient
from core.context import OwnerContext, require_owner
from core.exceptions import NotFoundError, ValidationError
from core.models import Vehicle, VehicleCreate, VehicleUpdate

logger = logging.getLogger(__name__)

_UPDATABLE_COLUMNS = {"customer_id", "plate", "brand", "model", "year", "color"}


class VehicleService:
    """Service for vehicle operations."""

    def __init__(self, postgres: PostgresClient):
        self.postgres = postgres

    def _require_customer(self, ctx: OwnerContext, customer_id: UUID) -> None:
        exists = self.postgres.execute_scalar(
            "SELECT 1 FROM customers WHERE id = %s AND user_id = %s",
            (customer_id, ctx.owner_id),
            owner_id=ctx.owner_id,
        )
        if not exists:
            raise ValidationError(f"Customer {customer_id} not found")

    def create(self, ctx: OwnerContext, data: VehicleCreate) -> Vehicle:
        """
        Register a vehicle for an existing customer.

        Raises:
            ValidationError: If the customer does not exist for this owner
        """
        ctx = require_owner(ctx)
        self._require_customer(ctx, data.customer_id)

        row = self.postgres.execute_returning(
            """
            INSERT INTO vehicles (
                id, user_id, customer_id, plate, brand, model, year, color
            ) VALUES (
                %s, %s, %s, %s, %s, %s, %s, %s
            )
            RETURNING *
            """,
            (
                uuid4(), ctx.owner_id, data.customer_id, data.plate,
                data.brand, data.model, data.year, data.color
            ),
            owner_id=ctx.owner_id,
        )[0]

        vehicle = Vehicle.model_validate(row)
        logger.info(f"Vehicle {vehicle.id} ({vehicle.plate}) created")
        return vehicle

    def get_by_id(self, ctx: OwnerContext, vehicle_id: UUID) -> Vehicle | None:
        """Get vehicle by ID. None if not found for this owner."""
        ctx = require_owner(ctx)
        row = self.postgres.execute_single(
            "SELECT * FROM vehicles WHERE id = %s AND user_id = %s",
            (vehicle_id, ctx.owner_id),
            owner_id=ctx.owner_id,
        )

        if row is None:
            return None

        return Vehicle.model_validate(row)

    def update(self, ctx: OwnerContext, vehicle_id: UUID, data: VehicleUpdate) -> Vehicle:
        """
        Update vehicle fields.

        Raises:
            NotFoundError: If vehicle not found
            ValidationError: If reassigned to a customer that does not exist
        """
        current = self.get_by_id(ctx, vehicle_id)
        if current is None:
            raise NotFoundError(f"Vehicle {vehicle_id} not found")

        updates = data.model_dump(exclude_none=True)

        for field in updates:
            if field not in _UPDATABLE_COLUMNS:
                logger.warning(
                    f"Attempted to update unknown field '{field}' on vehicle {vehicle_id}"
                )

        valid_updates = {k: v for k, v in updates.items() if k in _UPDATABLE_COLUMNS}
        if not valid_updates:
            return current

        if "customer_id" in valid_updates:
            self._require_customer(ctx, valid_updates["customer_id"])

        set_parts = [f"{field} = %s" for field in valid_updates]
        params = list(valid_updates.values())
        params.extend([vehicle_id, ctx.owner_id])

        row = self.postgres.execute_returning(
            f"""
            UPDATE vehicles
            SET {', '.join(set_parts)}
            WHERE id = %s AND user_id = %s
            RETURNING *
            """,
            tuple(params),
            owner_id=ctx.owner_id,
        )[0]

        return Vehicle.model_validate(row)

    def list_all(self, ctx: OwnerContext) -> list[Vehicle]:
        """List all of the owner's vehicles."""
        ctx = require_owner(ctx)
        rows = self.postgres.execute(
            "SELECT * FROM vehicles WHERE user_id = %s ORDER BY plate",
            (ctx.owner_id,),
            owner_id=ctx.owner_id,
        )

        return [Vehicle.model_validate(row) for row in rows]

    def list_for_customer(self, ctx: OwnerContext, customer_id: UUID) -> list[Vehicle]:
        """List vehicles belonging to one customer."""
        ctx = require_owner(ctx)
        rows = self.postgres.execute(
            "SELECT * FROM vehicles WHERE user_id = %s AND customer_id = %s ORDER BY plate",
            (ctx.owner_id, customer_id),
            owner_id=ctx.owner_id,
        )

        return [Vehicle.model_validate(row) for row in rows]

    def count(self, ctx: OwnerContext) -> int:
        """Number of the owner's vehicles."""
        ctx = require_owner(ctx)
        return self.postgres.execute_scalar(
            "SELECT COUNT(*) FROM vehicles WHERE user_id = %s",
            (ctx.owner_id,),
            owner_id=ctx.owner_id,
        ) or 0
