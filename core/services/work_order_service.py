"""
Work order storage.

Orders are written with a single upsert. Service lines live in a JSONB
column on the order row; total is recomputed on every write.
"""

import logging
from uuid import UUID, uuid4

from psycopg2.extras import Json

from clients.postgres_client import PostgresClient
from core.context import OwnerContext, require_owner
from core.exceptions import NotFoundError
from core.models import WorkOrder, WorkOrderStatus
from core.work_orders import compute_total
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

# Columns rewritten by an update. id, user_id and entry_date are fixed at insert.
_UPDATABLE_COLUMNS = (
    "customer_id", "vehicle_id", "exit_date", "status", "description",
    "services", "discount", "total", "notes", "payment_method",
)


class WorkOrderService:
    """Service for work order operations."""

    def __init__(self, postgres: PostgresClient):
        self.postgres = postgres

    def upsert(self, ctx: OwnerContext, order: WorkOrder) -> WorkOrder:
        """
        Insert a new order or update an existing one.

        A new order (id None) gets a fresh id and entry_date = now. total is
        recomputed from services and discount before writing.

        Raises:
            NotFoundError: If the id belongs to another owner
        """
        ctx = require_owner(ctx)
        order = order.model_copy(deep=True)

        if order.id is None:
            order.id = uuid4()
            order.entry_date = now_utc()
        order.owner_id = ctx.owner_id
        order.total = compute_total(order.services, order.discount)

        set_clause = ", ".join(f"{col} = EXCLUDED.{col}" for col in _UPDATABLE_COLUMNS)

        row = self.postgres.execute_single(
            f"""
            INSERT INTO work_orders (
                id, user_id, entry_date,
                customer_id, vehicle_id, exit_date, status, description,
                services, discount, total, notes, payment_method
            ) VALUES (
                %s, %s, %s,
                %s, %s, %s, %s, %s,
                %s, %s, %s, %s, %s
            )
            ON CONFLICT (id) DO UPDATE SET {set_clause}
            WHERE work_orders.user_id = EXCLUDED.user_id
            RETURNING *
            """,
            (
                order.id, ctx.owner_id, order.entry_date,
                order.customer_id, order.vehicle_id, order.exit_date,
                order.status.value, order.description,
                Json([s.model_dump(mode="json") for s in order.services]),
                order.discount, order.total, order.notes, order.payment_method,
            ),
            owner_id=ctx.owner_id,
        )

        if row is None:
            raise NotFoundError(f"Work order {order.id} not found")

        saved = WorkOrder.model_validate(row)
        logger.info(f"Work order {saved.short_code} saved ({saved.status.value}, total {saved.total})")
        return saved

    def get_by_id(self, ctx: OwnerContext, order_id: UUID) -> WorkOrder | None:
        """Get work order by ID. None if not found for this owner."""
        ctx = require_owner(ctx)
        row = self.postgres.execute_single(
            "SELECT * FROM work_orders WHERE id = %s AND user_id = %s",
            (order_id, ctx.owner_id),
            owner_id=ctx.owner_id,
        )

        if row is None:
            return None

        return WorkOrder.model_validate(row)

    def list_all(
        self,
        ctx: OwnerContext,
        status: WorkOrderStatus | None = None,
        customer_id: UUID | None = None,
    ) -> list[WorkOrder]:
        """List the owner's work orders, newest first."""
        ctx = require_owner(ctx)

        conditions = ["user_id = %s"]
        params: list = [ctx.owner_id]

        if status is not None:
            conditions.append("status = %s")
            params.append(status.value)

        if customer_id is not None:
            conditions.append("customer_id = %s")
            params.append(customer_id)

        rows = self.postgres.execute(
            f"""
            SELECT * FROM work_orders
            WHERE {' AND '.join(conditions)}
            ORDER BY entry_date DESC
            """,
            tuple(params),
            owner_id=ctx.owner_id,
        )

        return [WorkOrder.model_validate(row) for row in rows]

    def count(self, ctx: OwnerContext) -> int:
        """Number of the owner's work orders."""
        ctx = require_owner(ctx)
        return self.postgres.execute_scalar(
            "SELECT COUNT(*) FROM work_orders WHERE user_id = %s",
            (ctx.owner_id,),
            owner_id=ctx.owner_id,
        ) or 0
