"""
Customer service for CRUD operations.

Handles customer lifecycle: create, read, update.
Every query is scoped to the acting owner, both by explicit user_id filter
and by RLS on the connection.
"""

import logging
from uuid import UUID, uuid4

from clients.postgres_client import PostgresClient
from core.context import OwnerContext, require_owner
from core.exceptions import NotFoundError
from core.models import Customer, CustomerCreate, CustomerUpdate
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

# Valid columns that can be updated
_UPDATABLE_COLUMNS = {"name", "phone", "email", "document", "address"}


class CustomerService:
    """Service for customer operations."""

    def __init__(self, postgres: PostgresClient):
        self.postgres = postgres

    def create(self, ctx: OwnerContext, data: CustomerCreate) -> Customer:
        """
        Create a new customer.

        Args:
            ctx: Acting owner
            data: Customer creation data

        Returns:
            Created customer
        """
        ctx = require_owner(ctx)

        row = self.postgres.execute_returning(
            """
            INSERT INTO customers (
                id, user_id, name, phone, email, document, address, created_at
            ) VALUES (
                %s, %s, %s, %s, %s, %s, %s, %s
            )
            RETURNING *
            """,
            (
                uuid4(), ctx.owner_id, data.name, data.phone, data.email,
                data.document, data.address, now_utc()
            ),
            owner_id=ctx.owner_id,
        )[0]

        customer = Customer.model_validate(row)
        logger.info(f"Customer {customer.id} created")
        return customer

    def get_by_id(self, ctx: OwnerContext, customer_id: UUID) -> Customer | None:
        """
        Get customer by ID.

        Returns:
            Customer if found for this owner, None otherwise.
        """
        ctx = require_owner(ctx)
        row = self.postgres.execute_single(
            "SELECT * FROM customers WHERE id = %s AND user_id = %s",
            (customer_id, ctx.owner_id),
            owner_id=ctx.owner_id,
        )

        if row is None:
            return None

        return Customer.model_validate(row)

    def update(self, ctx: OwnerContext, customer_id: UUID, data: CustomerUpdate) -> Customer:
        """
        Update customer fields.

        Args:
            ctx: Acting owner
            customer_id: Customer UUID
            data: Fields to update (only non-None fields are changed)

        Raises:
            NotFoundError: If customer not found
        """
        current = self.get_by_id(ctx, customer_id)
        if current is None:
            raise NotFoundError(f"Customer {customer_id} not found")

        updates = data.model_dump(exclude_none=True)

        for field in updates:
            if field not in _UPDATABLE_COLUMNS:
                logger.warning(
                    f"Attempted to update unknown field '{field}' on customer {customer_id}"
                )

        valid_updates = {k: v for k, v in updates.items() if k in _UPDATABLE_COLUMNS}
        if not valid_updates:
            return current

        set_parts = [f"{field} = %s" for field in valid_updates]
        params = list(valid_updates.values())
        params.extend([customer_id, ctx.owner_id])

        row = self.postgres.execute_returning(
            f"""
            UPDATE customers
            SET {', '.join(set_parts)}
            WHERE id = %s AND user_id = %s
            RETURNING *
            """,
            tuple(params),
            owner_id=ctx.owner_id,
        )[0]

        return Customer.model_validate(row)

    def list_all(self, ctx: OwnerContext) -> list[Customer]:
        """List the owner's customers, alphabetically."""
        ctx = require_owner(ctx)
        rows = self.postgres.execute(
            "SELECT * FROM customers WHERE user_id = %s ORDER BY name",
            (ctx.owner_id,),
            owner_id=ctx.owner_id,
        )

        return [Customer.model_validate(row) for row in rows]

    def search(self, ctx: OwnerContext, query: str, limit: int = 20) -> list[Customer]:
        """
        Search customers by name, phone, email or document.

        Uses ILIKE for case-insensitive partial matching.
        """
        ctx = require_owner(ctx)
        pattern = f"%{query}%"

        rows = self.postgres.execute(
            """
            SELECT * FROM customers
            WHERE user_id = %s
              AND (name ILIKE %s
               OR phone ILIKE %s
               OR email ILIKE %s
               OR document ILIKE %s)
            ORDER BY name
            LIMIT %s
            """,
            (ctx.owner_id, pattern, pattern, pattern, pattern, limit),
            owner_id=ctx.owner_id,
        )

        return [Customer.model_validate(row) for row in rows]

    def count(self, ctx: OwnerContext) -> int:
        """Number of the owner's customers."""
        ctx = require_owner(ctx)
        return self.postgres.execute_scalar(
            "SELECT COUNT(*) FROM customers WHERE user_id = %s",
            (ctx.owner_id,),
            owner_id=ctx.owner_id,
        ) or 0
