"""Payment transaction records."""

import logging
from uuid import uuid4

from clients.postgres_client import PostgresClient
from core.context import OwnerContext, require_owner
from core.models import Transaction, TransactionCreate
from utils.timezone import now_utc

logger = logging.getLogger(__name__)


class TransactionService:
    """Service for transaction operations. Transactions are append-only."""

    def __init__(self, postgres: PostgresClient):
        self.postgres = postgres

    def record(self, ctx: OwnerContext, data: TransactionCreate) -> Transaction:
        """Record a payment for the acting owner."""
        ctx = require_owner(ctx)

        row = self.postgres.execute_returning(
            """
            INSERT INTO transactions (
                id, user_id, amount, method, status, date,
                description, external_reference
            ) VALUES (
                %s, %s, %s, %s, %s, %s,
                %s, %s
            )
            RETURNING *
            """,
            (
                uuid4(), ctx.owner_id, data.amount, data.method.value, data.status.value,
                now_utc(), data.description, data.external_reference,
            ),
            owner_id=ctx.owner_id,
        )[0]

        transaction = Transaction.model_validate(row)
        logger.info(
            f"Transaction {transaction.id} recorded: {transaction.amount} "
            f"via {transaction.method.value} ({transaction.status.value})"
        )
        return transaction

    def list_all(self, ctx: OwnerContext) -> list[Transaction]:
        """List the owner's transactions, newest first."""
        ctx = require_owner(ctx)
        rows = self.postgres.execute(
            "SELECT * FROM transactions WHERE user_id = %s ORDER BY date DESC",
            (ctx.owner_id,),
            owner_id=ctx.owner_id,
        )

        return [Transaction.model_validate(row) for row in rows]
