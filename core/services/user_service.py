"""
User profile service.

The profile row id is the owner id. Subscription state lives on the
profile and is rewritten by the subscription guard and license redemption.
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Any

from clients.postgres_client import PostgresClient
from core.context import OwnerContext, require_owner
from core.exceptions import NotFoundError
from core.models import User, UserCreate, SubscriptionStatus
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

_UPDATABLE_COLUMNS = {
    "name", "company_name", "role", "trial_start_date",
    "subscription_expiry_date", "subscription_status", "redeemed_codes",
}


class UserService:
    """Service for user profile operations."""

    def __init__(self, postgres: PostgresClient):
        self.postgres = postgres

    def get(self, ctx: OwnerContext) -> User | None:
        """Get the acting owner's profile. None if not registered yet."""
        ctx = require_owner(ctx)
        row = self.postgres.execute_single(
            "SELECT * FROM users WHERE id = %s",
            (ctx.owner_id,),
            owner_id=ctx.owner_id,
        )

        if row is None:
            return None

        return User.model_validate(row)

    def register(self, ctx: OwnerContext, data: UserCreate, now: datetime | None = None) -> User:
        """
        Create the owner's profile with a trial starting now.

        Registering twice returns the existing profile unchanged.
        """
        ctx = require_owner(ctx)
        now = now or now_utc()

        row = self.postgres.execute_single(
            """
            INSERT INTO users (
                id, name, email, role, company_name,
                trial_start_date, subscription_status, redeemed_codes
            ) VALUES (
                %s, %s, %s, %s, %s,
                %s, %s, %s
            )
            ON CONFLICT (id) DO NOTHING
            RETURNING *
            """,
            (
                ctx.owner_id, data.name, data.email, data.role.value, data.company_name,
                now, SubscriptionStatus.TRIAL.value, [],
            ),
            owner_id=ctx.owner_id,
        )

        if row is None:
            existing = self.get(ctx)
            if existing is None:
                raise NotFoundError(f"Profile {ctx.owner_id} not found")
            return existing

        logger.info(f"Profile {ctx.owner_id} registered, trial started")
        return User.model_validate(row)

    def update(self, ctx: OwnerContext, **fields: Any) -> User:
        """
        Update profile columns.

        Raises:
            NotFoundError: If the profile does not exist
        """
        ctx = require_owner(ctx)

        for field in fields:
            if field not in _UPDATABLE_COLUMNS:
                logger.warning(f"Attempted to update unknown field '{field}' on profile")

        valid_updates = {k: v for k, v in fields.items() if k in _UPDATABLE_COLUMNS}
        if not valid_updates:
            current = self.get(ctx)
            if current is None:
                raise NotFoundError(f"Profile {ctx.owner_id} not found")
            return current

        set_parts = []
        params = []
        for field, value in valid_updates.items():
            set_parts.append(f"{field} = %s")
            params.append(value.value if isinstance(value, Enum) else value)
        params.append(ctx.owner_id)

        row = self.postgres.execute_single(
            f"""
            UPDATE users
            SET {', '.join(set_parts)}
            WHERE id = %s
            RETURNING *
            """,
            tuple(params),
            owner_id=ctx.owner_id,
        )

        if row is None:
            raise NotFoundError(f"Profile {ctx.owner_id} not found")

        return User.model_validate(row)
