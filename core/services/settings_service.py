"""
Workshop settings (identity) service.

One row per owner, created with defaults the first time it is read.
"""

import logging

from psycopg2.extras import Json

from clients.postgres_client import PostgresClient
from core.config import WorkshopConfig
from core.context import OwnerContext, require_owner
from core.models import WorkshopSettings, WorkshopSettingsUpdate

logger = logging.getLogger(__name__)

_UPDATABLE_COLUMNS = {
    "name", "legal_name", "document", "phone", "email",
    "website", "logo", "address", "policy_terms",
}


class SettingsService:
    """Service for workshop settings."""

    def __init__(self, postgres: PostgresClient, config: WorkshopConfig | None = None):
        self.postgres = postgres
        self.config = config or WorkshopConfig()

    def get(self, ctx: OwnerContext) -> WorkshopSettings:
        """
        Get the owner's workshop settings, creating the default row if absent.

        Storage failures propagate; there is no in-memory fallback.
        """
        ctx = require_owner(ctx)
        row = self.postgres.execute_single(
            "SELECT * FROM settings WHERE user_id = %s",
            (ctx.owner_id,),
            owner_id=ctx.owner_id,
        )

        if row is None:
            row = self.postgres.execute_single(
                """
                INSERT INTO settings (user_id, name, policy_terms)
                VALUES (%s, %s, %s)
                ON CONFLICT (user_id) DO UPDATE SET user_id = EXCLUDED.user_id
                RETURNING *
                """,
                (ctx.owner_id, self.config.default_workshop_name, self.config.default_policy_terms),
                owner_id=ctx.owner_id,
            )
            logger.info(f"Default workshop settings created for owner {ctx.owner_id}")

        return WorkshopSettings.model_validate(row)

    def update(self, ctx: OwnerContext, data: WorkshopSettingsUpdate) -> WorkshopSettings:
        """Update workshop identity fields. Only non-None fields change."""
        current = self.get(ctx)

        updates = data.model_dump(exclude_none=True)
        valid_updates = {k: v for k, v in updates.items() if k in _UPDATABLE_COLUMNS}
        if not valid_updates:
            return current

        if "address" in valid_updates:
            valid_updates["address"] = Json(valid_updates["address"])

        set_parts = [f"{field} = %s" for field in valid_updates]
        params = list(valid_updates.values())
        params.append(ctx.owner_id)

        row = self.postgres.execute_returning(
            f"""
            UPDATE settings
            SET {', '.join(set_parts)}
            WHERE user_id = %s
            RETURNING *
            """,
            tuple(params),
            owner_id=ctx.owner_id,
        )[0]

        logger.info(f"Workshop settings updated: {', '.join(valid_updates)}")
        return WorkshopSettings.model_validate(row)
