"""Explicit owner context passed into every core and gateway call."""

from uuid import UUID

from pydantic import BaseModel

from core.exceptions import MissingOwnerError


class OwnerContext(BaseModel):
    """
    The acting owner for one request.

    Every record belongs to exactly one owner. Services stamp owner_id on
    writes and filter by it on reads; the database applies the same id to
    its Row Level Security policies.
    """

    owner_id: UUID

    model_config = {"frozen": True}


def require_owner(ctx: OwnerContext | None) -> OwnerContext:
    """Return ctx, or raise MissingOwnerError when there is no authenticated owner."""
    if ctx is None:
        raise MissingOwnerError(
            "No owner context. Core operations require an authenticated owner."
        )
    return ctx
