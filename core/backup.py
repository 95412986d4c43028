"""
JSON backup export.

Snapshot of everything one owner has stored, downloaded from the settings
screen. Export only: there is no import path.
"""

import logging
from datetime import datetime
from typing import Iterable

from core.context import OwnerContext, require_owner
from core.gateway import PersistenceGateway
from core.models import Transaction, User, WorkshopBackup
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

BACKUP_VERSION = "3.0"


def export_backup(
    gateway: PersistenceGateway,
    ctx: OwnerContext,
    profile: User | None = None,
    transactions: Iterable[Transaction] = (),
    now: datetime | None = None,
) -> WorkshopBackup:
    """Collect the owner's settings, customers, vehicles and work orders."""
    ctx = require_owner(ctx)

    backup = WorkshopBackup(
        version=BACKUP_VERSION,
        date=now or now_utc(),
        profile=profile,
        settings=gateway.get_workshop_identity(ctx),
        customers=gateway.list_customers(ctx),
        vehicles=gateway.list_vehicles(ctx),
        work_orders=gateway.list_work_orders(ctx),
        transactions=list(transactions),
    )

    logger.info(
        f"Backup exported for {ctx.owner_id}: {len(backup.customers)} customers, "
        f"{len(backup.work_orders)} work orders"
    )
    return backup
