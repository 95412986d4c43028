"""
Monthly license codes.

A code is derived from the account e-mail and the calendar month, so an
administrator can issue it offline after receiving payment:

    PRO-{email hash}-{month hash}-{checksum}

Each code is accepted once per account and only during its month.
"""

import logging
from datetime import date, datetime, timedelta

from auth.config import AuthConfig
from auth.exceptions import LicenseRejectedError, ProfileNotFoundError
from core.context import OwnerContext, require_owner
from core.models import (
    PaymentMethod, PaymentStatus, SubscriptionStatus, TransactionCreate, User,
)
from core.services.transaction_service import TransactionService
from core.services.user_service import UserService
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

RENEWAL_DESCRIPTION = "Renovação Mensal (30 Dias)"


def _string_hash(text: str) -> int:
    """31-multiplier string hash wrapped to a signed 32-bit int, over UTF-16 code units."""
    value = 0
    units = text.encode("utf-16-le")
    for i in range(0, len(units), 2):
        value = (value * 31 + int.from_bytes(units[i:i + 2], "little")) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return value


def _hash_part(text: str) -> str:
    return format(abs(_string_hash(text)), "X").rjust(4, "0")[:4]


def normalize_code(code: str) -> str:
    return code.strip().upper()


def generate_license_code(email: str, on: date | datetime) -> str:
    """
    License code for an e-mail in the month containing on.

    The e-mail is trimmed and lower-cased first. The month key is the month
    number followed by the year, without padding ('12024' for January 2024).
    """
    clean_email = email.strip().lower()
    month_key = f"{on.month}{on.year}"
    checksum = len(clean_email) * 7 + int(month_key) % 99
    salt = format(checksum, "X").rjust(2, "0")
    return f"PRO-{_hash_part(clean_email)}-{_hash_part(month_key)}-{salt}"


class LicenseService:
    """Redeems license codes and starts trials."""

    def __init__(self, users: UserService, transactions: TransactionService, config: AuthConfig):
        self._users = users
        self._transactions = transactions
        self._config = config

    def _get_user(self, ctx: OwnerContext) -> User:
        user = self._users.get(ctx)
        if user is None:
            raise ProfileNotFoundError(f"No profile for owner {ctx.owner_id}")
        return user

    def redeem(self, ctx: OwnerContext, code: str, now: datetime | None = None) -> User:
        """
        Redeem a monthly code for the owner's account e-mail.

        Records an approved PIX transaction, extends the expiry by
        subscription_days from the later of the current expiry and now,
        and marks the account ACTIVE.

        Raises:
            LicenseRejectedError: If the code was already redeemed or is not
                this month's code for the account
        """
        ctx = require_owner(ctx)
        now = now or now_utc()
        user = self._get_user(ctx)
        clean_code = normalize_code(code)

        if clean_code in user.redeemed_codes:
            logger.warning(f"Replayed license code for owner {ctx.owner_id}")
            raise LicenseRejectedError("Este código já foi utilizado anteriormente.")

        if clean_code != generate_license_code(user.email, now):
            logger.warning(f"Invalid license code for owner {ctx.owner_id}")
            raise LicenseRejectedError("Código inválido ou expirado. Solicite um novo código atualizado.")

        self._transactions.record(
            ctx,
            TransactionCreate(
                amount=self._config.license_price,
                method=PaymentMethod.PIX,
                status=PaymentStatus.APPROVED,
                description=RENEWAL_DESCRIPTION,
                external_reference=clean_code,
            ),
        )

        expiry = user.subscription_expiry_date
        base = expiry if expiry is not None and expiry > now else now
        updated = self._users.update(
            ctx,
            subscription_status=SubscriptionStatus.ACTIVE,
            subscription_expiry_date=base + timedelta(days=self._config.subscription_days),
            redeemed_codes=[*user.redeemed_codes, clean_code],
        )

        logger.info(f"License redeemed for owner {ctx.owner_id}, active until {updated.subscription_expiry_date}")
        return updated

    def activate_trial(self, ctx: OwnerContext, now: datetime | None = None) -> User:
        """Restart the account as a trial beginning now."""
        ctx = require_owner(ctx)
        self._get_user(ctx)
        updated = self._users.update(
            ctx,
            subscription_status=SubscriptionStatus.TRIAL,
            trial_start_date=now or now_utc(),
        )
        logger.info(f"Trial activated for owner {ctx.owner_id}")
        return updated
