"""Subscription gating: trial, active and expired accounts."""

import logging
import math
from datetime import datetime, timedelta

from auth.config import AuthConfig
from auth.exceptions import ProfileNotFoundError, SubscriptionExpiredError
from auth.types import SubscriptionState
from core.context import OwnerContext, require_owner
from core.models import SubscriptionStatus, User
from core.services.user_service import UserService
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

_DAY_SECONDS = 86400


def _trial_end(user: User, config: AuthConfig) -> datetime | None:
    if user.trial_start_date is None:
        return None
    return user.trial_start_date + timedelta(days=config.trial_days)


def evaluate_status(user: User, now: datetime, config: AuthConfig) -> SubscriptionStatus:
    """
    Status the account should have at now.

    ACTIVE past its expiry date and TRIAL older than trial_days become
    EXPIRED. A trial without a start date is treated as expired.
    """
    if user.subscription_status == SubscriptionStatus.ACTIVE:
        expiry = user.subscription_expiry_date
        if expiry is not None and now > expiry:
            return SubscriptionStatus.EXPIRED
        return SubscriptionStatus.ACTIVE

    if user.subscription_status == SubscriptionStatus.TRIAL:
        trial_end = _trial_end(user, config)
        if trial_end is None or now > trial_end:
            return SubscriptionStatus.EXPIRED
        return SubscriptionStatus.TRIAL

    return SubscriptionStatus.EXPIRED


def days_remaining(user: User, now: datetime, config: AuthConfig) -> int:
    """Whole days of access left, rounded up. 0 once expired."""
    status = evaluate_status(user, now, config)

    if status == SubscriptionStatus.ACTIVE:
        end = user.subscription_expiry_date
    elif status == SubscriptionStatus.TRIAL:
        end = _trial_end(user, config)
    else:
        return 0

    if end is None:
        return 0
    return max(0, math.ceil((end - now).total_seconds() / _DAY_SECONDS))


class SubscriptionGuard:
    """Checks and persists the acting owner's subscription state."""

    def __init__(self, users: UserService, config: AuthConfig):
        self._users = users
        self._config = config

    def check(self, ctx: OwnerContext, now: datetime | None = None) -> SubscriptionState:
        """
        Evaluate the owner's subscription, persisting an EXPIRED transition.

        Raises:
            ProfileNotFoundError: If the owner has no profile
        """
        ctx = require_owner(ctx)
        now = now or now_utc()

        user = self._users.get(ctx)
        if user is None:
            raise ProfileNotFoundError(f"No profile for owner {ctx.owner_id}")

        status = evaluate_status(user, now, self._config)
        if status != user.subscription_status:
            logger.info(
                f"Subscription for owner {ctx.owner_id} moved "
                f"{user.subscription_status.value} -> {status.value}"
            )
            user = self._users.update(ctx, subscription_status=status)

        if status == SubscriptionStatus.ACTIVE:
            expires_at = user.subscription_expiry_date
        else:
            expires_at = _trial_end(user, self._config)

        return SubscriptionState(
            status=status,
            has_access=status != SubscriptionStatus.EXPIRED,
            days_remaining=days_remaining(user, now, self._config),
            expires_at=expires_at,
        )

    def require_access(self, ctx: OwnerContext, now: datetime | None = None) -> SubscriptionState:
        """
        Like check(), but raise when access is blocked.

        Raises:
            SubscriptionExpiredError: If the subscription is expired
        """
        state = self.check(ctx, now)
        if not state.has_access:
            raise SubscriptionExpiredError("Subscription expired. Redeem a license code to continue.")
        return state
