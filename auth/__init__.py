"""Session and subscription modules."""

from auth.exceptions import (
    AuthError,
    SessionExpiredError,
    SubscriptionExpiredError,
    LicenseRejectedError,
    ProfileNotFoundError,
)
from auth.types import (
    Session,
    SubscriptionState,
    RedeemRequest,
)
from auth.config import AuthConfig
from auth.session import SessionManager
from auth.subscription import SubscriptionGuard, evaluate_status, days_remaining
from auth.license import LicenseService, generate_license_code
