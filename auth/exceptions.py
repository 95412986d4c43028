"""Typed exceptions for auth and subscription failures."""


class AuthError(Exception):
    """Base class for authentication/authorization errors."""


class SessionExpiredError(AuthError):
    """Session is unknown or expired and the user must re-authenticate."""


class SubscriptionExpiredError(AuthError):
    """Trial or paid period is over. Access is blocked until a license is redeemed."""


class LicenseRejectedError(AuthError):
    """
    License code was not accepted.

    Raised for codes already redeemed by this account and codes that are
    not the current month's code for the account e-mail.
    """


class ProfileNotFoundError(AuthError):
    """Authenticated owner has no profile yet (registration not completed)."""
