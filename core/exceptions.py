"""Typed exceptions for workshop domain failures."""


class WorkshopError(Exception):
    """Base class for workshop domain errors."""


class ValidationError(WorkshopError, ValueError):
    """
    Input rejected at the edit boundary.

    Missing customer/vehicle at save, malformed or negative amounts,
    references to records that do not exist. Surfaced to the operator as-is;
    never retried.
    """


class NotFoundError(WorkshopError, ValueError):
    """
    A specific record that the caller needs does not exist.

    Only raised where a missing record is fatal (opening an order for
    editing or rendering). Plain lookups return None instead.
    """


class TransientIOError(WorkshopError):
    """
    Storage or network call failed.

    Propagated to the caller, which decides whether to offer a manual retry.
    """


class MissingOwnerError(WorkshopError):
    """Core operation invoked without an authenticated owner."""
