"""Global exception handlers for FastAPI."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

from api.base import error_response, ErrorCodes
from auth.exceptions import (
    LicenseRejectedError,
    ProfileNotFoundError,
    SessionExpiredError,
    SubscriptionExpiredError,
)
from core.exceptions import (
    MissingOwnerError,
    NotFoundError,
    TransientIOError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def _json_error(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=error_response(code, message).model_dump(mode="json"),
    )


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the app."""

    @app.exception_handler(ValidationError)
    async def domain_validation_handler(request: Request, exc: ValidationError):
        return _json_error(400, ErrorCodes.VALIDATION_ERROR, str(exc))

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return _json_error(404, ErrorCodes.NOT_FOUND, str(exc))

    @app.exception_handler(TransientIOError)
    async def transient_io_handler(request: Request, exc: TransientIOError):
        logger.warning(f"Storage unavailable: {exc}")
        return _json_error(503, ErrorCodes.SERVICE_UNAVAILABLE, "Storage temporarily unavailable, try again")

    @app.exception_handler(MissingOwnerError)
    async def missing_owner_handler(request: Request, exc: MissingOwnerError):
        return _json_error(401, ErrorCodes.NOT_AUTHENTICATED, "Authentication required")

    @app.exception_handler(SessionExpiredError)
    async def session_expired_handler(request: Request, exc: SessionExpiredError):
        return _json_error(401, ErrorCodes.SESSION_EXPIRED, str(exc))

    @app.exception_handler(SubscriptionExpiredError)
    async def subscription_expired_handler(request: Request, exc: SubscriptionExpiredError):
        return _json_error(402, ErrorCodes.SUBSCRIPTION_EXPIRED, str(exc))

    @app.exception_handler(LicenseRejectedError)
    async def license_rejected_handler(request: Request, exc: LicenseRejectedError):
        return _json_error(400, ErrorCodes.LICENSE_REJECTED, str(exc))

    @app.exception_handler(ProfileNotFoundError)
    async def profile_not_found_handler(request: Request, exc: ProfileNotFoundError):
        return _json_error(403, ErrorCodes.PROFILE_REQUIRED, str(exc))

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return _json_error(400, ErrorCodes.INVALID_REQUEST, str(exc))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return _json_error(422, ErrorCodes.VALIDATION_ERROR, str(exc.errors()))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception")
        return _json_error(500, ErrorCodes.INTERNAL_ERROR, "An internal error occurred")
