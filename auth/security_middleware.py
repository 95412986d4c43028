"""Security middleware for FastAPI - session validation and subscription gating."""

import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from auth.session import SessionManager
from auth.subscription import SubscriptionGuard
from auth.exceptions import ProfileNotFoundError, SessionExpiredError
from api.base import error_response, ErrorCodes
from core.context import OwnerContext
from core.exceptions import TransientIOError

logger = logging.getLogger(__name__)


def _unavailable(exc: TransientIOError) -> JSONResponse:
    """503 envelope for storage outages. Route handlers never see middleware errors."""
    logger.warning(f"Storage unavailable during request checks: {exc}")
    return JSONResponse(
        status_code=503,
        content=error_response(
            ErrorCodes.SERVICE_UNAVAILABLE,
            "Storage temporarily unavailable, try again",
        ).model_dump(mode="json"),
    )


class AuthMiddleware(BaseHTTPMiddleware):
    """Middleware that validates the session and sets the acting owner.

    For protected routes:
    1. Extracts session token from 'session_token' cookie
    2. Validates session via SessionManager
    3. Sets request.state.owner_id and request.state.ctx (OwnerContext)

    Public paths bypass authentication entirely.
    """

    PUBLIC_PATHS = [
        "/auth/logout",
        "/health",
        "/docs",
        "/openapi.json",
        "/assets/",
    ]

    def __init__(self, app, session_manager: SessionManager):
        super().__init__(app)
        self._session_manager = session_manager

    def _is_public_path(self, path: str) -> bool:
        """Check if path is in public paths list."""
        for public_path in self.PUBLIC_PATHS:
            if path == public_path or path.startswith(public_path):
                return True
        return False

    async def dispatch(self, request: Request, call_next):
        """Process request through middleware."""
        if self._is_public_path(request.url.path):
            return await call_next(request)

        session_token = request.cookies.get("session_token")

        if not session_token:
            return JSONResponse(
                status_code=401,
                content=error_response(
                    ErrorCodes.NOT_AUTHENTICATED,
                    "Authentication required",
                ).model_dump(mode="json"),
            )

        try:
            session = self._session_manager.validate_session(session_token)
        except SessionExpiredError:
            return JSONResponse(
                status_code=401,
                content=error_response(
                    ErrorCodes.SESSION_EXPIRED,
                    "Session has expired",
                ).model_dump(mode="json"),
            )
        except TransientIOError as e:
            return _unavailable(e)

        request.state.owner_id = session.owner_id
        request.state.ctx = OwnerContext(owner_id=session.owner_id)
        request.state.session = session

        return await call_next(request)


class SubscriptionMiddleware(BaseHTTPMiddleware):
    """Blocks gated paths for owners whose trial or subscription has expired.

    Runs after AuthMiddleware. Requests without an owner are passed through
    (AuthMiddleware has already rejected them or the path is public).
    Accounts without a profile may only reach the exempt paths, where
    registration happens.
    """

    GATED_PATHS = [
        "/api/data",
        "/api/documents",
    ]

    EXEMPT_PATHS = [
        "/api/data/subscription",
    ]

    def __init__(self, app, guard: SubscriptionGuard):
        super().__init__(app)
        self._guard = guard

    def _is_gated(self, path: str) -> bool:
        if any(path == p or path.startswith(p + "/") for p in self.EXEMPT_PATHS):
            return False
        return any(path == p or path.startswith(p + "/") for p in self.GATED_PATHS)

    async def dispatch(self, request: Request, call_next):
        ctx = getattr(request.state, "ctx", None)
        if ctx is None or not self._is_gated(request.url.path):
            return await call_next(request)

        try:
            state = self._guard.check(ctx)
        except ProfileNotFoundError:
            return JSONResponse(
                status_code=403,
                content=error_response(
                    ErrorCodes.PROFILE_REQUIRED,
                    "Complete registration before using the workshop",
                ).model_dump(mode="json"),
            )
        except TransientIOError as e:
            return _unavailable(e)

        if not state.has_access:
            logger.info(f"Blocked {request.url.path} for expired owner {ctx.owner_id}")
            return JSONResponse(
                status_code=402,
                content=error_response(
                    ErrorCodes.SUBSCRIPTION_EXPIRED,
                    "Subscription expired. Redeem a license code to continue.",
                ).model_dump(mode="json"),
            )

        request.state.subscription = state
        return await call_next(request)
