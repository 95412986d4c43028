"""HTTP routes for session management.

Sign-in happens at the identity provider; these routes only expose the
current owner and end the local session.
"""

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse

from auth.session import SessionManager
from api.base import success_response, error_response, ErrorCodes


def create_auth_router(session_manager: SessionManager) -> APIRouter:
    router = APIRouter(prefix="/auth")

    @router.post("/logout")
    async def logout(request: Request, response: Response):
        """Logout - revoke session and clear cookie."""
        session_token = request.cookies.get("session_token")

        if session_token:
            session_manager.revoke_session(session_token)

        response.delete_cookie(key="session_token")

        return success_response({"message": "Logged out successfully"})

    @router.get("/me")
    async def get_current_owner(request: Request):
        """Get the authenticated owner. Requires a valid session."""
        if not hasattr(request.state, "owner_id"):
            return JSONResponse(
                status_code=401,
                content=error_response(
                    ErrorCodes.NOT_AUTHENTICATED,
                    "Authentication required",
                ).model_dump(mode="json"),
            )

        return success_response({
            "owner_id": str(request.state.owner_id),
        })

    return router
