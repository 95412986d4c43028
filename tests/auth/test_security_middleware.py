"""Tests for AuthMiddleware and SubscriptionMiddleware."""

from datetime import timedelta
from unittest.mock import Mock

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from auth.exceptions import ProfileNotFoundError, SessionExpiredError
from auth.security_middleware import AuthMiddleware, SubscriptionMiddleware
from auth.session import SessionManager
from auth.subscription import SubscriptionGuard
from auth.types import Session, SubscriptionState
from core.exceptions import TransientIOError
from core.models import SubscriptionStatus
from factories import TEST_OWNER_ID
from utils.timezone import now_utc


def make_session() -> Session:
    now = now_utc()
    return Session(
        token="test-token",
        owner_id=TEST_OWNER_ID,
        created_at=now,
        expires_at=now + timedelta(hours=24),
        last_activity_at=now,
    )


def make_state(status: SubscriptionStatus) -> SubscriptionState:
    return SubscriptionState(
        status=status,
        has_access=status != SubscriptionStatus.EXPIRED,
        days_remaining=0 if status == SubscriptionStatus.EXPIRED else 5,
    )


@pytest.fixture
def mock_session_manager():
    return Mock(spec=SessionManager)


@pytest.fixture
def mock_guard():
    guard = Mock(spec=SubscriptionGuard)
    guard.check.return_value = make_state(SubscriptionStatus.TRIAL)
    return guard


@pytest.fixture
def app_with_middleware(mock_session_manager, mock_guard):
    """FastAPI app with both middlewares."""
    app = FastAPI()

    app.add_middleware(SubscriptionMiddleware, guard=mock_guard)
    app.add_middleware(AuthMiddleware, session_manager=mock_session_manager)

    @app.get("/api/data")
    async def data_route(request: Request):
        return {"owner_id": str(request.state.ctx.owner_id)}

    @app.get("/api/data/subscription")
    async def subscription_route(request: Request):
        return {"owner_id": str(request.state.owner_id)}

    @app.get("/api/documents/work-orders/x")
    async def document_route():
        return {"document": True}

    @app.post("/api/actions")
    async def actions_route():
        return {"actions": True}

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.get("/assets/{path:path}")
    async def asset_files(path: str):
        return {"asset": path}

    return app


@pytest.fixture
def client(app_with_middleware):
    return TestClient(app_with_middleware)


class TestPublicPaths:
    """Public paths skip authentication."""

    def test_health_without_cookie(self, client, mock_session_manager):
        response = client.get("/health")

        assert response.status_code == 200
        mock_session_manager.validate_session.assert_not_called()

    def test_assets_without_cookie(self, client):
        response = client.get("/assets/app.js")
        assert response.json()["asset"] == "app.js"


class TestAuthMiddleware:
    """Session validation on protected paths."""

    def test_missing_cookie_is_401(self, client):
        response = client.get("/api/data")

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "NOT_AUTHENTICATED"

    def test_expired_session_is_401(self, client, mock_session_manager):
        mock_session_manager.validate_session.side_effect = SessionExpiredError("expired")
        client.cookies.set("session_token", "old-token")

        response = client.get("/api/data")

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "SESSION_EXPIRED"

    def test_valid_session_sets_owner_context(self, client, mock_session_manager):
        mock_session_manager.validate_session.return_value = make_session()
        client.cookies.set("session_token", "test-token")

        response = client.get("/api/data")

        assert response.status_code == 200
        assert response.json()["owner_id"] == str(TEST_OWNER_ID)
        mock_session_manager.validate_session.assert_called_once_with("test-token")

    def test_session_store_down_is_503(self, client, mock_session_manager):
        mock_session_manager.validate_session.side_effect = TransientIOError("Valkey unreachable")
        client.cookies.set("session_token", "test-token")

        response = client.get("/api/data")

        assert response.status_code == 503
        assert response.json()["error"]["code"] == "SERVICE_UNAVAILABLE"


class TestSubscriptionMiddleware:
    """Subscription gating after authentication."""

    @pytest.fixture(autouse=True)
    def authenticated(self, client, mock_session_manager):
        mock_session_manager.validate_session.return_value = make_session()
        client.cookies.set("session_token", "test-token")

    def test_expired_blocks_data(self, client, mock_guard):
        mock_guard.check.return_value = make_state(SubscriptionStatus.EXPIRED)

        response = client.get("/api/data")

        assert response.status_code == 402
        assert response.json()["error"]["code"] == "SUBSCRIPTION_EXPIRED"

    def test_expired_blocks_documents(self, client, mock_guard):
        mock_guard.check.return_value = make_state(SubscriptionStatus.EXPIRED)
        assert client.get("/api/documents/work-orders/x").status_code == 402

    def test_subscription_path_exempt(self, client, mock_guard):
        """The renewal screen stays reachable for expired accounts."""
        mock_guard.check.return_value = make_state(SubscriptionStatus.EXPIRED)

        response = client.get("/api/data/subscription")

        assert response.status_code == 200
        mock_guard.check.assert_not_called()

    def test_actions_not_gated_here(self, client, mock_guard):
        """Actions are gated per domain inside the router."""
        mock_guard.check.return_value = make_state(SubscriptionStatus.EXPIRED)
        assert client.post("/api/actions").status_code == 200

    def test_missing_profile_is_403(self, client, mock_guard):
        mock_guard.check.side_effect = ProfileNotFoundError("no profile")

        response = client.get("/api/data")

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "PROFILE_REQUIRED"

    def test_active_passes(self, client, mock_guard):
        mock_guard.check.return_value = make_state(SubscriptionStatus.ACTIVE)
        assert client.get("/api/data").status_code == 200

    def test_database_down_is_503(self, client, mock_guard):
        mock_guard.check.side_effect = TransientIOError("connection reset")

        response = client.get("/api/documents/work-orders/x")

        assert response.status_code == 503
        assert response.json()["error"]["code"] == "SERVICE_UNAVAILABLE"
