"""API test fixtures: authenticated TestClient over mocked services."""

from datetime import timedelta
from unittest.mock import Mock

import pytest
from starlette.testclient import TestClient

from api.app import create_app
from auth.license import LicenseService
from auth.session import SessionManager
from auth.subscription import SubscriptionGuard
from auth.types import Session, SubscriptionState
from core.config import WorkshopConfig
from core.gateway import PersistenceGateway
from core.models import SubscriptionStatus
from core.services.customer_service import CustomerService
from core.services.settings_service import SettingsService
from core.services.transaction_service import TransactionService
from core.services.user_service import UserService
from core.services.vehicle_service import VehicleService
from core.work_orders import WorkOrderEngine
from factories import TEST_OWNER_ID, make_settings
from utils.timezone import now_utc


# =============================================================================
# SERVICES DICT
# =============================================================================


@pytest.fixture
def gateway():
    mock = Mock(spec=PersistenceGateway)
    mock.get_workshop_identity.return_value = make_settings()
    mock.list_work_orders.return_value = []
    mock.list_customers.return_value = []
    mock.list_vehicles.return_value = []
    return mock


@pytest.fixture
def guard():
    mock = Mock(spec=SubscriptionGuard)
    mock.check.return_value = SubscriptionState(
        status=SubscriptionStatus.TRIAL, has_access=True, days_remaining=5,
    )
    mock.require_access.return_value = mock.check.return_value
    return mock


@pytest.fixture
def services(gateway, guard):
    """Real engine over a mocked gateway; every other service mocked."""
    return {
        "config": WorkshopConfig(display_timezone="America/Sao_Paulo"),
        "gateway": gateway,
        "engine": WorkOrderEngine(gateway),
        "customer": Mock(spec=CustomerService),
        "vehicle": Mock(spec=VehicleService),
        "settings": Mock(spec=SettingsService),
        "user": Mock(spec=UserService),
        "transaction": Mock(spec=TransactionService),
        "guard": guard,
        "license": Mock(spec=LicenseService),
    }


# =============================================================================
# AUTH FIXTURES
# =============================================================================


@pytest.fixture
def mock_session_manager():
    now = now_utc()
    mock = Mock(spec=SessionManager)
    mock.validate_session.return_value = Session(
        token="test-token",
        owner_id=TEST_OWNER_ID,
        created_at=now,
        expires_at=now + timedelta(hours=24),
        last_activity_at=now,
    )
    return mock


# =============================================================================
# APP & CLIENT FIXTURES
# =============================================================================


@pytest.fixture
def app(mock_session_manager, services):
    return create_app(services, mock_session_manager)


@pytest.fixture
def client(app):
    """Authenticated test client."""
    c = TestClient(app, raise_server_exceptions=False)
    c.cookies.set("session_token", "test-token")
    return c


@pytest.fixture
def unauthed_client(app):
    """Unauthenticated test client (no session cookie)."""
    return TestClient(app, raise_server_exceptions=False)
