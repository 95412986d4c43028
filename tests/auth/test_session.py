"""Tests for SessionManager - session token lifecycle."""

from datetime import timedelta
from unittest.mock import Mock

import pytest

from auth.config import AuthConfig
from auth.exceptions import SessionExpiredError
from auth.session import SessionManager
from clients.valkey_client import ValkeyClient
from factories import TEST_OWNER_B_ID, TEST_OWNER_ID
from utils.timezone import now_utc


@pytest.fixture
def store():
    """Backing dict for the Valkey stand-in."""
    return {}


@pytest.fixture
def valkey(store):
    """ValkeyClient stand-in keeping JSON values in a dict."""
    mock = Mock(spec=ValkeyClient)
    mock.set_json.side_effect = lambda key, value, expire_seconds=None: store.__setitem__(key, value)
    mock.get_json.side_effect = lambda key: store.get(key)
    mock.delete.side_effect = lambda key: store.pop(key, None) is not None
    return mock


@pytest.fixture
def config():
    """Test config with short session for testing."""
    return AuthConfig(session_expiry_hours=1)


@pytest.fixture
def session_manager(valkey, config):
    return SessionManager(valkey, config)


class TestCreateSession:
    """Test session creation."""

    def test_returns_session_with_token(self, session_manager):
        """Created session has non-empty token."""
        session = session_manager.create_session(TEST_OWNER_ID)

        assert session.token
        assert len(session.token) > 20
        assert session.owner_id == TEST_OWNER_ID

    def test_different_owners_get_different_tokens(self, session_manager):
        session_a = session_manager.create_session(TEST_OWNER_ID)
        session_b = session_manager.create_session(TEST_OWNER_B_ID)

        assert session_a.token != session_b.token

    def test_stored_with_ttl(self, session_manager, valkey):
        """Stored under session:<token> with the configured TTL; the token is not in the value."""
        session = session_manager.create_session(TEST_OWNER_ID)

        key, value = valkey.set_json.call_args.args[:2]
        assert key == f"session:{session.token}"
        assert "token" not in value
        assert valkey.set_json.call_args.kwargs["expire_seconds"] == 3600


class TestValidateSession:
    """Test session validation."""

    def test_valid_session_returns_session(self, session_manager):
        created = session_manager.create_session(TEST_OWNER_ID)

        validated = session_manager.validate_session(created.token)

        assert validated.owner_id == TEST_OWNER_ID
        assert validated.token == created.token

    def test_invalid_token_raises(self, session_manager):
        with pytest.raises(SessionExpiredError):
            session_manager.validate_session("nonexistent-token")

    def test_expired_session_deleted(self, session_manager, store, valkey):
        """A session past expires_at is removed even if the TTL has not fired."""
        created = session_manager.create_session(TEST_OWNER_ID)
        key = f"session:{created.token}"
        store[key]["expires_at"] = (now_utc() - timedelta(minutes=1)).isoformat()

        with pytest.raises(SessionExpiredError):
            session_manager.validate_session(created.token)

        assert key not in store

    def test_activity_extends_expiry(self, session_manager, store):
        created = session_manager.create_session(TEST_OWNER_ID)
        key = f"session:{created.token}"
        store[key]["expires_at"] = (now_utc() + timedelta(minutes=5)).isoformat()

        validated = session_manager.validate_session(created.token)

        assert validated.expires_at > now_utc() + timedelta(minutes=50)

    def test_no_extension_when_disabled(self, valkey, store):
        manager = SessionManager(valkey, AuthConfig(session_expiry_hours=1, session_extend_on_activity=False))
        created = manager.create_session(TEST_OWNER_ID)
        valkey.set_json.reset_mock()

        manager.validate_session(created.token)

        valkey.set_json.assert_not_called()


class TestRevokeSession:
    """Test session revocation."""

    def test_revoked_session_invalid(self, session_manager):
        created = session_manager.create_session(TEST_OWNER_ID)

        session_manager.revoke_session(created.token)

        with pytest.raises(SessionExpiredError):
            session_manager.validate_session(created.token)

    def test_revoke_unknown_token_is_safe(self, session_manager):
        session_manager.revoke_session("does-not-exist")
