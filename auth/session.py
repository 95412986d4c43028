"""Session token lifecycle management.

Sessions are stored in Valkey with TTL matching session expiry.
Token format is cryptographically random (secrets.token_urlsafe).
The identity provider authenticates the user; this module only issues
and validates the opaque session that follows.
"""

import logging
import secrets
from datetime import timedelta
from uuid import UUID

from clients.valkey_client import ValkeyClient
from auth.config import AuthConfig
from auth.types import Session
from auth.exceptions import SessionExpiredError
from utils.timezone import now_utc

logger = logging.getLogger(__name__)


class SessionManager:
    """Session token lifecycle management.

    Sessions are stored in Valkey with TTL matching session expiry.
    Activity slides the expiry forward when configured to.
    """

    KEY_PREFIX = "session:"

    def __init__(self, valkey: ValkeyClient, config: AuthConfig):
        self._valkey = valkey
        self._config = config

    def _key(self, token: str) -> str:
        """Generate Valkey key for session token."""
        return f"{self.KEY_PREFIX}{token}"

    def _store(self, session: Session) -> None:
        self._valkey.set_json(
            self._key(session.token),
            session.model_dump(mode="json", exclude={"token"}),
            expire_seconds=self._config.session_expiry_hours * 3600,
        )

    def create_session(self, owner_id: UUID) -> Session:
        """Create a new session for an authenticated owner."""
        now = now_utc()
        session = Session(
            token=secrets.token_urlsafe(32),
            owner_id=owner_id,
            created_at=now,
            expires_at=now + timedelta(hours=self._config.session_expiry_hours),
            last_activity_at=now,
        )
        self._store(session)
        logger.info(f"Session created for owner {owner_id}")
        return session

    def validate_session(self, token: str) -> Session:
        """Validate session token and return session.

        Raises SessionExpiredError if token invalid or expired.
        """
        data = self._valkey.get_json(self._key(token))

        if data is None:
            raise SessionExpiredError("Session not found or expired")

        session = Session.model_validate({**data, "token": token})
        now = now_utc()

        # Valkey TTL should already have dropped it
        if now > session.expires_at:
            self._valkey.delete(self._key(token))
            raise SessionExpiredError("Session expired")

        if self._config.session_extend_on_activity:
            session = session.model_copy(
                update={
                    "expires_at": now + timedelta(hours=self._config.session_expiry_hours),
                    "last_activity_at": now,
                }
            )
            self._store(session)

        return session

    def revoke_session(self, token: str) -> None:
        """Revoke session (logout).

        Safe to call with nonexistent token.
        """
        self._valkey.delete(self._key(token))
