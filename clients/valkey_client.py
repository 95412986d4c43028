"""
Valkey (Redis-compatible) client for sessions.

Simple wrapper around redis-py. Connection URL from Vault.
Fail-fast: connection failures raise TransientIOError, never fallback values.
"""

import json
import logging

import redis

from core.exceptions import TransientIOError

logger = logging.getLogger(__name__)


class ValkeyClient:
    """
    Redis-compatible client for Valkey.

    Usage:
        client = ValkeyClient("redis://localhost:6379/0")
        client.set("key", "value", expire_seconds=300)
        value = client.get("key")  # Returns None if missing
    """

    def __init__(self, url: str):
        """
        Initialize Valkey connection.

        Args:
            url: Redis-compatible connection URL (e.g., redis://localhost:6379/0)

        Raises:
            TransientIOError: If connection fails
        """
        self._client = redis.from_url(url, decode_responses=True)
        # Verify connectivity immediately (fail-fast)
        self.ping()
        logger.info("ValkeyClient connected")

    def ping(self) -> bool:
        """Health check. Raises TransientIOError if unreachable."""
        try:
            self._client.ping()
        except redis.ConnectionError as e:
            raise TransientIOError(f"Valkey unreachable: {e}") from e
        return True

    def get(self, key: str) -> str | None:
        """
        Get value by key.

        Returns None if key doesn't exist (not an error).
        """
        try:
            return self._client.get(key)
        except redis.ConnectionError as e:
            raise TransientIOError(f"Valkey unreachable: {e}") from e

    def set(self, key: str, value: str, expire_seconds: int | None = None) -> None:
        """
        Set key to value, optionally with expiration.

        Args:
            key: Key to set
            value: Value to store
            expire_seconds: TTL in seconds (None for no expiration)
        """
        try:
            if expire_seconds is not None:
                self._client.setex(key, expire_seconds, value)
            else:
                self._client.set(key, value)
        except redis.ConnectionError as e:
            raise TransientIOError(f"Valkey unreachable: {e}") from e

    def delete(self, key: str) -> bool:
        """Delete key. Returns True if key existed."""
        try:
            return self._client.delete(key) > 0
        except redis.ConnectionError as e:
            raise TransientIOError(f"Valkey unreachable: {e}") from e

    def set_json(self, key: str, value: dict | list, expire_seconds: int | None = None) -> None:
        """Set key to JSON-serialized value."""
        self.set(key, json.dumps(value), expire_seconds)

    def get_json(self, key: str) -> dict | list | None:
        """
        Get and deserialize JSON value.

        Returns None if key doesn't exist.
        Raises ValueError if value is not valid JSON.
        """
        value = self.get(key)
        if value is None:
            return None
        try:
            return json.loads(value)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in key '{key}': {e}")

    def close(self) -> None:
        """Close the connection."""
        self._client.close()
        logger.info("ValkeyClient closed")
