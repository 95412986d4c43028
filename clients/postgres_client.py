"""
PostgreSQL client with connection pooling and RLS owner isolation.

Uses psycopg2 with ThreadedConnectionPool. Owner isolation enforced via
PostgreSQL Row Level Security - every query takes the acting owner id
explicitly and sets app.current_user_id on the checked-out connection.

Security: No owner id = see nothing (RLS blocks all rows). This is safe.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, List, Tuple
from uuid import UUID

import psycopg2
import psycopg2.extras
import psycopg2.pool

from core.exceptions import TransientIOError

logger = logging.getLogger(__name__)

# Global JSONB registration flag
_jsonb_registered = False

OwnerId = UUID | str | None


class PostgresClient:
    """
    PostgreSQL client with per-call RLS context.

    - owner_id given → sees only that owner's rows (RLS filtered)
    - owner_id None → sees nothing (RLS blocks all rows)

    Connection and protocol failures (OperationalError, InterfaceError) are
    raised as TransientIOError. Integrity and programming errors propagate
    unchanged.

    Usage:
        db = PostgresClient(database_url)
        orders = db.execute("SELECT * FROM work_orders", owner_id=ctx.owner_id)
    """

    # Class-level connection pools shared across instances
    _connection_pools: Dict[str, psycopg2.pool.ThreadedConnectionPool] = {}
    _pools_lock = threading.RLock()

    def __init__(self, database_url: str, minconn: int = 2, maxconn: int = 20):
        self._database_url = database_url
        self._minconn = minconn
        self._maxconn = maxconn
        self._ensure_connection_pool()

    def _ensure_connection_pool(self) -> None:
        """Create connection pool if it doesn't exist."""
        with self._pools_lock:
            if self._database_url not in self._connection_pools:
                try:
                    pool = psycopg2.pool.ThreadedConnectionPool(
                        minconn=self._minconn,
                        maxconn=self._maxconn,
                        dsn=self._database_url,
                        connect_timeout=30,
                    )
                except psycopg2.OperationalError as e:
                    raise TransientIOError(f"Database unavailable: {e}") from e

                global _jsonb_registered
                if not _jsonb_registered:
                    psycopg2.extras.register_default_jsonb(globally=True)
                    _jsonb_registered = True

                self._connection_pools[self._database_url] = pool
                logger.info("Connection pool created")

    @contextmanager
    def get_connection(self, owner_id: OwnerId = None):
        """Get a pooled connection with app.current_user_id set to owner_id."""
        if self._database_url not in self._connection_pools:
            self._ensure_connection_pool()

        pool = self._connection_pools[self._database_url]
        conn = None

        try:
            conn = pool.getconn()
            if conn is None:
                raise TransientIOError("Could not get connection from pool")

            with conn.cursor() as cur:
                if owner_id is not None:
                    cur.execute("SET app.current_user_id = %s", (str(owner_id),))
                else:
                    # RLS policies cast to ::uuid, which fails on '' = no rows
                    cur.execute("SET app.current_user_id = ''")

            yield conn

        except (psycopg2.OperationalError, psycopg2.InterfaceError) as e:
            logger.warning(f"Database call failed: {e}")
            raise TransientIOError(f"Database call failed: {e}") from e

        finally:
            if conn:
                pool.putconn(conn)

    def _convert_params(self, params: Tuple | Dict | None) -> Tuple | Dict | None:
        """Convert UUID objects to strings."""
        if params is None:
            return None

        def convert(value: Any) -> Any:
            if isinstance(value, UUID):
                return str(value)
            if isinstance(value, list):
                return [convert(v) for v in value]
            if isinstance(value, tuple):
                return tuple(convert(v) for v in value)
            if isinstance(value, dict):
                return {k: convert(v) for k, v in value.items()}
            return value

        return convert(params)

    def execute(
        self, query: str, params: Tuple | Dict | None = None, *, owner_id: OwnerId = None
    ) -> List[Dict[str, Any]]:
        """Execute query, return list of row dicts. Empty list if no results."""
        params = self._convert_params(params)
        with self.get_connection(owner_id) as conn:
            with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
                cur.execute(query, params)
                if cur.description:
                    rows = [dict(row) for row in cur.fetchall()]
                    conn.commit()
                    return rows
                conn.commit()
                return []

    def execute_single(
        self, query: str, params: Tuple | Dict | None = None, *, owner_id: OwnerId = None
    ) -> Dict[str, Any] | None:
        """Execute query, return first row or None."""
        results = self.execute(query, params, owner_id=owner_id)
        return results[0] if results else None

    def execute_scalar(
        self, query: str, params: Tuple | Dict | None = None, *, owner_id: OwnerId = None
    ) -> Any:
        """Execute query, return first value of first row or None."""
        params = self._convert_params(params)
        with self.get_connection(owner_id) as conn:
            with conn.cursor() as cur:
                cur.execute(query, params)
                result = cur.fetchone()
                return result[0] if result else None

    def execute_returning(
        self, query: str, params: Tuple | Dict | None = None, *, owner_id: OwnerId = None
    ) -> List[Dict[str, Any]]:
        """Execute INSERT/UPDATE with RETURNING, return results."""
        params = self._convert_params(params)
        with self.get_connection(owner_id) as conn:
            with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
                cur.execute(query, params)
                conn.commit()
                return [dict(row) for row in cur.fetchall()]

    def close(self) -> None:
        """Close connection pool."""
        with self._pools_lock:
            if self._database_url in self._connection_pools:
                self._connection_pools[self._database_url].closeall()
                del self._connection_pools[self._database_url]

    @classmethod
    def close_all_pools(cls) -> None:
        """Close all connection pools."""
        with cls._pools_lock:
            for pool in cls._connection_pools.values():
                pool.closeall()
            cls._connection_pools.clear()
