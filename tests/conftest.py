"""Shared test fixtures for the workshop test suite."""

from datetime import datetime
from pathlib import Path
from unittest.mock import Mock

import pytest
from dotenv import load_dotenv

# Load .env file BEFORE any other imports that might use env vars
load_dotenv(Path(__file__).parent.parent / ".env", override=True)

# Reset vault client singleton to pick up env vars
import clients.vault_client as vault_module
vault_module._vault_client_instance = None
vault_module._secret_cache.clear()

from clients.postgres_client import PostgresClient
from core.context import OwnerContext
from factories import NOW, TEST_OWNER_ID, TEST_OWNER_B_ID


# =============================================================================
# CONTEXT FIXTURES
# =============================================================================


@pytest.fixture
def ctx() -> OwnerContext:
    """Owner context for the primary test owner."""
    return OwnerContext(owner_id=TEST_OWNER_ID)


@pytest.fixture
def ctx_b() -> OwnerContext:
    """Owner context for the secondary test owner."""
    return OwnerContext(owner_id=TEST_OWNER_B_ID)


@pytest.fixture
def now() -> datetime:
    return NOW


# =============================================================================
# STORAGE FIXTURES
# =============================================================================


@pytest.fixture
def postgres():
    """PostgresClient stand-in; configure return values per test."""
    return Mock(spec=PostgresClient)
