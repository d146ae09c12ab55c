"""Root test fixtures shared across all test types.

This conftest contains fixtures that can be used by both unit and integration tests.
Database-specific fixtures are in tests/integration/conftest.py.
"""

import os

# Set APP_ENV to testing before any app imports to disable rate limiting
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-activation-tests-0123456789")

# ruff: noqa: E402 - Imports must be after env var setup
from collections.abc import Callable
from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock
from uuid import UUID, uuid7

import pytest

from src.activation.core.config import get_settings
from src.activation.core.security import Credential, create_access_token

# Clear settings cache to ensure test environment variables are picked up
get_settings.cache_clear()

FIXED_NOW = datetime(2026, 3, 1, 9, 0, 0)


@pytest.fixture
def now() -> datetime:
    """A fixed reference time (naive UTC)."""
    return FIXED_NOW


@pytest.fixture
def clock(now: datetime) -> Callable[[], datetime]:
    return lambda: now


@pytest.fixture
def credential() -> Credential:
    """A credential for a freshly authenticated identity."""
    return Credential(id=uuid7(), email="instructor@example.com")


@pytest.fixture
def make_token() -> Callable[..., str]:
    """Build a provider-style access token for a credential."""

    def _make(identity_id: UUID, email: str, expires: timedelta | None = None) -> str:
        return create_access_token(identity_id, email, expires_delta=expires)

    return _make


@pytest.fixture
def mock_session() -> AsyncMock:
    """Create mock database session."""
    session = AsyncMock()
    session.add = MagicMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    return session
