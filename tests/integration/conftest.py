"""Integration test fixtures for database operations.

These fixtures require a reachable PostgreSQL database (settings.database_url);
tests are skipped when it is not available.
Uses polyfactory for type-safe test data generation.
"""

from collections.abc import AsyncGenerator

import pytest
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import NullPool

from src.activation.core import db
from src.activation.core.config import get_settings
from src.activation.core.db import run_migrations_async
from src.activation.models.public import Tenant, User
from tests.factories import TenantFactory, UserFactory
from tests.utils.cleanup import cleanup_tenant_cascade, cleanup_user_cascade


@pytest.fixture(scope="function")
async def engine() -> AsyncGenerator[AsyncEngine]:
    """Create test database engine and ensure migrations are applied."""
    await db.dispose_engine()

    settings = get_settings()
    test_engine = create_async_engine(settings.database_url, poolclass=NullPool)

    try:
        async with test_engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (OSError, SQLAlchemyError) as e:
        await test_engine.dispose()
        pytest.skip(f"PostgreSQL not available: {e}")

    await run_migrations_async()

    yield test_engine
    await test_engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Provide an async session for arranging test data.

    Tests must call `await session.commit()` to persist changes.
    """
    async with AsyncSession(engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
async def academy(
    engine: AsyncEngine, db_session: AsyncSession
) -> AsyncGenerator[tuple[Tenant, User]]:
    """A live tenant with its fully activated owner."""
    tenant = TenantFactory.build()
    db_session.add(tenant)
    await db_session.flush()

    owner = UserFactory.ready_owner(tenant_id=tenant.id)
    tenant.owner_id = owner.id
    db_session.add(owner)
    await db_session.commit()

    yield tenant, owner

    async with engine.connect() as conn:
        await cleanup_tenant_cascade(conn, tenant.id)
        await conn.commit()


@pytest.fixture
async def invitee(engine: AsyncEngine, db_session: AsyncSession) -> AsyncGenerator[User]:
    """A freshly provisioned profile with no tenant yet."""
    user = UserFactory.build()
    db_session.add(user)
    await db_session.commit()

    yield user

    async with engine.connect() as conn:
        await cleanup_user_cascade(conn, user.id)
        await conn.commit()


@pytest.fixture
async def first_time_owner(
    engine: AsyncEngine, db_session: AsyncSession
) -> AsyncGenerator[User]:
    """A first-time owner profile that has not created an academy."""
    user = UserFactory.build()
    db_session.add(user)
    await db_session.commit()

    yield user

    async with engine.connect() as conn:
        result = await conn.execute(
            text("SELECT id FROM public.tenants WHERE owner_id = :id"), {"id": user.id}
        )
        tenant_ids = [row[0] for row in result]
        await cleanup_user_cascade(conn, user.id)
        for tenant_id in tenant_ids:
            await cleanup_tenant_cascade(conn, tenant_id)
        await conn.commit()
