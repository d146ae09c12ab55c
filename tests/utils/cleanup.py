"""Database cleanup utilities for test fixtures.

The delete order matters due to foreign key relationships:
invitations reference users and tenants, users reference tenants.
"""

from uuid import UUID

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection


async def cleanup_tenant_cascade(conn: AsyncConnection, tenant_id: UUID) -> None:
    """Delete a tenant and everything attached to it.

    Order: invitations -> members -> tenant
    """
    await conn.execute(
        text("DELETE FROM public.invitations WHERE tenant_id = :id"),
        {"id": tenant_id},
    )
    await conn.execute(
        text("DELETE FROM public.users WHERE tenant_id = :id"),
        {"id": tenant_id},
    )
    await conn.execute(
        text("DELETE FROM public.tenants WHERE id = :id"),
        {"id": tenant_id},
    )


async def cleanup_user_cascade(conn: AsyncConnection, user_id: UUID) -> None:
    """Delete an identity and the invitations it issued or accepted.

    Order: invitations -> user
    """
    await conn.execute(
        text(
            "DELETE FROM public.invitations "
            "WHERE invited_by = :id OR accepted_by = :id"
        ),
        {"id": user_id},
    )
    await conn.execute(
        text("DELETE FROM public.users WHERE id = :id"),
        {"id": user_id},
    )
