"""Repository for Invitation entity - the invitation ledger."""

from datetime import datetime
from uuid import UUID

from sqlmodel import select, update

from src.activation.models.enums import InvitationStatus
from src.activation.models.public import Invitation
from src.activation.repositories.base import BaseRepository

_PENDING = InvitationStatus.PENDING.value


class InvitationRepository(BaseRepository[Invitation]):
    """Repository for staff invitations.

    Every status write is conditional on the row still being pending, so
    status only ever moves forward and concurrent writers cannot both win.
    """

    model = Invitation

    async def get_by_token_hash(self, token_hash: str) -> Invitation | None:
        """Get a non-deleted invitation by token hash, whatever its status."""
        result = await self.session.execute(
            select(Invitation).where(
                Invitation.token_hash == token_hash,
                Invitation.deleted_at.is_(None),  # type: ignore[union-attr]
            )
        )
        return result.scalar_one_or_none()

    async def get_pending_by_tenant(
        self, tenant_id: UUID, limit: int = 100, offset: int = 0
    ) -> list[Invitation]:
        """List pending invitations for a tenant, newest first."""
        result = await self.session.execute(
            select(Invitation)
            .where(
                Invitation.tenant_id == tenant_id,
                Invitation.status == _PENDING,
                Invitation.deleted_at.is_(None),  # type: ignore[union-attr]
            )
            .order_by(Invitation.created_at.desc())  # type: ignore[attr-defined]
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())

    async def mark_accepted_if_pending(
        self, invitation_id: UUID, accepted_by: UUID, now: datetime
    ) -> bool:
        """Accept the invitation only if it is still pending and unexpired.

        Returns False when another writer (a sweep, a second accept) got
        there first.
        """
        result = await self.session.execute(
            update(Invitation)
            .where(Invitation.id == invitation_id)  # type: ignore[arg-type]
            .where(Invitation.status == _PENDING)  # type: ignore[arg-type]
            .where(Invitation.expires_at >= now)  # type: ignore[arg-type]
            .where(Invitation.deleted_at.is_(None))  # type: ignore[union-attr]
            .values(
                status=InvitationStatus.ACCEPTED.value,
                accepted_by=accepted_by,
                accepted_at=now,
                updated_at=now,
            )
        )
        return (result.rowcount or 0) > 0  # type: ignore[attr-defined]

    async def mark_rejected_if_pending(self, invitation_id: UUID, now: datetime) -> bool:
        """Reject the invitation only if it is still pending and unexpired."""
        result = await self.session.execute(
            update(Invitation)
            .where(Invitation.id == invitation_id)  # type: ignore[arg-type]
            .where(Invitation.status == _PENDING)  # type: ignore[arg-type]
            .where(Invitation.expires_at >= now)  # type: ignore[arg-type]
            .values(status=InvitationStatus.REJECTED.value, updated_at=now)
        )
        return (result.rowcount or 0) > 0  # type: ignore[attr-defined]

    async def revoke_if_pending(self, invitation_id: UUID, tenant_id: UUID, now: datetime) -> bool:
        """Withdraw a pending invitation of this tenant (owner cancel).

        The row moves to expired so its token stops working; an accepted or
        declined invitation is left alone.
        """
        result = await self.session.execute(
            update(Invitation)
            .where(Invitation.id == invitation_id)  # type: ignore[arg-type]
            .where(Invitation.tenant_id == tenant_id)  # type: ignore[arg-type]
            .where(Invitation.status == _PENDING)  # type: ignore[arg-type]
            .where(Invitation.deleted_at.is_(None))  # type: ignore[union-attr]
            .values(status=InvitationStatus.EXPIRED.value, updated_at=now)
        )
        return (result.rowcount or 0) > 0  # type: ignore[attr-defined]

    async def expire_pending_for_email(self, email: str, tenant_id: UUID, now: datetime) -> int:
        """Expire outstanding invitations for an email in a tenant (re-issue)."""
        result = await self.session.execute(
            update(Invitation)
            .where(Invitation.email == email)  # type: ignore[arg-type]
            .where(Invitation.tenant_id == tenant_id)  # type: ignore[arg-type]
            .where(Invitation.status == _PENDING)  # type: ignore[arg-type]
            .values(status=InvitationStatus.EXPIRED.value, updated_at=now)
        )
        return result.rowcount or 0  # type: ignore[attr-defined]

    async def expire_overdue(self, now: datetime) -> int:
        """Bulk-expire pending invitations past their expiry.

        Idempotent: a second run finds nothing left to flip. accepted_by is
        never touched.
        """
        result = await self.session.execute(
            update(Invitation)
            .where(Invitation.status == _PENDING)  # type: ignore[arg-type]
            .where(Invitation.expires_at < now)  # type: ignore[arg-type]
            .where(Invitation.deleted_at.is_(None))  # type: ignore[union-attr]
            .values(status=InvitationStatus.EXPIRED.value, updated_at=now)
        )
        return result.rowcount or 0  # type: ignore[attr-defined]
