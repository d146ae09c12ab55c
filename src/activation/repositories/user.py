"""Repository for User (identity) entity."""

from datetime import datetime
from uuid import UUID

from sqlmodel import select, update

from src.activation.models.enums import ApprovalStatus, MemberRole
from src.activation.models.public import User
from src.activation.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for identity profiles."""

    model = User

    async def get_by_email(self, email: str) -> User | None:
        """Get a non-deleted identity by email address."""
        result = await self.session.execute(
            select(User).where(
                User.email == email.lower(),
                User.deleted_at.is_(None),  # type: ignore[union-attr]
            )
        )
        return result.scalar_one_or_none()

    async def complete_owner_setup(
        self, user_id: UUID, tenant_id: UUID, now: datetime
    ) -> bool:
        """Link the identity to its new tenant as an approved, onboarded owner.

        Guarded on onboarding_completed = false so a second concurrent setup
        updates nothing. Returns True if the row was updated.
        """
        result = await self.session.execute(
            update(User)
            .where(User.id == user_id)  # type: ignore[arg-type]
            .where(User.onboarding_completed == False)  # type: ignore[arg-type]  # noqa: E712
            .where(User.deleted_at.is_(None))  # type: ignore[union-attr]
            .values(
                tenant_id=tenant_id,
                role=MemberRole.OWNER.value,
                approval_status=ApprovalStatus.APPROVED.value,
                approved_at=now,
                onboarding_completed=True,
                onboarding_completed_at=now,
                updated_at=now,
            )
        )
        return (result.rowcount or 0) > 0  # type: ignore[attr-defined]

    async def assign_to_tenant(
        self,
        user_id: UUID,
        tenant_id: UUID,
        role: str,
        approved_by: UUID,
        now: datetime,
    ) -> bool:
        """Make the identity an approved, onboarded member of a tenant."""
        result = await self.session.execute(
            update(User)
            .where(User.id == user_id)  # type: ignore[arg-type]
            .where(User.deleted_at.is_(None))  # type: ignore[union-attr]
            .values(
                tenant_id=tenant_id,
                role=role,
                approval_status=ApprovalStatus.APPROVED.value,
                approved_by=approved_by,
                approved_at=now,
                onboarding_completed=True,
                onboarding_completed_at=now,
                updated_at=now,
            )
        )
        return (result.rowcount or 0) > 0  # type: ignore[attr-defined]
