"""In-memory repository fakes for tests that do not need PostgreSQL.

They honor the same conditional-write contracts as the SQL repositories:
status writes only succeed on pending rows, and owner setup only succeeds
while onboarding is incomplete.
"""

from collections.abc import Callable
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock
from uuid import UUID

from src.activation.models.enums import ApprovalStatus, InvitationStatus, MemberRole
from src.activation.models.public import Invitation, Tenant, User
from src.activation.services import (
    ActivationService,
    InvitationService,
    RetryPolicy,
    StageRouter,
    TransitionExecutor,
)

_PENDING = InvitationStatus.PENDING.value


class FakeUserRepository:
    def __init__(self):
        self.rows: dict[UUID, User] = {}

    async def get_by_id(self, id: UUID) -> User | None:
        return self.rows.get(id)

    async def get_by_email(self, email: str) -> User | None:
        for user in self.rows.values():
            if user.email == email.lower() and not user.is_deleted:
                return user
        return None

    def add(self, user: User) -> None:
        self.rows[user.id] = user

    async def complete_owner_setup(self, user_id: UUID, tenant_id: UUID, now: datetime) -> bool:
        user = self.rows.get(user_id)
        if user is None or user.is_deleted or user.onboarding_completed:
            return False
        user.tenant_id = tenant_id
        user.role = MemberRole.OWNER.value
        user.approval_status = ApprovalStatus.APPROVED.value
        user.approved_at = now
        user.onboarding_completed = True
        user.onboarding_completed_at = now
        return True

    async def assign_to_tenant(
        self, user_id: UUID, tenant_id: UUID, role: str, approved_by: UUID, now: datetime
    ) -> bool:
        user = self.rows.get(user_id)
        if user is None or user.is_deleted:
            return False
        user.tenant_id = tenant_id
        user.role = role
        user.approval_status = ApprovalStatus.APPROVED.value
        user.approved_by = approved_by
        user.approved_at = now
        user.onboarding_completed = True
        user.onboarding_completed_at = now
        return True


class FakeTenantRepository:
    def __init__(self):
        self.rows: dict[UUID, Tenant] = {}

    async def get_by_id(self, id: UUID) -> Tenant | None:
        return self.rows.get(id)

    def add(self, tenant: Tenant) -> None:
        self.rows[tenant.id] = tenant


class FakeInvitationRepository:
    def __init__(self):
        self.rows: dict[UUID, Invitation] = {}

    async def get_by_id(self, id: UUID) -> Invitation | None:
        return self.rows.get(id)

    def add(self, invitation: Invitation) -> None:
        self.rows[invitation.id] = invitation

    async def get_by_token_hash(self, token_hash: str) -> Invitation | None:
        for invitation in self.rows.values():
            if invitation.token_hash == token_hash and invitation.deleted_at is None:
                return invitation
        return None

    async def get_pending_by_tenant(
        self, tenant_id: UUID, limit: int = 100, offset: int = 0
    ) -> list[Invitation]:
        pending = [
            inv
            for inv in self.rows.values()
            if inv.tenant_id == tenant_id and inv.status == _PENDING and inv.deleted_at is None
        ]
        pending.sort(key=lambda inv: inv.created_at, reverse=True)
        return pending[offset : offset + limit]

    async def mark_accepted_if_pending(
        self, invitation_id: UUID, accepted_by: UUID, now: datetime
    ) -> bool:
        invitation = self.rows.get(invitation_id)
        if invitation is None or invitation.status != _PENDING or invitation.expires_at < now:
            return False
        invitation.status = InvitationStatus.ACCEPTED.value
        invitation.accepted_by = accepted_by
        invitation.accepted_at = now
        return True

    async def mark_rejected_if_pending(self, invitation_id: UUID, now: datetime) -> bool:
        invitation = self.rows.get(invitation_id)
        if invitation is None or invitation.status != _PENDING or invitation.expires_at < now:
            return False
        invitation.status = InvitationStatus.REJECTED.value
        return True

    async def revoke_if_pending(self, invitation_id: UUID, tenant_id: UUID, now: datetime) -> bool:
        invitation = self.rows.get(invitation_id)
        if (
            invitation is None
            or invitation.tenant_id != tenant_id
            or invitation.status != _PENDING
            or invitation.deleted_at is not None
        ):
            return False
        invitation.status = InvitationStatus.EXPIRED.value
        return True

    async def expire_pending_for_email(self, email: str, tenant_id: UUID, now: datetime) -> int:
        count = 0
        for invitation in self.rows.values():
            if (
                invitation.email == email
                and invitation.tenant_id == tenant_id
                and invitation.status == _PENDING
            ):
                invitation.status = InvitationStatus.EXPIRED.value
                count += 1
        return count

    async def expire_overdue(self, now: datetime) -> int:
        count = 0
        for invitation in self.rows.values():
            if invitation.status == _PENDING and invitation.expires_at < now:
                invitation.status = InvitationStatus.EXPIRED.value
                count += 1
        return count


class FakeStore:
    """The three fake repositories plus a mock session, wired into services."""

    def __init__(self, clock: Callable[[], datetime]):
        self.users = FakeUserRepository()
        self.tenants = FakeTenantRepository()
        self.invitations = FakeInvitationRepository()
        self.session = MagicMock()
        self.session.commit = AsyncMock()
        self.session.rollback = AsyncMock()
        self.session.flush = AsyncMock()
        self.session.refresh = AsyncMock()
        self.clock = clock

    def activation_service(self, max_attempts: int = 3) -> ActivationService:
        executor = TransitionExecutor(
            self.users,  # type: ignore[arg-type]
            self.tenants,  # type: ignore[arg-type]
            self.invitations,  # type: ignore[arg-type]
            self.session,
            timeout_seconds=1.0,
            clock=self.clock,
        )
        router = StageRouter(
            self.users,  # type: ignore[arg-type]
            self.invitations,  # type: ignore[arg-type]
            timeout_seconds=1.0,
            clock=self.clock,
        )
        return ActivationService(executor, router, RetryPolicy(max_attempts=max_attempts))

    def invitation_service(self) -> InvitationService:
        return InvitationService(
            self.invitations,  # type: ignore[arg-type]
            self.users,  # type: ignore[arg-type]
            self.tenants,  # type: ignore[arg-type]
            self.session,
            clock=self.clock,
        )
