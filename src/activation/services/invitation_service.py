"""Invitation ledger service."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.activation.core.config import get_settings
from src.activation.core.errors import ActivationError, ActivationErrorKind
from src.activation.core.logging import get_logger
from src.activation.core.security import (
    generate_invitation_token,
    hash_token,
    mask_token,
    normalize_invitation_token,
)
from src.activation.models.base import utc_now
from src.activation.models.enums import ApprovalStatus, InvitationStatus, MemberRole
from src.activation.models.public import Invitation, User
from src.activation.repositories import (
    InvitationRepository,
    TenantRepository,
    UserRepository,
)

logger = get_logger(__name__)

Kind = ActivationErrorKind


@dataclass(frozen=True)
class InvitationInfo:
    """Public preview of an invitation, shown before sign-in."""

    tenant_name: str
    email: str
    role: MemberRole
    expires_at: datetime
    status: InvitationStatus


def _owned_tenant(user: User) -> UUID:
    """Tenant of a fully activated owner; PermissionError for anyone else."""
    if (
        user.tenant_id is None
        or user.role != MemberRole.OWNER.value
        or user.approval_status != ApprovalStatus.APPROVED.value
        or not user.onboarding_completed
    ):
        raise PermissionError("Only an activated academy owner can manage invitations")
    return user.tenant_id


class InvitationService:
    """Issue, revoke, preview, reject, list and sweep staff invitations.

    Consumption (accept) is an activation transition and lives in
    TransitionExecutor.
    """

    def __init__(
        self,
        invitation_repo: InvitationRepository,
        user_repo: UserRepository,
        tenant_repo: TenantRepository,
        session: AsyncSession,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.invitation_repo = invitation_repo
        self.user_repo = user_repo
        self.tenant_repo = tenant_repo
        self.session = session
        self.clock = clock

    async def _get_by_token(self, token: str) -> tuple[Invitation, str]:
        normalized = normalize_invitation_token(token)
        if normalized is None:
            raise ActivationError(Kind.INVITE_INVALID)
        invitation = await self.invitation_repo.get_by_token_hash(hash_token(normalized))
        if invitation is None:
            raise ActivationError(Kind.INVITE_INVALID)
        return invitation, normalized

    async def issue_invitation(
        self,
        inviter: User,
        email: str,
        role: str,
        expires_in_days: int | None = None,
    ) -> tuple[Invitation, str]:
        """Issue an invitation from a fully activated owner.

        Returns (invitation, plaintext_token). The token is only ever
        returned here; the ledger keeps its hash.

        Any earlier pending invitation for the same email and tenant is
        expired (reissue).
        """
        tenant_id = _owned_tenant(inviter)

        try:
            member_role = MemberRole(role)
        except ValueError as e:
            raise ValueError(f"Unknown role: {role}") from e
        if member_role == MemberRole.OWNER:
            raise ValueError("The owner role cannot be granted by invitation")

        email = email.strip().lower()
        if email == inviter.email.lower():
            raise ValueError("You cannot invite yourself")

        days = expires_in_days or get_settings().invite_expire_days
        if days < 1:
            raise ValueError("Invitation expiry must be at least one day")

        try:
            existing_user = await self.user_repo.get_by_email(email)
            if existing_user is not None and existing_user.tenant_id == tenant_id:
                raise ValueError("User is already a member of this academy")
            if existing_user is not None and existing_user.tenant_id is not None:
                raise ValueError("User already belongs to another academy")

            now = self.clock()
            await self.invitation_repo.expire_pending_for_email(email, tenant_id, now)

            token = generate_invitation_token()
            invitation = Invitation(
                tenant_id=tenant_id,
                invited_by=inviter.id,
                email=email,
                role=member_role.value,
                token_hash=hash_token(token),
                expires_at=now + timedelta(days=days),
                created_at=now,
                updated_at=now,
            )
            self.invitation_repo.add(invitation)
            await self.session.commit()
            await self.session.refresh(invitation)

            logger.info(
                "Invitation issued",
                tenant_id=str(tenant_id),
                invitation_id=str(invitation.id),
                role=member_role.value,
                invited_by=str(inviter.id),
                token=mask_token(token),
            )
            return invitation, token

        except ValueError:
            await self.session.rollback()
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error("Failed to issue invitation", error=str(e))
            raise

    async def revoke_invitation(self, owner: User, invitation_id: UUID) -> Invitation:
        """Withdraw a pending invitation of the owner's academy.

        Raises INVITE_INVALID for an unknown invitation or one belonging to
        another academy, so other tenants' ids are not disclosed.
        """
        tenant_id = _owned_tenant(owner)
        try:
            invitation = await self.invitation_repo.get_by_id(invitation_id)
            if (
                invitation is None
                or invitation.deleted_at is not None
                or invitation.tenant_id != tenant_id
            ):
                raise ActivationError(Kind.INVITE_INVALID)
            if invitation.status == InvitationStatus.ACCEPTED.value:
                raise ActivationError(Kind.INVITE_ALREADY_ACCEPTED, benign=False)
            if invitation.status == InvitationStatus.EXPIRED.value:
                raise ActivationError(Kind.INVITE_EXPIRED)
            if invitation.status == InvitationStatus.REJECTED.value:
                raise ActivationError(Kind.INVITE_INVALID, "This invitation was declined.")

            now = self.clock()
            revoked = await self.invitation_repo.revoke_if_pending(invitation.id, tenant_id, now)
            if not revoked:
                raise ActivationError(Kind.INVITE_INVALID, "This invitation is no longer pending.")

            await self.session.commit()
            await self.session.refresh(invitation)

            logger.info(
                "Invitation revoked",
                invitation_id=str(invitation.id),
                tenant_id=str(tenant_id),
                revoked_by=str(owner.id),
            )
            return invitation

        except ActivationError:
            await self.session.rollback()
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error("Failed to revoke invitation", error=str(e))
            raise

    async def get_invitation_info(self, token: str) -> InvitationInfo:
        """Public preview with lazy expiry applied to the status."""
        invitation, _ = await self._get_by_token(token)

        tenant = await self.tenant_repo.get_by_id(invitation.tenant_id)
        if tenant is None or tenant.is_deleted:
            raise ActivationError(Kind.INVITE_INVALID, "This academy is no longer available.")

        return InvitationInfo(
            tenant_name=tenant.name,
            email=invitation.email,
            role=MemberRole(invitation.role),
            expires_at=invitation.expires_at,
            status=invitation.effective_status(self.clock()),
        )

    async def reject_invitation(self, token: str, identity_id: UUID) -> Invitation:
        """Decline an invitation addressed to the caller.

        Only a pending, unexpired invitation can be rejected. The write is
        conditional on the row still being pending.
        """
        try:
            invitation, normalized = await self._get_by_token(token)

            user = await self.user_repo.get_by_id(identity_id)
            if user is None or user.is_deleted:
                raise ActivationError(Kind.INVITE_INVALID, "Create your profile first.")
            if invitation.email.lower() != user.email.lower():
                raise ActivationError(
                    Kind.INVITE_INVALID,
                    "This invitation was issued to a different email address.",
                )

            now = self.clock()
            status = invitation.effective_status(now)
            if status == InvitationStatus.EXPIRED:
                raise ActivationError(Kind.INVITE_EXPIRED)
            if status == InvitationStatus.ACCEPTED:
                raise ActivationError(Kind.INVITE_ALREADY_ACCEPTED)
            if status == InvitationStatus.REJECTED:
                raise ActivationError(Kind.INVITE_INVALID, "This invitation was declined.")

            rejected = await self.invitation_repo.mark_rejected_if_pending(invitation.id, now)
            if not rejected:
                raise ActivationError(Kind.INVITE_INVALID, "This invitation is no longer pending.")

            await self.session.commit()
            await self.session.refresh(invitation)

            logger.info(
                "Invitation rejected",
                invitation_id=str(invitation.id),
                identity_id=str(identity_id),
                token=mask_token(normalized),
            )
            return invitation

        except ActivationError:
            await self.session.rollback()
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error("Failed to reject invitation", error=str(e))
            raise

    async def list_pending(
        self, tenant_id: UUID, limit: int = 100, offset: int = 0
    ) -> list[Invitation]:
        """List invitations still stored as pending for a tenant."""
        return await self.invitation_repo.get_pending_by_tenant(
            tenant_id, limit=limit, offset=offset
        )

    async def sweep_expired(self) -> int:
        """Flip overdue pending invitations to expired. Returns the count.

        Safe to run concurrently with accepts: both writes are conditional
        on the row still being pending, so whichever commits first wins.
        """
        try:
            count = await self.invitation_repo.expire_overdue(self.clock())
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            logger.error("Invitation sweep failed", error=str(e))
            raise

        logger.info("Invitation sweep completed", expired=count)
        return count
