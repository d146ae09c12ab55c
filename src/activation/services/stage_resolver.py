"""Activation stage resolution.

Pure and deterministic: every input is handed in, nothing is read or
written. The caller looks up the identity and (optionally) the invitation
and passes snapshots of both.
"""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from src.activation.core.errors import UnexpectedStageError
from src.activation.models.base import utc_now
from src.activation.models.enums import (
    ActivationStage,
    ApprovalStatus,
    Destination,
    InvitationStatus,
    MemberRole,
)
from src.activation.models.public import Invitation, User


@dataclass(frozen=True)
class IdentitySnapshot:
    """Activation-relevant attributes of an identity profile."""

    id: UUID
    email: str
    tenant_id: UUID | None = None
    role: MemberRole | None = None
    onboarding_completed: bool = False
    approval_status: ApprovalStatus = ApprovalStatus.PENDING
    deleted: bool = False

    @classmethod
    def from_user(cls, user: User) -> "IdentitySnapshot":
        return cls(
            id=user.id,
            email=user.email,
            tenant_id=user.tenant_id,
            role=user.role_enum,
            onboarding_completed=user.onboarding_completed,
            approval_status=ApprovalStatus(user.approval_status),
            deleted=user.is_deleted,
        )


@dataclass(frozen=True)
class InvitationSnapshot:
    """Activation-relevant attributes of an invitation."""

    email: str
    tenant_id: UUID
    role: MemberRole
    status: InvitationStatus
    expires_at: datetime
    deleted: bool = False

    @classmethod
    def from_invitation(cls, invitation: Invitation) -> "InvitationSnapshot":
        return cls(
            email=invitation.email,
            tenant_id=invitation.tenant_id,
            role=MemberRole(invitation.role),
            status=InvitationStatus(invitation.status),
            expires_at=invitation.expires_at,
            deleted=invitation.deleted_at is not None,
        )

    def admits(self, identity: IdentitySnapshot, now: datetime) -> bool:
        """Pending, unexpired, not deleted, and addressed to this identity.

        An identity that already belongs to another tenant is never admitted.
        """
        return (
            not self.deleted
            and identity.tenant_id in (None, self.tenant_id)
            and self.status == InvitationStatus.PENDING
            and now <= self.expires_at
            and self.email.strip().lower() == identity.email.strip().lower()
        )


@dataclass(frozen=True)
class StageResolution:
    """Resolved stage plus the destination the caller should head to."""

    stage: ActivationStage
    destination: Destination | None = None


STAGE_DESTINATIONS: dict[ActivationStage, Destination | None] = {
    ActivationStage.NO_PROFILE: Destination.PROFILE_SETUP,
    ActivationStage.MEMBER_INVITED: Destination.INVITE_ACCEPTANCE,
    ActivationStage.PENDING_OWNER_REVIEW: Destination.PENDING_REVIEW,
    ActivationStage.OWNER_SETUP_REQUIRED: Destination.OWNER_SETUP,
    ActivationStage.READY: None,
}


def _resolved(stage: ActivationStage) -> StageResolution:
    return StageResolution(stage=stage, destination=STAGE_DESTINATIONS[stage])


def resolve_stage(
    identity: IdentitySnapshot | None,
    invitation: InvitationSnapshot | None = None,
    now: datetime | None = None,
) -> StageResolution:
    """Compute the activation stage. The first matching rule wins.

    Args:
        identity: The identity profile, or None if no profile exists yet.
        invitation: The invitation the caller's token resolved to, if any.
        now: Reference time for invitation expiry (defaults to utc_now()).

    Raises:
        UnexpectedStageError: The attributes match no defined stage.
    """
    if identity is None:
        return _resolved(ActivationStage.NO_PROFILE)

    if identity.deleted:
        raise UnexpectedStageError("Identity profile is deleted", identity_id=str(identity.id))

    now = now or utc_now()
    is_owner = identity.role == MemberRole.OWNER

    if invitation is not None and invitation.admits(identity, now):
        return _resolved(ActivationStage.MEMBER_INVITED)

    if (
        identity.tenant_id is not None
        and is_owner
        and identity.approval_status == ApprovalStatus.PENDING
    ):
        return _resolved(ActivationStage.PENDING_OWNER_REVIEW)

    if identity.tenant_id is None and is_owner and not identity.onboarding_completed:
        return _resolved(ActivationStage.OWNER_SETUP_REQUIRED)

    if (
        identity.tenant_id is not None
        and identity.approval_status == ApprovalStatus.APPROVED
        and identity.onboarding_completed
    ):
        return _resolved(ActivationStage.READY)

    raise UnexpectedStageError(
        "Identity matches no activation stage",
        identity_id=str(identity.id),
        tenant_id=str(identity.tenant_id) if identity.tenant_id else None,
        role=identity.role.value if identity.role else None,
        approval_status=identity.approval_status.value,
        onboarding_completed=identity.onboarding_completed,
    )
