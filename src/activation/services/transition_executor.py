"""Side-effecting activation transitions.

Each transition runs inside one database transaction and under a timeout.
It either commits fully or rolls back, and it only ever raises
ActivationError: raw store and driver failures are classified first.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.activation.core.config import get_settings
from src.activation.core.errors import (
    ActivationError,
    ActivationErrorKind,
    ErrorClassifier,
    ErrorContext,
    default_classifier,
)
from src.activation.core.logging import get_logger
from src.activation.core.security import (
    Credential,
    hash_token,
    mask_token,
    normalize_invitation_token,
)
from src.activation.models.base import utc_now
from src.activation.models.enums import InvitationStatus, MemberRole
from src.activation.models.public import Invitation, Tenant, User
from src.activation.repositories import (
    InvitationRepository,
    TenantRepository,
    UserRepository,
)
from src.activation.services.stage_resolver import IdentitySnapshot

logger = get_logger(__name__)

Kind = ActivationErrorKind


@dataclass(frozen=True)
class AcceptedInvitation:
    """Membership granted by an accepted invitation."""

    invitation_id: UUID
    tenant_id: UUID
    role: MemberRole


def _unavailable_error(
    invitation: Invitation, identity_id: UUID, now: datetime
) -> ActivationError | None:
    """Why this identity can no longer accept the invitation, or None.

    Only an invitation this identity already accepted is benign; one used by
    someone else or declined means the caller never joined.
    """
    if invitation.is_expired(now) or invitation.status == InvitationStatus.EXPIRED.value:
        return ActivationError(Kind.INVITE_EXPIRED)
    if invitation.status == InvitationStatus.ACCEPTED.value:
        if invitation.accepted_by == identity_id:
            return ActivationError(Kind.INVITE_ALREADY_ACCEPTED)
        return ActivationError(
            Kind.INVITE_ALREADY_ACCEPTED,
            "This invitation has already been used by another account.",
            benign=False,
        )
    if invitation.status != InvitationStatus.PENDING.value:
        return ActivationError(
            Kind.INVITE_ALREADY_ACCEPTED,
            "This invitation was declined and can no longer be accepted.",
            benign=False,
        )
    return None


class TransitionExecutor:
    """Performs profile creation, owner setup and invitation acceptance."""

    def __init__(
        self,
        user_repo: UserRepository,
        tenant_repo: TenantRepository,
        invitation_repo: InvitationRepository,
        session: AsyncSession,
        timeout_seconds: float | None = None,
        classifier: ErrorClassifier = default_classifier,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.user_repo = user_repo
        self.tenant_repo = tenant_repo
        self.invitation_repo = invitation_repo
        self.session = session
        self.timeout_seconds = timeout_seconds or get_settings().store_timeout_seconds
        self.classifier = classifier
        self.clock = clock

    async def _rollback(self) -> None:
        try:
            await self.session.rollback()
        except Exception as e:
            logger.warning("Rollback failed", error=str(e))

    async def _in_transaction[T](
        self,
        context: ErrorContext,
        work: Callable[[], Awaitable[T]],
        timeout: float | None,
    ) -> T:
        """Run work with a deadline; roll back and classify on any failure."""
        try:
            async with asyncio.timeout(timeout or self.timeout_seconds):
                return await work()
        except ActivationError:
            await self._rollback()
            raise
        except Exception as e:
            await self._rollback()
            error = self.classifier.classify(e, context)
            logger.error(
                "Activation transition failed",
                context=context.value,
                kind=error.kind.value,
                error=str(e),
            )
            raise error from e

    async def create_profile(
        self,
        credential: Credential,
        full_name: str | None = None,
        role: MemberRole = MemberRole.OWNER,
        timeout: float | None = None,
    ) -> IdentitySnapshot:
        """Provision the identity profile for a freshly authenticated credential.

        Raises PROFILE_ALREADY_EXISTS when a profile is already there, which
        callers treat as "proceed".
        """

        async def work() -> IdentitySnapshot:
            existing = await self.user_repo.get_by_id(credential.id)
            if existing is not None:
                raise ActivationError(Kind.PROFILE_ALREADY_EXISTS)

            now = self.clock()
            user = User(
                id=credential.id,
                email=credential.email.strip().lower(),
                full_name=full_name,
                role=role.value,
                created_at=now,
                updated_at=now,
            )
            self.user_repo.add(user)
            await self.session.commit()

            logger.info("Profile created", identity_id=str(user.id), role=role.value)
            return IdentitySnapshot.from_user(user)

        return await self._in_transaction(ErrorContext.PROFILE, work, timeout)

    async def finish_owner_setup(
        self,
        identity_id: UUID,
        academy_name: str,
        timezone: str | None = None,
        settings: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> Tenant:
        """Create the owner's academy and mark the owner fully onboarded.

        Tenant insert and owner update share one transaction. The owner update
        is conditional on onboarding still being incomplete, so a concurrent
        duplicate rolls back its tenant and reports OWNER_SETUP_ALREADY_COMPLETED.
        """
        name = (academy_name or "").strip()

        async def work() -> Tenant:
            if not name:
                raise ActivationError(Kind.OWNER_SETUP_FAILED, "Academy name is required.")

            user = await self.user_repo.get_by_id(identity_id)
            if user is None or user.is_deleted:
                raise ActivationError(
                    Kind.OWNER_SETUP_FAILED, "No profile exists for this account yet."
                )
            if user.onboarding_completed:
                raise ActivationError(Kind.OWNER_SETUP_ALREADY_COMPLETED)
            if user.role != MemberRole.OWNER.value:
                raise ActivationError(
                    Kind.OWNER_SETUP_FAILED, "Only academy owners can complete academy setup."
                )

            now = self.clock()
            tenant = Tenant(
                name=name,
                timezone=timezone or get_settings().default_timezone,
                settings=dict(settings or {}),
                owner_id=user.id,
                created_at=now,
                updated_at=now,
            )
            self.tenant_repo.add(tenant)
            await self.session.flush()

            updated = await self.user_repo.complete_owner_setup(user.id, tenant.id, now)
            if not updated:
                raise ActivationError(Kind.OWNER_SETUP_ALREADY_COMPLETED)

            await self.session.commit()

            logger.info(
                "Owner setup completed",
                identity_id=str(user.id),
                tenant_id=str(tenant.id),
            )
            return tenant

        return await self._in_transaction(ErrorContext.OWNER_SETUP, work, timeout)

    async def accept_invite(
        self,
        identity_id: UUID,
        token: str,
        timeout: float | None = None,
    ) -> AcceptedInvitation:
        """Consume an invitation and join its tenant with its role.

        Validates, in order:
        1. Token is well formed and resolves to a non-deleted invitation
        2. The invitation has not expired (even if still stored as pending)
        3. The invitation is still pending
        4. A profile exists and the invitation is addressed to its email
        5. The identity does not already belong to another tenant
        6. The tenant still exists

        The status write is conditional on the row still being pending; the
        loser of a race with a sweep or a second accept re-reads the row and
        reports what actually happened to it. Status write and membership
        write commit together.
        """

        async def work() -> AcceptedInvitation:
            normalized = normalize_invitation_token(token)
            if normalized is None:
                raise ActivationError(Kind.INVITE_INVALID)

            invitation = await self.invitation_repo.get_by_token_hash(hash_token(normalized))
            if invitation is None:
                raise ActivationError(Kind.INVITE_INVALID)

            now = self.clock()
            unavailable = _unavailable_error(invitation, identity_id, now)
            if unavailable is not None:
                raise unavailable

            user = await self.user_repo.get_by_id(identity_id)
            if user is None or user.is_deleted:
                raise ActivationError(
                    Kind.INVITE_INVALID,
                    "Create your profile before accepting an invitation.",
                )
            if invitation.email.strip().lower() != user.email.strip().lower():
                raise ActivationError(
                    Kind.INVITE_INVALID,
                    "This invitation was issued to a different email address.",
                )
            if user.tenant_id is not None and user.tenant_id != invitation.tenant_id:
                raise ActivationError(
                    Kind.INVITE_INVALID,
                    "Your account already belongs to another academy.",
                )

            tenant = await self.tenant_repo.get_by_id(invitation.tenant_id)
            if tenant is None or tenant.is_deleted:
                raise ActivationError(
                    Kind.INVITE_INVALID, "This academy is no longer available."
                )

            won = await self.invitation_repo.mark_accepted_if_pending(
                invitation.id, user.id, now
            )
            if not won:
                await self._rollback()
                current = await self.invitation_repo.get_by_id(invitation.id)
                if current is None or current.deleted_at is not None:
                    raise ActivationError(Kind.INVITE_INVALID)
                error = _unavailable_error(current, identity_id, self.clock())
                raise error or ActivationError(Kind.INVITE_ACCEPT_FAILED)

            assigned = await self.user_repo.assign_to_tenant(
                user_id=user.id,
                tenant_id=invitation.tenant_id,
                role=invitation.role,
                approved_by=invitation.invited_by,
                now=now,
            )
            if not assigned:
                raise ActivationError(Kind.INVITE_ACCEPT_FAILED)

            await self.session.commit()

            logger.info(
                "Invitation accepted",
                invitation_id=str(invitation.id),
                identity_id=str(user.id),
                tenant_id=str(invitation.tenant_id),
                token=mask_token(normalized),
            )
            return AcceptedInvitation(
                invitation_id=invitation.id,
                tenant_id=invitation.tenant_id,
                role=MemberRole(invitation.role),
            )

        return await self._in_transaction(ErrorContext.INVITE, work, timeout)
