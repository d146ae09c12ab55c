"""Unit tests for TransitionExecutor with mocked repositories."""

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid7

import pytest

from src.activation.core.errors import ActivationError, ActivationErrorKind
from src.activation.core.security import Credential
from src.activation.models.enums import InvitationStatus, MemberRole
from src.activation.services.transition_executor import AcceptedInvitation, TransitionExecutor
from tests.factories import InvitationFactory, TenantFactory, UserFactory

pytestmark = pytest.mark.unit

Kind = ActivationErrorKind


@pytest.fixture
def user_repo() -> MagicMock:
    repo = MagicMock()
    repo.get_by_id = AsyncMock(return_value=None)
    repo.complete_owner_setup = AsyncMock(return_value=True)
    repo.assign_to_tenant = AsyncMock(return_value=True)
    return repo


@pytest.fixture
def tenant_repo() -> MagicMock:
    repo = MagicMock()
    repo.get_by_id = AsyncMock(return_value=None)
    return repo


@pytest.fixture
def invitation_repo() -> MagicMock:
    repo = MagicMock()
    repo.get_by_id = AsyncMock(return_value=None)
    repo.get_by_token_hash = AsyncMock(return_value=None)
    repo.mark_accepted_if_pending = AsyncMock(return_value=True)
    return repo


@pytest.fixture
def executor(user_repo, tenant_repo, invitation_repo, mock_session, clock) -> TransitionExecutor:
    return TransitionExecutor(
        user_repo=user_repo,
        tenant_repo=tenant_repo,
        invitation_repo=invitation_repo,
        session=mock_session,
        timeout_seconds=1.0,
        clock=clock,
    )


class TestCreateProfile:
    async def test_creates_owner_profile(self, executor, user_repo, mock_session, credential):
        identity = await executor.create_profile(credential, full_name="Kim")

        user = user_repo.add.call_args.args[0]
        assert user.id == credential.id
        assert user.email == "instructor@example.com"
        assert user.role == MemberRole.OWNER.value
        assert user.tenant_id is None
        assert identity.id == credential.id
        assert identity.role == MemberRole.OWNER
        mock_session.commit.assert_awaited_once()

    async def test_email_is_lowercased(self, executor, user_repo, credential):
        upper = Credential(id=credential.id, email="Instructor@Example.COM")
        await executor.create_profile(upper)
        assert user_repo.add.call_args.args[0].email == "instructor@example.com"

    async def test_existing_profile_is_benign(self, executor, user_repo, mock_session, credential):
        user_repo.get_by_id.return_value = UserFactory.build(id=credential.id)

        with pytest.raises(ActivationError) as exc_info:
            await executor.create_profile(credential)

        assert exc_info.value.kind == Kind.PROFILE_ALREADY_EXISTS
        assert exc_info.value.benign
        user_repo.add.assert_not_called()
        mock_session.rollback.assert_awaited_once()

    async def test_store_failure_is_classified(self, executor, mock_session, credential):
        mock_session.commit.side_effect = RuntimeError("disk on fire")

        with pytest.raises(ActivationError) as exc_info:
            await executor.create_profile(credential)

        assert exc_info.value.kind == Kind.PROFILE_CREATION_FAILED
        assert isinstance(exc_info.value.cause, RuntimeError)
        mock_session.rollback.assert_awaited_once()

    async def test_timeout_is_network_error(
        self, user_repo, tenant_repo, invitation_repo, mock_session, credential
    ):
        async def hang(*args, **kwargs):
            await asyncio.sleep(10)

        user_repo.get_by_id.side_effect = hang
        executor = TransitionExecutor(
            user_repo, tenant_repo, invitation_repo, mock_session, timeout_seconds=0.01
        )

        with pytest.raises(ActivationError) as exc_info:
            await executor.create_profile(credential)

        assert exc_info.value.kind == Kind.NETWORK_ERROR
        mock_session.rollback.assert_awaited_once()


class TestFinishOwnerSetup:
    async def test_creates_tenant_and_completes_owner(
        self, executor, user_repo, tenant_repo, mock_session, now
    ):
        owner = UserFactory.build()
        user_repo.get_by_id.return_value = owner

        tenant = await executor.finish_owner_setup(owner.id, "  Bright Minds  ")

        assert tenant.name == "Bright Minds"
        assert tenant.owner_id == owner.id
        assert tenant.timezone == "Asia/Seoul"
        tenant_repo.add.assert_called_once_with(tenant)
        user_repo.complete_owner_setup.assert_awaited_once_with(owner.id, tenant.id, now)
        mock_session.commit.assert_awaited_once()

    async def test_settings_and_timezone_are_stored(self, executor, user_repo):
        owner = UserFactory.build()
        user_repo.get_by_id.return_value = owner

        tenant = await executor.finish_owner_setup(
            owner.id, "Academy", timezone="Europe/Berlin", settings={"currency": "EUR"}
        )

        assert tenant.timezone == "Europe/Berlin"
        assert tenant.settings == {"currency": "EUR"}

    @pytest.mark.parametrize("name", ["", "   "])
    async def test_blank_name_fails_without_store_call(self, executor, user_repo, name):
        with pytest.raises(ActivationError) as exc_info:
            await executor.finish_owner_setup(uuid7(), name)

        assert exc_info.value.kind == Kind.OWNER_SETUP_FAILED
        user_repo.get_by_id.assert_not_awaited()

    async def test_missing_profile_fails(self, executor):
        with pytest.raises(ActivationError) as exc_info:
            await executor.finish_owner_setup(uuid7(), "Academy")
        assert exc_info.value.kind == Kind.OWNER_SETUP_FAILED

    async def test_non_owner_fails(self, executor, user_repo, tenant_repo):
        user_repo.get_by_id.return_value = UserFactory.build(role=MemberRole.INSTRUCTOR.value)

        with pytest.raises(ActivationError) as exc_info:
            await executor.finish_owner_setup(uuid7(), "Academy")

        assert exc_info.value.kind == Kind.OWNER_SETUP_FAILED
        tenant_repo.add.assert_not_called()

    async def test_already_onboarded_is_benign_and_creates_nothing(
        self, executor, user_repo, tenant_repo
    ):
        owner = UserFactory.ready_owner(tenant_id=uuid7())
        user_repo.get_by_id.return_value = owner

        with pytest.raises(ActivationError) as exc_info:
            await executor.finish_owner_setup(owner.id, "Academy")

        assert exc_info.value.kind == Kind.OWNER_SETUP_ALREADY_COMPLETED
        tenant_repo.add.assert_not_called()

    async def test_losing_concurrent_setup_rolls_back_its_tenant(
        self, executor, user_repo, mock_session
    ):
        user_repo.get_by_id.return_value = UserFactory.build()
        user_repo.complete_owner_setup.return_value = False

        with pytest.raises(ActivationError) as exc_info:
            await executor.finish_owner_setup(uuid7(), "Academy")

        assert exc_info.value.kind == Kind.OWNER_SETUP_ALREADY_COMPLETED
        mock_session.commit.assert_not_awaited()
        mock_session.rollback.assert_awaited_once()

    async def test_repeated_setup_creates_one_tenant(self, executor, user_repo, tenant_repo):
        owner = UserFactory.build()
        user_repo.get_by_id.return_value = owner
        await executor.finish_owner_setup(owner.id, "Academy")

        owner.onboarding_completed = True
        with pytest.raises(ActivationError) as exc_info:
            await executor.finish_owner_setup(owner.id, "Academy")

        assert exc_info.value.kind == Kind.OWNER_SETUP_ALREADY_COMPLETED
        assert tenant_repo.add.call_count == 1


class TestAcceptInvite:
    @pytest.fixture
    def invited(self, user_repo, tenant_repo, invitation_repo, now):
        """An invitee profile plus a pending invitation to a live tenant."""
        tenant = TenantFactory.build()
        user = UserFactory.build(email="new.staff@example.com", role=None)
        invitation, token = InvitationFactory.with_token(
            tenant_id=tenant.id,
            email="New.Staff@example.com",
            role=MemberRole.ASSISTANT.value,
            expires_at=now + timedelta(days=2),
        )
        user_repo.get_by_id.return_value = user
        tenant_repo.get_by_id.return_value = tenant
        invitation_repo.get_by_token_hash.return_value = invitation
        invitation_repo.get_by_id.return_value = invitation
        return user, tenant, invitation, token

    async def test_accepts_with_invitation_tenant_and_role(
        self, executor, user_repo, invitation_repo, mock_session, invited, now
    ):
        user, tenant, invitation, token = invited

        accepted = await executor.accept_invite(user.id, token)

        assert accepted == AcceptedInvitation(
            invitation_id=invitation.id, tenant_id=tenant.id, role=MemberRole.ASSISTANT
        )
        invitation_repo.mark_accepted_if_pending.assert_awaited_once_with(
            invitation.id, user.id, now
        )
        user_repo.assign_to_tenant.assert_awaited_once_with(
            user_id=user.id,
            tenant_id=tenant.id,
            role=MemberRole.ASSISTANT.value,
            approved_by=invitation.invited_by,
            now=now,
        )
        mock_session.commit.assert_awaited_once()

    async def test_token_is_normalized(self, executor, invitation_repo, invited):
        user, _, _, token = invited
        await executor.accept_invite(user.id, f"  {token.upper()} ")
        invitation_repo.mark_accepted_if_pending.assert_awaited_once()

    @pytest.mark.parametrize("token", ["", "short", "z" * 64, "../etc/passwd"])
    async def test_malformed_token_is_invalid_without_store_call(
        self, executor, invitation_repo, token
    ):
        with pytest.raises(ActivationError) as exc_info:
            await executor.accept_invite(uuid7(), token)

        assert exc_info.value.kind == Kind.INVITE_INVALID
        invitation_repo.get_by_token_hash.assert_not_awaited()

    async def test_unknown_token_is_invalid(self, executor, invitation_repo, invited):
        user, _, _, token = invited
        invitation_repo.get_by_token_hash.return_value = None

        with pytest.raises(ActivationError) as exc_info:
            await executor.accept_invite(user.id, token)
        assert exc_info.value.kind == Kind.INVITE_INVALID

    async def test_other_email_is_invalid(self, executor, user_repo, invited):
        user, _, _, token = invited
        user.email = "someone.else@example.com"

        with pytest.raises(ActivationError) as exc_info:
            await executor.accept_invite(user.id, token)
        assert exc_info.value.kind == Kind.INVITE_INVALID

    async def test_missing_profile_is_invalid(self, executor, user_repo, invited):
        _, _, _, token = invited
        user_repo.get_by_id.return_value = None

        with pytest.raises(ActivationError) as exc_info:
            await executor.accept_invite(uuid7(), token)

        assert exc_info.value.kind == Kind.INVITE_INVALID
        assert exc_info.value.retryable is False

    async def test_expiry_is_checked_before_profile(
        self, executor, user_repo, invited, now
    ):
        _, _, invitation, token = invited
        invitation.expires_at = now - timedelta(minutes=1)
        user_repo.get_by_id.return_value = None

        with pytest.raises(ActivationError) as exc_info:
            await executor.accept_invite(uuid7(), token)

        assert exc_info.value.kind == Kind.INVITE_EXPIRED
        user_repo.get_by_id.assert_not_awaited()

    async def test_member_of_another_tenant_is_invalid(
        self, executor, invitation_repo, user_repo, invited
    ):
        user, _, _, token = invited
        user.tenant_id = uuid7()
        user.role = MemberRole.OWNER.value

        with pytest.raises(ActivationError) as exc_info:
            await executor.accept_invite(user.id, token)

        assert exc_info.value.kind == Kind.INVITE_INVALID
        invitation_repo.mark_accepted_if_pending.assert_not_awaited()
        user_repo.assign_to_tenant.assert_not_awaited()

    async def test_expired_regardless_of_stored_status(
        self, executor, invitation_repo, invited, now
    ):
        user, _, invitation, token = invited
        invitation.expires_at = now - timedelta(seconds=1)
        assert invitation.status == InvitationStatus.PENDING.value

        with pytest.raises(ActivationError) as exc_info:
            await executor.accept_invite(user.id, token)

        assert exc_info.value.kind == Kind.INVITE_EXPIRED
        invitation_repo.mark_accepted_if_pending.assert_not_awaited()

    async def test_expiry_boundary_is_still_valid(self, executor, invited, now):
        user, _, invitation, token = invited
        invitation.expires_at = now
        accepted = await executor.accept_invite(user.id, token)
        assert accepted.invitation_id == invitation.id

    async def test_accepted_by_caller_is_benign(self, executor, invited):
        user, _, invitation, token = invited
        invitation.status = InvitationStatus.ACCEPTED.value
        invitation.accepted_by = user.id

        with pytest.raises(ActivationError) as exc_info:
            await executor.accept_invite(user.id, token)

        assert exc_info.value.kind == Kind.INVITE_ALREADY_ACCEPTED
        assert exc_info.value.benign

    @pytest.mark.parametrize(
        ("status", "kind"),
        [
            (InvitationStatus.ACCEPTED, Kind.INVITE_ALREADY_ACCEPTED),
            (InvitationStatus.REJECTED, Kind.INVITE_ALREADY_ACCEPTED),
            (InvitationStatus.EXPIRED, Kind.INVITE_EXPIRED),
        ],
    )
    async def test_non_pending_status_is_not_benign(
        self, executor, invitation_repo, invited, status, kind
    ):
        user, _, invitation, token = invited
        invitation.status = status.value
        invitation.accepted_by = uuid7() if status == InvitationStatus.ACCEPTED else None

        with pytest.raises(ActivationError) as exc_info:
            await executor.accept_invite(user.id, token)

        assert exc_info.value.kind == kind
        assert not exc_info.value.benign
        invitation_repo.mark_accepted_if_pending.assert_not_awaited()

    async def test_deleted_tenant_is_invalid(self, executor, tenant_repo, invited):
        user, tenant, _, token = invited
        tenant_repo.get_by_id.return_value = TenantFactory.deleted(id=tenant.id)

        with pytest.raises(ActivationError) as exc_info:
            await executor.accept_invite(user.id, token)
        assert exc_info.value.kind == Kind.INVITE_INVALID

    async def test_lost_race_rereads_the_winner(
        self, executor, user_repo, invitation_repo, mock_session, invited
    ):
        user, _, invitation, token = invited
        other = uuid7()

        async def someone_else_wins(invitation_id, accepted_by, now):
            invitation.status = InvitationStatus.ACCEPTED.value
            invitation.accepted_by = other
            return False

        invitation_repo.mark_accepted_if_pending.side_effect = someone_else_wins

        with pytest.raises(ActivationError) as exc_info:
            await executor.accept_invite(user.id, token)

        assert exc_info.value.kind == Kind.INVITE_ALREADY_ACCEPTED
        assert not exc_info.value.benign
        invitation_repo.get_by_id.assert_awaited_once_with(invitation.id)
        mock_session.rollback.assert_awaited()
        user_repo.assign_to_tenant.assert_not_awaited()

    async def test_lost_race_to_reissue_reports_expired(
        self, executor, user_repo, invitation_repo, invited
    ):
        user, _, invitation, token = invited

        async def reissued(invitation_id, accepted_by, now):
            invitation.status = InvitationStatus.EXPIRED.value
            return False

        invitation_repo.mark_accepted_if_pending.side_effect = reissued

        with pytest.raises(ActivationError) as exc_info:
            await executor.accept_invite(user.id, token)

        assert exc_info.value.kind == Kind.INVITE_EXPIRED
        assert not exc_info.value.benign
        user_repo.assign_to_tenant.assert_not_awaited()

    async def test_lost_race_to_deletion_is_invalid(self, executor, invitation_repo, invited):
        user, _, _, token = invited
        invitation_repo.mark_accepted_if_pending.return_value = False
        invitation_repo.get_by_id.return_value = None

        with pytest.raises(ActivationError) as exc_info:
            await executor.accept_invite(user.id, token)

        assert exc_info.value.kind == Kind.INVITE_INVALID

    async def test_assignment_failure_rolls_back_status_write(
        self, executor, user_repo, mock_session, invited
    ):
        user, _, _, token = invited
        user_repo.assign_to_tenant.return_value = False

        with pytest.raises(ActivationError) as exc_info:
            await executor.accept_invite(user.id, token)

        assert exc_info.value.kind == Kind.INVITE_ACCEPT_FAILED
        mock_session.commit.assert_not_awaited()
        mock_session.rollback.assert_awaited_once()

    async def test_concurrent_accepts_have_one_winner(
        self, executor, invitation_repo, invited
    ):
        user, _, invitation, token = invited
        claimed = []

        async def mark_once(invitation_id, accepted_by, now):
            await asyncio.sleep(0)
            if claimed:
                return False
            claimed.append(accepted_by)
            invitation.status = InvitationStatus.ACCEPTED.value
            invitation.accepted_by = accepted_by
            return True

        invitation_repo.mark_accepted_if_pending.side_effect = mark_once

        results = await asyncio.gather(
            executor.accept_invite(user.id, token),
            executor.accept_invite(user.id, token),
            return_exceptions=True,
        )

        successes = [r for r in results if isinstance(r, AcceptedInvitation)]
        failures = [r for r in results if isinstance(r, ActivationError)]
        assert len(successes) == 1
        assert len(failures) == 1
        assert failures[0].kind == Kind.INVITE_ALREADY_ACCEPTED
        assert failures[0].benign
