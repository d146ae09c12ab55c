"""Invitation ledger activities."""

from temporalio import activity

from src.activation.core.db import get_session


@activity.defn
async def sweep_expired_invitations() -> int:
    """
    Flip overdue pending invitations to expired.

    Idempotent: the UPDATE only matches rows still pending past their
    expiry, so a second run finds nothing. Safe to run concurrently with
    invitation accepts; whichever conditional write commits first wins.

    Returns:
        Number of invitations expired
    """
    activity.logger.info("Sweeping expired invitations")

    async with get_session() as session:
        from src.activation.repositories import (
            InvitationRepository,
            TenantRepository,
            UserRepository,
        )
        from src.activation.services.invitation_service import InvitationService

        service = InvitationService(
            InvitationRepository(session),
            UserRepository(session),
            TenantRepository(session),
            session,
        )
        count = await service.sweep_expired()

    activity.logger.info(f"Expired {count} invitations")
    return count
