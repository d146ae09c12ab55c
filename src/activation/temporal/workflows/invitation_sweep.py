"""
Invitation Sweep Workflow.

Bulk-expire pending invitations whose expiry has passed.

Designed to be run on a schedule (Temporal cron, see
settings.invite_sweep_schedule). Acceptance never depends on it: expiry is
also checked lazily whenever an invitation is read.
"""

from datetime import timedelta

from temporalio import workflow
from temporalio.common import RetryPolicy

with workflow.unsafe.imports_passed_through():
    from src.activation.temporal.activities import sweep_expired_invitations


@workflow.defn
class InvitationSweepWorkflow:
    """Expire overdue pending invitations."""

    @workflow.run
    async def run(self) -> dict[str, int]:
        """
        Run the sweep activity.

        Returns:
            dict with the number of invitations expired: {"expired": int}
        """
        workflow.logger.info("Starting invitation sweep")

        expired = await workflow.execute_activity(
            sweep_expired_invitations,
            start_to_close_timeout=timedelta(minutes=5),
            retry_policy=RetryPolicy(
                maximum_attempts=3,
                initial_interval=timedelta(seconds=2),
            ),
        )

        workflow.logger.info(f"Invitation sweep complete: {expired} expired")
        return {"expired": expired}
