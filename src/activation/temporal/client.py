"""Temporal Client - For starting workflows from the API and worker."""

from temporalio.client import Client
from temporalio.exceptions import WorkflowAlreadyStartedError

from src.activation.core.config import get_settings
from src.activation.core.logging import get_logger

logger = get_logger(__name__)

INVITATION_SWEEP_WORKFLOW_ID = "invitation-sweep"

_client: Client | None = None


async def get_temporal_client() -> Client:
    """Get or create Temporal client."""
    global _client
    if _client is None:
        settings = get_settings()
        _client = await Client.connect(
            settings.temporal_host,
            namespace=settings.temporal_namespace,
        )
    return _client


async def close_temporal_client() -> None:
    """Close the Temporal client. Call during shutdown."""
    global _client
    if _client is not None:
        await _client.service_client.close()  # type: ignore[attr-defined]
        _client = None


async def start_invitation_sweep(client: Client, cron_schedule: str) -> bool:
    """Start the cron-scheduled invitation sweep once.

    Returns False if the scheduled workflow is already running.
    """
    from src.activation.temporal.workflows import InvitationSweepWorkflow

    settings = get_settings()
    try:
        await client.start_workflow(
            InvitationSweepWorkflow.run,
            id=INVITATION_SWEEP_WORKFLOW_ID,
            task_queue=settings.temporal_task_queue,
            cron_schedule=cron_schedule,
        )
    except WorkflowAlreadyStartedError:
        logger.info("Invitation sweep already scheduled", cron=cron_schedule)
        return False

    logger.info("Invitation sweep scheduled", cron=cron_schedule)
    return True
