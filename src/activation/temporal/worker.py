"""
Temporal Worker - Separate process from API.

Run with:
    uv run python -m src.activation.temporal.worker
"""

import asyncio

import uvicorn
from fastapi import FastAPI
from temporalio.client import Client
from temporalio.worker import Worker

from src.activation.core.config import get_settings
from src.activation.core.db import dispose_engine
from src.activation.core.logging import get_logger, setup_logging
from src.activation.temporal.activities import sweep_expired_invitations
from src.activation.temporal.client import start_invitation_sweep
from src.activation.temporal.workflows import InvitationSweepWorkflow

logger = get_logger(__name__)

WORKER_HEALTH_PORT = 8001


def create_worker(client: Client, task_queue: str) -> Worker:
    """Create the jobs worker.

    Tuned for higher concurrency: sweeps are quick single UPDATEs.
    """
    return Worker(
        client,
        task_queue=task_queue,
        workflows=[InvitationSweepWorkflow],
        activities=[sweep_expired_invitations],
        max_concurrent_activities=50,
        max_concurrent_workflow_tasks=50,
    )


async def run_health_server(task_queue: str, port: int = WORKER_HEALTH_PORT) -> None:
    """Run a lightweight health server for K8s liveness checks."""
    health_app = FastAPI(title="Temporal Worker Health")

    @health_app.get("/health")
    async def health() -> dict[str, str]:
        return {
            "status": "healthy",
            "service": "temporal-worker",
            "task_queue": task_queue,
        }

    @health_app.get("/ready")
    async def ready() -> dict[str, str]:
        return {"status": "ready"}

    config = uvicorn.Config(
        health_app,
        host="0.0.0.0",
        port=port,
        log_level="warning",
    )
    server = uvicorn.Server(config)
    logger.info(f"Starting health server on port {port}")
    await server.serve()


async def main() -> None:
    """Main entry point for the Temporal worker."""
    settings = get_settings()
    setup_logging(settings.debug)

    client = await Client.connect(
        settings.temporal_host,
        namespace=settings.temporal_namespace,
    )

    if settings.invite_sweep_schedule:
        await start_invitation_sweep(client, settings.invite_sweep_schedule)

    task_queue = settings.temporal_task_queue
    worker = create_worker(client, task_queue)
    logger.info(f"Polling task queue: {task_queue}")

    try:
        health_task = asyncio.create_task(run_health_server(task_queue))
        await worker.run()
        await health_task
    finally:
        await dispose_engine()


if __name__ == "__main__":
    asyncio.run(main())
