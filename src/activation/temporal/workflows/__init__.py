"""Temporal Workflows - Re-exports for worker registration."""

from src.activation.temporal.workflows.invitation_sweep import InvitationSweepWorkflow

__all__ = ["InvitationSweepWorkflow"]
