from src.activation.services.activation_service import ActivationService
from src.activation.services.invitation_service import InvitationInfo, InvitationService
from src.activation.services.retry_policy import AttemptState, RetryPolicy, TransitionOutcome
from src.activation.services.stage_resolver import (
    IdentitySnapshot,
    InvitationSnapshot,
    StageResolution,
    resolve_stage,
)
from src.activation.services.stage_router import RouteDecision, StageRouter
from src.activation.services.transition_executor import AcceptedInvitation, TransitionExecutor

__all__ = [
    "AcceptedInvitation",
    "ActivationService",
    "AttemptState",
    "IdentitySnapshot",
    "InvitationInfo",
    "InvitationService",
    "InvitationSnapshot",
    "RetryPolicy",
    "RouteDecision",
    "StageResolution",
    "StageRouter",
    "TransitionExecutor",
    "TransitionOutcome",
    "resolve_stage",
]
