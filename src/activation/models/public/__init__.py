"""Public schema models."""

from src.activation.models.enums import (
    ActivationStage,
    ApprovalStatus,
    Destination,
    InvitationStatus,
    MemberRole,
)
from src.activation.models.public.invitation import Invitation
from src.activation.models.public.tenant import Tenant
from src.activation.models.public.user import User

__all__ = [
    # Enums
    "ActivationStage",
    "ApprovalStatus",
    "Destination",
    "InvitationStatus",
    "MemberRole",
    # Models
    "Invitation",
    "Tenant",
    "User",
]
