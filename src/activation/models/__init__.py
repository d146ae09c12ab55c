"""SQLModel tables and shared enums."""

from src.activation.models.public import (
    ActivationStage,
    ApprovalStatus,
    Destination,
    Invitation,
    InvitationStatus,
    MemberRole,
    Tenant,
    User,
)

__all__ = [
    "ActivationStage",
    "ApprovalStatus",
    "Destination",
    "Invitation",
    "InvitationStatus",
    "MemberRole",
    "Tenant",
    "User",
]
