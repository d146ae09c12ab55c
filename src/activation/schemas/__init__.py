from src.activation.schemas.activation import (
    ActivationEnvelope,
    ActivationErrorRead,
    AttemptInfo,
    InviteAcceptRead,
    InviteAcceptRequest,
    OwnerSetupRead,
    OwnerSetupRequest,
    ProfileCreateRequest,
    ProfileRead,
    RouteRead,
    destination_path,
)
from src.activation.schemas.invitation import (
    InvitationCreateRequest,
    InvitationCreateResponse,
    InvitationInfoResponse,
    InvitationListResponse,
    InvitationRead,
    InvitationRejectResponse,
)

__all__ = [
    # Activation
    "ActivationEnvelope",
    "ActivationErrorRead",
    "AttemptInfo",
    "InviteAcceptRead",
    "InviteAcceptRequest",
    "OwnerSetupRead",
    "OwnerSetupRequest",
    "ProfileCreateRequest",
    "ProfileRead",
    "RouteRead",
    "destination_path",
    # Invitation
    "InvitationCreateRequest",
    "InvitationCreateResponse",
    "InvitationInfoResponse",
    "InvitationListResponse",
    "InvitationRead",
    "InvitationRejectResponse",
]
