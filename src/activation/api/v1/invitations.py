"""Invitation ledger API endpoints."""

from uuid import UUID

from fastapi import APIRouter, HTTPException, Request, status

from src.activation.api.dependencies import (
    CurrentCredential,
    InvitationServiceDep,
    ReadyOwner,
)
from src.activation.core.rate_limit import limiter, transition_limit
from src.activation.models.enums import Destination
from src.activation.schemas.activation import RouteRead
from src.activation.schemas.invitation import (
    InvitationCreateRequest,
    InvitationCreateResponse,
    InvitationInfoResponse,
    InvitationListResponse,
    InvitationRead,
    InvitationRejectResponse,
)

router = APIRouter(prefix="/invitations", tags=["invitations"])


# =============================================================================
# Owner Endpoints (require a fully activated academy owner)
# =============================================================================


@router.post(
    "",
    response_model=InvitationCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Issue invitation",
    description="Invite a staff member to the caller's academy. Owner role required.",
)
async def issue_invitation(
    request: InvitationCreateRequest,
    owner: ReadyOwner,
    invitation_service: InvitationServiceDep,
) -> InvitationCreateResponse:
    """Issue an invitation and return its one-time token."""
    try:
        invitation, token = await invitation_service.issue_invitation(
            inviter=owner,
            email=request.email,
            role=request.role,
            expires_in_days=request.expires_in_days,
        )
    except PermissionError as e:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=str(e),
        ) from e
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e),
        ) from e

    return InvitationCreateResponse(
        id=invitation.id,
        email=invitation.email,
        role=invitation.role,
        expires_at=invitation.expires_at,
        token=token,
        accept_url=RouteRead.build(Destination.INVITE_ACCEPTANCE, invite_token=token).url,
    )


@router.get(
    "",
    response_model=InvitationListResponse,
    summary="List pending invitations",
    description="List invitations still pending for the caller's academy. Owner role required.",
)
async def list_invitations(
    owner: ReadyOwner,
    invitation_service: InvitationServiceDep,
    limit: int = 100,
    offset: int = 0,
) -> InvitationListResponse:
    """List pending invitations for the owner's academy."""
    if owner.tenant_id is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Academy owner access required",
        )
    invitations = await invitation_service.list_pending(
        owner.tenant_id, limit=limit, offset=offset
    )
    return InvitationListResponse(
        invitations=[InvitationRead.model_validate(inv) for inv in invitations],
        total=len(invitations),
    )


@router.delete(
    "/{invitation_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Revoke invitation",
    description="Withdraw a pending invitation of the caller's academy. Owner role required.",
)
async def revoke_invitation(
    invitation_id: UUID,
    owner: ReadyOwner,
    invitation_service: InvitationServiceDep,
) -> None:
    """Revoke a pending invitation so its token stops working."""
    try:
        await invitation_service.revoke_invitation(owner, invitation_id)
    except PermissionError as e:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=str(e),
        ) from e


# =============================================================================
# Token Endpoints (addressed by the invitation's one-time token)
# =============================================================================


@router.get(
    "/t/{token}",
    response_model=InvitationInfoResponse,
    summary="Get invitation info",
    description="Public preview of an invitation for the accept page. No auth required.",
)
async def get_invitation_info(
    token: str,
    invitation_service: InvitationServiceDep,
) -> InvitationInfoResponse:
    """Preview an invitation by token."""
    info = await invitation_service.get_invitation_info(token)
    return InvitationInfoResponse(
        tenant_name=info.tenant_name,
        email=info.email,
        role=info.role.value,
        expires_at=info.expires_at,
        status=info.status.value,
    )


@router.post(
    "/t/{token}/reject",
    response_model=InvitationRejectResponse,
    summary="Reject invitation",
    description="Decline an invitation addressed to the caller.",
)
@limiter.limit(transition_limit)
async def reject_invitation(
    request: Request,
    token: str,
    credential: CurrentCredential,
    invitation_service: InvitationServiceDep,
) -> InvitationRejectResponse:
    """Reject a pending invitation."""
    await invitation_service.reject_invitation(token, credential.id)
    return InvitationRejectResponse()
