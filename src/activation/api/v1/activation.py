"""Activation flow API endpoints.

Classified failures are answered with HTTP 200 and ``ok=false`` in the
envelope; only a missing or invalid credential on a transition is a 401.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Query, Request
from pydantic import BaseModel

from src.activation.api.dependencies import (
    ActivationServiceDep,
    CurrentCredential,
    OptionalCredential,
)
from src.activation.core.rate_limit import limiter, transition_limit
from src.activation.core.security import Credential
from src.activation.models.enums import Destination
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
)
from src.activation.services import ActivationService, AttemptState, TransitionOutcome

router = APIRouter(prefix="/activation", tags=["activation"])


async def _envelope(
    outcome: TransitionOutcome[Any],
    data: BaseModel | None,
    service: ActivationService,
    credential: Credential,
) -> ActivationEnvelope[Any]:
    """Wrap an outcome; on success (benign included) attach the next route."""
    next_route = None
    if outcome.ok:
        decision = await service.next_route(credential)
        next_route = RouteRead.build(decision.destination, decision.stage, decision.invite_token)

    return ActivationEnvelope(
        ok=outcome.ok,
        data=data,
        error=ActivationErrorRead.from_error(outcome.error) if outcome.error else None,
        attempts=AttemptInfo.from_state(outcome.attempt_state),
        next=next_route,
    )


@router.get(
    "/stage",
    response_model=ActivationEnvelope[RouteRead],
    summary="Check activation stage",
    description="Resolve the caller's activation stage and the next destination.",
)
async def check_stage(
    credential: OptionalCredential,
    service: ActivationServiceDep,
    invite_token: str | None = None,
    attempts: Annotated[int, Query(ge=0)] = 0,
) -> ActivationEnvelope[RouteRead]:
    """Check stage and route. Without a credential the caller is sent to sign-in."""
    outcome = await service.check_and_route(
        credential,
        invite_token,
        AttemptState(attempts=attempts),
    )

    if outcome.value is not None:
        decision = outcome.value
        route = RouteRead.build(decision.destination, decision.stage, decision.invite_token)
    else:
        route = RouteRead.build(Destination.SIGN_IN)

    return ActivationEnvelope[RouteRead](
        ok=outcome.error is None,
        data=route,
        error=ActivationErrorRead.from_error(outcome.error) if outcome.error else None,
        attempts=AttemptInfo.from_state(outcome.attempt_state),
    )


@router.post(
    "/profile",
    response_model=ActivationEnvelope[ProfileRead],
    summary="Create profile",
    description="Provision the identity profile for the authenticated credential.",
)
@limiter.limit(transition_limit)
async def create_profile(
    request: Request,
    body: ProfileCreateRequest,
    credential: CurrentCredential,
    service: ActivationServiceDep,
) -> ActivationEnvelope[ProfileRead]:
    """Create profile. PROFILE_ALREADY_EXISTS is reported as ok."""
    outcome = await service.create_profile(
        credential, full_name=body.full_name, state=body.attempt_state()
    )
    data = None
    if outcome.value is not None:
        data = ProfileRead(
            id=outcome.value.id, email=outcome.value.email, role=outcome.value.role
        )
    return await _envelope(outcome, data, service, credential)


@router.post(
    "/owner-setup",
    response_model=ActivationEnvelope[OwnerSetupRead],
    summary="Finish owner setup",
    description="Create the owner's academy and complete onboarding.",
)
@limiter.limit(transition_limit)
async def finish_owner_setup(
    request: Request,
    body: OwnerSetupRequest,
    credential: CurrentCredential,
    service: ActivationServiceDep,
) -> ActivationEnvelope[OwnerSetupRead]:
    """Finish owner setup. OWNER_SETUP_ALREADY_COMPLETED is reported as ok."""
    outcome = await service.finish_owner_setup(
        credential,
        body.academy_name,
        timezone=body.timezone,
        settings=body.settings,
        state=body.attempt_state(),
    )
    data = None
    if outcome.value is not None:
        tenant = outcome.value
        data = OwnerSetupRead(tenant_id=tenant.id, name=tenant.name, timezone=tenant.timezone)
    return await _envelope(outcome, data, service, credential)


@router.post(
    "/invitations/{token}/accept",
    response_model=ActivationEnvelope[InviteAcceptRead],
    summary="Accept invitation",
    description="Join the invitation's academy with the invitation's role.",
)
@limiter.limit(transition_limit)
async def accept_invite(
    request: Request,
    token: str,
    body: InviteAcceptRequest,
    credential: CurrentCredential,
    service: ActivationServiceDep,
) -> ActivationEnvelope[InviteAcceptRead]:
    """Accept invitation. INVITE_ALREADY_ACCEPTED is reported as ok."""
    outcome = await service.accept_invite(credential, token, state=body.attempt_state())
    data = None
    if outcome.value is not None:
        accepted = outcome.value
        data = InviteAcceptRead(
            invitation_id=accepted.invitation_id,
            tenant_id=accepted.tenant_id,
            role=accepted.role,
        )
    return await _envelope(outcome, data, service, credential)
