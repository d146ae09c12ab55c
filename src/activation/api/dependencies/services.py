"""Service factory dependencies."""

from typing import Annotated

from fastapi import Depends, Request

from src.activation.api.dependencies.db import DBSession
from src.activation.api.dependencies.repositories import (
    InvitationRepo,
    TenantRepo,
    UserRepo,
)
from src.activation.services import (
    ActivationService,
    InvitationService,
    RetryPolicy,
    StageRouter,
    TransitionExecutor,
)


def get_retry_policy(request: Request) -> RetryPolicy:
    """Get the application-wide retry policy.

    Its cap comes from settings and the counter from the request body; its
    re-entry guard spans all requests served by this app.
    """
    return request.app.state.retry_policy  # type: ignore[no-any-return]


RetryPolicyDep = Annotated[RetryPolicy, Depends(get_retry_policy)]


def get_activation_service(
    user_repo: UserRepo,
    tenant_repo: TenantRepo,
    invitation_repo: InvitationRepo,
    session: DBSession,
    policy: RetryPolicyDep,
) -> ActivationService:
    """Get activation service."""
    executor = TransitionExecutor(user_repo, tenant_repo, invitation_repo, session)
    router = StageRouter(user_repo, invitation_repo)
    return ActivationService(executor, router, policy)


def get_invitation_service(
    invitation_repo: InvitationRepo,
    user_repo: UserRepo,
    tenant_repo: TenantRepo,
    session: DBSession,
) -> InvitationService:
    """Get invitation ledger service."""
    return InvitationService(invitation_repo, user_repo, tenant_repo, session)


ActivationServiceDep = Annotated[ActivationService, Depends(get_activation_service)]
InvitationServiceDep = Annotated[InvitationService, Depends(get_invitation_service)]
