"""Activation flow facade.

Wires the stage router and the transition executor behind the retry
policy. Every operation takes the caller's attempt state and returns a
TransitionOutcome carrying the next attempt state.
"""

from typing import Any

from src.activation.core.errors import ErrorContext
from src.activation.core.logging import get_logger
from src.activation.core.security import Credential
from src.activation.models.enums import MemberRole
from src.activation.models.public import Tenant
from src.activation.services.retry_policy import (
    AttemptState,
    RetryPolicy,
    TransitionOutcome,
)
from src.activation.services.stage_resolver import IdentitySnapshot
from src.activation.services.stage_router import RouteDecision, StageRouter
from src.activation.services.transition_executor import (
    AcceptedInvitation,
    TransitionExecutor,
)

logger = get_logger(__name__)


class ActivationService:
    """Stage check plus the three activation transitions, each under the retry policy."""

    def __init__(
        self,
        executor: TransitionExecutor,
        router: StageRouter,
        policy: RetryPolicy | None = None,
    ):
        self.executor = executor
        self.router = router
        self.policy = policy or RetryPolicy()

    async def check_and_route(
        self,
        credential: Credential | None,
        invite_token: str | None = None,
        state: AttemptState | None = None,
    ) -> TransitionOutcome[RouteDecision]:
        """Resolve the caller's stage under the retry policy.

        A failed check still carries a decision: sign-in, with the error.
        """

        async def operation() -> RouteDecision:
            decision = await self.router.check_and_route(credential, invite_token)
            if decision.error is not None:
                raise decision.error
            return decision

        owner = credential.id if credential is not None else None
        return await self.policy.run(operation, state, ErrorContext.STAGE_CHECK, owner)

    async def next_route(self, credential: Credential) -> RouteDecision:
        """Re-resolve after a transition so the caller knows where to go."""
        return await self.router.check_and_route(credential)

    async def create_profile(
        self,
        credential: Credential,
        full_name: str | None = None,
        role: MemberRole = MemberRole.OWNER,
        state: AttemptState | None = None,
    ) -> TransitionOutcome[IdentitySnapshot]:
        logger.info("Creating profile", identity_id=str(credential.id))
        return await self.policy.run(
            lambda: self.executor.create_profile(credential, full_name=full_name, role=role),
            state,
            ErrorContext.PROFILE,
            credential.id,
        )

    async def finish_owner_setup(
        self,
        credential: Credential,
        academy_name: str,
        timezone: str | None = None,
        settings: dict[str, Any] | None = None,
        state: AttemptState | None = None,
    ) -> TransitionOutcome[Tenant]:
        logger.info("Finishing owner setup", identity_id=str(credential.id))
        return await self.policy.run(
            lambda: self.executor.finish_owner_setup(
                credential.id, academy_name, timezone=timezone, settings=settings
            ),
            state,
            ErrorContext.OWNER_SETUP,
            credential.id,
        )

    async def accept_invite(
        self,
        credential: Credential,
        token: str,
        state: AttemptState | None = None,
    ) -> TransitionOutcome[AcceptedInvitation]:
        logger.info("Accepting invitation", identity_id=str(credential.id))
        return await self.policy.run(
            lambda: self.executor.accept_invite(credential.id, token),
            state,
            ErrorContext.INVITE,
            credential.id,
        )
