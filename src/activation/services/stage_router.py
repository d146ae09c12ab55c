"""Stage check and routing.

Reads the identity (and the invitation, if a token was supplied), resolves
the activation stage and turns it into a destination intent. Failures never
escape: they route to sign-in with a classified error.
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from src.activation.core.config import get_settings
from src.activation.core.errors import (
    ActivationError,
    ActivationErrorKind,
    ErrorClassifier,
    ErrorContext,
    UnexpectedStageError,
    default_classifier,
)
from src.activation.core.logging import get_logger
from src.activation.core.security import (
    Credential,
    hash_token,
    normalize_invitation_token,
)
from src.activation.models.base import utc_now
from src.activation.models.enums import ActivationStage, Destination
from src.activation.repositories import InvitationRepository, UserRepository
from src.activation.services.stage_resolver import (
    IdentitySnapshot,
    InvitationSnapshot,
    resolve_stage,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class RouteDecision:
    """Where to send the caller, and why."""

    destination: Destination
    stage: ActivationStage | None = None
    error: ActivationError | None = None
    invite_token: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class StageRouter:
    """Resolves stage and destination over the user and invitation stores."""

    def __init__(
        self,
        user_repo: UserRepository,
        invitation_repo: InvitationRepository,
        timeout_seconds: float | None = None,
        classifier: ErrorClassifier = default_classifier,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.user_repo = user_repo
        self.invitation_repo = invitation_repo
        self.timeout_seconds = timeout_seconds or get_settings().store_timeout_seconds
        self.classifier = classifier
        self.clock = clock

    async def _load(
        self, credential: Credential, invite_token: str | None
    ) -> tuple[IdentitySnapshot | None, InvitationSnapshot | None]:
        async with asyncio.timeout(self.timeout_seconds):
            user = await self.user_repo.get_by_id(credential.id)
            identity = IdentitySnapshot.from_user(user) if user is not None else None

            invitation = None
            if identity is not None and invite_token is not None:
                row = await self.invitation_repo.get_by_token_hash(hash_token(invite_token))
                if row is not None:
                    invitation = InvitationSnapshot.from_invitation(row)
        return identity, invitation

    async def check_and_route(
        self,
        credential: Credential | None,
        invite_token: str | None = None,
    ) -> RouteDecision:
        """Resolve the caller's stage and pick the next destination."""
        if credential is None:
            return RouteDecision(
                destination=Destination.SIGN_IN,
                error=ActivationError(ActivationErrorKind.UNAUTHENTICATED),
            )

        normalized = normalize_invitation_token(invite_token) if invite_token else None

        try:
            identity, invitation = await self._load(credential, normalized)
            resolution = resolve_stage(identity, invitation, now=self.clock())
        except UnexpectedStageError as e:
            logger.error(
                "Unexpected activation stage",
                **e.snapshot,
            )
            return RouteDecision(
                destination=Destination.SIGN_IN,
                error=self.classifier.classify(e, ErrorContext.STAGE_CHECK),
            )
        except Exception as e:
            raw_kind = self.classifier.classify(e, ErrorContext.STAGE_CHECK).kind
            error = ActivationError(ActivationErrorKind.AUTH_STAGE_CHECK_FAILED, cause=e)
            logger.warning(
                "Stage check failed",
                identity_id=str(credential.id),
                kind=raw_kind.value,
                error=str(e),
            )
            return RouteDecision(destination=Destination.SIGN_IN, error=error)

        if resolution.destination is not None:
            destination = resolution.destination
        elif resolution.stage == ActivationStage.READY:
            destination = Destination.DASHBOARD
        else:
            # Resolver returned a stage with no destination other than READY.
            logger.error(
                "Activation stage has no destination",
                identity_id=str(credential.id),
                stage=resolution.stage.value,
            )
            return RouteDecision(
                destination=Destination.SIGN_IN,
                stage=resolution.stage,
                error=ActivationError(ActivationErrorKind.UNEXPECTED_AUTH_STAGE),
            )

        logger.info(
            "Activation stage resolved",
            identity_id=str(credential.id),
            stage=resolution.stage.value,
            destination=destination.value,
        )
        return RouteDecision(
            destination=destination,
            stage=resolution.stage,
            invite_token=normalized if destination == Destination.INVITE_ACCEPTANCE else None,
        )
