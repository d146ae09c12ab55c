"""Activation flow schemas.

Transition endpoints answer with a tagged envelope: ``ok`` plus either
``data`` or ``error``, and always the caller's updated attempt counter.
"""

from typing import Any, Generic, TypeVar
from urllib.parse import urlencode
from uuid import UUID

from pydantic import BaseModel, Field

from src.activation.core.config import get_settings
from src.activation.core.errors import ActivationError
from src.activation.models.enums import ActivationStage, Destination, MemberRole
from src.activation.services.retry_policy import AttemptState

T = TypeVar("T")

DESTINATION_PATHS: dict[Destination, str] = {
    Destination.PROFILE_SETUP: "/auth/bootstrap",
    Destination.INVITE_ACCEPTANCE: "/auth/invite/accept",
    Destination.PENDING_REVIEW: "/auth/pending",
    Destination.OWNER_SETUP: "/auth/owner/setup",
    Destination.DASHBOARD: "/dashboard",
    Destination.SIGN_IN: "/auth/login",
}


def destination_path(destination: Destination, invite_token: str | None = None) -> str:
    """Concrete frontend route for a destination intent."""
    path = DESTINATION_PATHS[destination]
    if destination == Destination.INVITE_ACCEPTANCE and invite_token:
        path = f"{path}?{urlencode({'token': invite_token})}"
    return path


class TransitionRequest(BaseModel):
    """Base for transition requests. attempts is the caller's counter."""

    attempts: int = Field(default=0, ge=0)

    def attempt_state(self) -> AttemptState:
        return AttemptState(attempts=self.attempts)


class ProfileCreateRequest(TransitionRequest):
    full_name: str | None = Field(default=None, max_length=100)


class OwnerSetupRequest(TransitionRequest):
    academy_name: str = Field(default="", max_length=100)
    timezone: str | None = Field(default=None, max_length=64)
    settings: dict[str, Any] = Field(default_factory=dict)


class InviteAcceptRequest(TransitionRequest):
    pass


class AttemptInfo(BaseModel):
    """Attempt counter returned with every activation response."""

    attempts: int
    max_attempts: int
    remaining: int

    @classmethod
    def from_state(cls, state: AttemptState) -> "AttemptInfo":
        return cls(
            attempts=state.attempts,
            max_attempts=state.max_attempts,
            remaining=state.remaining,
        )


class ActivationErrorRead(BaseModel):
    kind: str
    title: str
    description: str
    message: str
    retryable: bool
    benign: bool

    @classmethod
    def from_error(cls, error: ActivationError) -> "ActivationErrorRead":
        presentation = error.presentation
        return cls(
            kind=error.kind.value,
            title=presentation.title,
            description=presentation.description,
            message=error.message,
            retryable=error.retryable,
            benign=error.benign,
        )


class RouteRead(BaseModel):
    """Next destination, as an intent and as a concrete frontend route."""

    destination: Destination
    path: str
    url: str
    stage: ActivationStage | None = None

    @classmethod
    def build(
        cls,
        destination: Destination,
        stage: ActivationStage | None = None,
        invite_token: str | None = None,
    ) -> "RouteRead":
        path = destination_path(destination, invite_token)
        return cls(
            destination=destination,
            path=path,
            url=f"{get_settings().app_url.rstrip('/')}{path}",
            stage=stage,
        )


class ProfileRead(BaseModel):
    id: UUID
    email: str
    role: MemberRole | None = None


class OwnerSetupRead(BaseModel):
    tenant_id: UUID
    name: str
    timezone: str


class InviteAcceptRead(BaseModel):
    invitation_id: UUID
    tenant_id: UUID
    role: MemberRole


class ActivationEnvelope(BaseModel, Generic[T]):
    """Tagged success/error result of one activation operation."""

    ok: bool
    data: T | None = None
    error: ActivationErrorRead | None = None
    attempts: AttemptInfo
    next: RouteRead | None = None
