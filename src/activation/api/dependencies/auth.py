"""Authentication dependencies.

Access tokens come from the external identity provider; this service only
verifies them. The activation flow works on the credential alone, since a
profile may not exist yet.
"""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, status

from src.activation.api.dependencies.repositories import UserRepo
from src.activation.core.errors import UnauthenticatedError
from src.activation.core.logging import bind_identity_context
from src.activation.core.security import Credential, credential_from_token
from src.activation.models import ApprovalStatus, MemberRole, User


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization or not authorization.startswith("Bearer "):
        return None
    return authorization[7:]


async def get_optional_credential(
    authorization: Annotated[str | None, Header()] = None,
) -> Credential | None:
    """Credential from the Authorization header, or None if absent or invalid."""
    token = _bearer_token(authorization)
    if token is None:
        return None
    try:
        credential = credential_from_token(token)
    except UnauthenticatedError:
        return None
    bind_identity_context(credential.id, credential.email)
    return credential


async def get_credential(
    authorization: Annotated[str | None, Header()] = None,
) -> Credential:
    """Validate the access token and return the credential."""
    token = _bearer_token(authorization)
    if token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid authorization header",
        )
    try:
        credential = credential_from_token(token)
    except UnauthenticatedError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
        ) from e

    bind_identity_context(credential.id, credential.email)
    return credential


OptionalCredential = Annotated[Credential | None, Depends(get_optional_credential)]
CurrentCredential = Annotated[Credential, Depends(get_credential)]


async def get_profile_user(credential: CurrentCredential, user_repo: UserRepo) -> User:
    """Return the caller's identity profile."""
    user = await user_repo.get_by_id(credential.id)
    if user is None or user.is_deleted:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Profile not found",
        )
    return user


ProfileUser = Annotated[User, Depends(get_profile_user)]


async def require_ready_owner(user: ProfileUser) -> User:
    """Require a fully activated academy owner."""
    if (
        user.tenant_id is None
        or user.role != MemberRole.OWNER.value
        or user.approval_status != ApprovalStatus.APPROVED.value
        or not user.onboarding_completed
    ):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Academy owner access required",
        )
    return user


ReadyOwner = Annotated[User, Depends(require_ready_owner)]
