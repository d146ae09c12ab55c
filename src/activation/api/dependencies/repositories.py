"""Repository factory dependencies."""

from typing import Annotated

from fastapi import Depends

from src.activation.api.dependencies.db import DBSession
from src.activation.repositories import (
    InvitationRepository,
    TenantRepository,
    UserRepository,
)


def get_user_repository(session: DBSession) -> UserRepository:
    """Get user repository."""
    return UserRepository(session)


def get_tenant_repository(session: DBSession) -> TenantRepository:
    """Get tenant repository."""
    return TenantRepository(session)


def get_invitation_repository(session: DBSession) -> InvitationRepository:
    """Get invitation repository."""
    return InvitationRepository(session)


UserRepo = Annotated[UserRepository, Depends(get_user_repository)]
TenantRepo = Annotated[TenantRepository, Depends(get_tenant_repository)]
InvitationRepo = Annotated[InvitationRepository, Depends(get_invitation_repository)]
