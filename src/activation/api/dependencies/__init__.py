"""FastAPI dependency injection definitions."""

# Auth
from src.activation.api.dependencies.auth import (
    CurrentCredential,
    OptionalCredential,
    ProfileUser,
    ReadyOwner,
    get_credential,
    get_optional_credential,
    get_profile_user,
    require_ready_owner,
)

# Database
from src.activation.api.dependencies.db import DBSession, get_db_session

# Repositories
from src.activation.api.dependencies.repositories import (
    InvitationRepo,
    TenantRepo,
    UserRepo,
    get_invitation_repository,
    get_tenant_repository,
    get_user_repository,
)

# Services
from src.activation.api.dependencies.services import (
    ActivationServiceDep,
    InvitationServiceDep,
    RetryPolicyDep,
    get_activation_service,
    get_invitation_service,
    get_retry_policy,
)

__all__ = [
    # Database
    "DBSession",
    "get_db_session",
    # Auth
    "CurrentCredential",
    "OptionalCredential",
    "ProfileUser",
    "ReadyOwner",
    "get_credential",
    "get_optional_credential",
    "get_profile_user",
    "require_ready_owner",
    # Repositories
    "InvitationRepo",
    "TenantRepo",
    "UserRepo",
    "get_invitation_repository",
    "get_tenant_repository",
    "get_user_repository",
    # Services
    "ActivationServiceDep",
    "InvitationServiceDep",
    "RetryPolicyDep",
    "get_activation_service",
    "get_invitation_service",
    "get_retry_policy",
]
