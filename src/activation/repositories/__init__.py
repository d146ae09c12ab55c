"""Repository layer - data access abstraction."""

from src.activation.repositories.base import BaseRepository
from src.activation.repositories.invitation import InvitationRepository
from src.activation.repositories.tenant import TenantRepository
from src.activation.repositories.user import UserRepository

__all__ = [
    "BaseRepository",
    "InvitationRepository",
    "TenantRepository",
    "UserRepository",
]
