"""Repository for Tenant entity."""

from src.activation.models.public import Tenant
from src.activation.repositories.base import BaseRepository


class TenantRepository(BaseRepository[Tenant]):
    """Repository for academies."""

    model = Tenant
