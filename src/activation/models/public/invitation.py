"""Staff invitation model."""

from datetime import datetime
from uuid import UUID, uuid7

from sqlmodel import Field, SQLModel

from src.activation.models.base import utc_now
from src.activation.models.enums import InvitationStatus


class Invitation(SQLModel, table=True):
    """Single-use, time-bounded offer for an email to join a tenant.

    Only the SHA256 hash of the opaque token is stored.
    """

    __tablename__ = "invitations"
    __table_args__ = {"schema": "public"}

    id: UUID = Field(default_factory=uuid7, primary_key=True)
    tenant_id: UUID = Field(foreign_key="public.tenants.id", index=True)
    invited_by: UUID = Field(foreign_key="public.users.id", index=True)
    email: str = Field(max_length=255, index=True)
    role: str = Field(max_length=20)
    token_hash: str = Field(max_length=64, unique=True, index=True)
    status: str = Field(default=InvitationStatus.PENDING.value, max_length=20, index=True)
    expires_at: datetime
    accepted_at: datetime | None = Field(default=None)
    accepted_by: UUID | None = Field(default=None, foreign_key="public.users.id")
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    deleted_at: datetime | None = Field(default=None)

    def is_expired(self, now: datetime | None = None) -> bool:
        """Lazy expiry: past expires_at counts as expired whatever the stored status."""
        return (now or utc_now()) > self.expires_at

    def effective_status(self, now: datetime | None = None) -> InvitationStatus:
        """Stored status with lazy expiry applied to pending invitations."""
        status = InvitationStatus(self.status)
        if status == InvitationStatus.PENDING and self.is_expired(now):
            return InvitationStatus.EXPIRED
        return status
