"""Identity model - one row per authenticated credential."""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from src.activation.models.base import utc_now
from src.activation.models.enums import ApprovalStatus, MemberRole


class User(SQLModel, table=True):
    """Identity profile.

    The primary key is the identity provider's subject id, so a profile is
    created at most once per credential. Rows are soft-deleted only.
    """

    __tablename__ = "users"
    __table_args__ = {"schema": "public"}

    id: UUID = Field(primary_key=True)
    email: str = Field(max_length=255, unique=True, index=True)
    full_name: str | None = Field(default=None, max_length=100)
    tenant_id: UUID | None = Field(default=None, foreign_key="public.tenants.id", index=True)
    role: str | None = Field(default=None, max_length=20)

    onboarding_completed: bool = Field(default=False)
    onboarding_completed_at: datetime | None = Field(default=None)

    approval_status: str = Field(default=ApprovalStatus.PENDING.value, max_length=20)
    approval_reason: str | None = Field(default=None, max_length=500)
    approved_by: UUID | None = Field(default=None)
    approved_at: datetime | None = Field(default=None)

    settings: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    preferences: dict[str, Any] = Field(
        default_factory=dict, sa_column=Column(JSON, nullable=False)
    )

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    deleted_at: datetime | None = Field(default=None)

    @property
    def role_enum(self) -> MemberRole | None:
        """Get role as MemberRole enum (None when unset)."""
        return MemberRole(self.role) if self.role else None

    @property
    def is_deleted(self) -> bool:
        """Check if the identity is soft-deleted."""
        return self.deleted_at is not None
