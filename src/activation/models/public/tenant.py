"""Tenant model - the academy organization."""

from datetime import datetime
from typing import Any
from uuid import UUID, uuid7

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from src.activation.models.base import utc_now


class Tenant(SQLModel, table=True):
    """Academy registry. Created once by owner setup, owned by its creator."""

    __tablename__ = "tenants"
    __table_args__ = {"schema": "public"}

    id: UUID = Field(default_factory=uuid7, primary_key=True)
    name: str = Field(max_length=100, index=True)
    timezone: str = Field(default="Asia/Seoul", max_length=64)
    settings: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    owner_id: UUID = Field(index=True)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    deleted_at: datetime | None = Field(default=None)

    @property
    def is_deleted(self) -> bool:
        """Check if tenant is soft-deleted."""
        return self.deleted_at is not None
