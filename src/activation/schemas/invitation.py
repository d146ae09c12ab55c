"""Invitation schemas."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class InvitationCreateRequest(BaseModel):
    """Request to issue an invitation. The owner role cannot be invited."""

    email: EmailStr
    role: Literal["instructor", "assistant", "parent", "student"] = "instructor"
    expires_in_days: int | None = Field(default=None, ge=1, le=30)


class InvitationCreateResponse(BaseModel):
    """Response after issuing an invitation.

    The plaintext token is only ever returned here.
    """

    id: UUID
    email: str
    role: str
    expires_at: datetime
    token: str
    accept_url: str


class InvitationRead(BaseModel):
    """Owner view of an invitation."""

    id: UUID
    email: str
    role: str
    status: str
    created_at: datetime
    expires_at: datetime
    invited_by: UUID

    model_config = {"from_attributes": True}


class InvitationListResponse(BaseModel):
    invitations: list[InvitationRead]
    total: int


class InvitationInfoResponse(BaseModel):
    """Public info about an invitation (for the accept page)."""

    tenant_name: str
    email: str
    role: str
    expires_at: datetime
    status: str


class InvitationRejectResponse(BaseModel):
    message: str = "Invitation declined"
