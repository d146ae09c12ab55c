"""Initial migration

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
import sqlmodel

from alembic import op

revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # 1. Tenants table (owner_id has no FK: users reference tenants)
    op.create_table(
        "tenants",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sqlmodel.sql.sqltypes.AutoString(length=100), nullable=False),
        sa.Column(
            "timezone",
            sqlmodel.sql.sqltypes.AutoString(length=64),
            nullable=False,
            server_default="Asia/Seoul",
        ),
        sa.Column("settings", sa.JSON(), nullable=False),
        sa.Column("owner_id", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        schema="public",
    )
    op.create_index("ix_public_tenants_name", "tenants", ["name"], schema="public")
    op.create_index("ix_public_tenants_owner_id", "tenants", ["owner_id"], schema="public")

    # 2. Users table (id is the identity provider's subject)
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column("full_name", sqlmodel.sql.sqltypes.AutoString(length=100), nullable=True),
        sa.Column("tenant_id", sa.Uuid(), nullable=True),
        sa.Column("role", sqlmodel.sql.sqltypes.AutoString(length=20), nullable=True),
        sa.Column(
            "onboarding_completed", sa.Boolean(), nullable=False, server_default=sa.text("false")
        ),
        sa.Column("onboarding_completed_at", sa.DateTime(), nullable=True),
        sa.Column(
            "approval_status",
            sqlmodel.sql.sqltypes.AutoString(length=20),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("approval_reason", sqlmodel.sql.sqltypes.AutoString(length=500), nullable=True),
        sa.Column("approved_by", sa.Uuid(), nullable=True),
        sa.Column("approved_at", sa.DateTime(), nullable=True),
        sa.Column("settings", sa.JSON(), nullable=False),
        sa.Column("preferences", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["tenant_id"], ["public.tenants.id"]),
        sa.PrimaryKeyConstraint("id"),
        schema="public",
    )
    op.create_index("ix_public_users_email", "users", ["email"], unique=True, schema="public")
    op.create_index("ix_public_users_tenant_id", "users", ["tenant_id"], schema="public")

    # 3. Invitations table (only the token hash is stored)
    op.create_table(
        "invitations",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("tenant_id", sa.Uuid(), nullable=False),
        sa.Column("invited_by", sa.Uuid(), nullable=False),
        sa.Column("email", sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column("role", sqlmodel.sql.sqltypes.AutoString(length=20), nullable=False),
        sa.Column("token_hash", sqlmodel.sql.sqltypes.AutoString(length=64), nullable=False),
        sa.Column(
            "status",
            sqlmodel.sql.sqltypes.AutoString(length=20),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("accepted_at", sa.DateTime(), nullable=True),
        sa.Column("accepted_by", sa.Uuid(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["tenant_id"], ["public.tenants.id"]),
        sa.ForeignKeyConstraint(["invited_by"], ["public.users.id"]),
        sa.ForeignKeyConstraint(["accepted_by"], ["public.users.id"]),
        sa.PrimaryKeyConstraint("id"),
        schema="public",
    )
    op.create_index(
        "ix_public_invitations_tenant_id", "invitations", ["tenant_id"], schema="public"
    )
    op.create_index(
        "ix_public_invitations_invited_by", "invitations", ["invited_by"], schema="public"
    )
    op.create_index("ix_public_invitations_email", "invitations", ["email"], schema="public")
    op.create_index(
        "ix_public_invitations_token_hash",
        "invitations",
        ["token_hash"],
        unique=True,
        schema="public",
    )
    op.create_index("ix_public_invitations_status", "invitations", ["status"], schema="public")
    # Sweep scans pending rows by expiry
    op.create_index(
        "ix_invitations_pending_expires_at",
        "invitations",
        ["expires_at"],
        schema="public",
        postgresql_where=sa.text("status = 'pending' AND deleted_at IS NULL"),
    )


def downgrade() -> None:
    op.drop_index("ix_invitations_pending_expires_at", table_name="invitations", schema="public")
    op.drop_index("ix_public_invitations_status", table_name="invitations", schema="public")
    op.drop_index("ix_public_invitations_token_hash", table_name="invitations", schema="public")
    op.drop_index("ix_public_invitations_email", table_name="invitations", schema="public")
    op.drop_index("ix_public_invitations_invited_by", table_name="invitations", schema="public")
    op.drop_index("ix_public_invitations_tenant_id", table_name="invitations", schema="public")
    op.drop_table("invitations", schema="public")

    op.drop_index("ix_public_users_tenant_id", table_name="users", schema="public")
    op.drop_index("ix_public_users_email", table_name="users", schema="public")
    op.drop_table("users", schema="public")

    op.drop_index("ix_public_tenants_owner_id", table_name="tenants", schema="public")
    op.drop_index("ix_public_tenants_name", table_name="tenants", schema="public")
    op.drop_table("tenants", schema="public")
