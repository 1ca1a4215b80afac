"""Initial schema: users, sessions, organizations, roles, invitations, projects, parts, audit log.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamp(name: str, nullable: bool = False, server_default: bool = True) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        nullable=nullable,
        server_default=sa.func.now() if server_default else None,
    )


# ---------------------------------------------------------------------------
# UPGRADE
# ---------------------------------------------------------------------------


def upgrade() -> None:
    # users
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("password_hash", sa.String(), nullable=False),
        sa.Column("first_name", sa.String(), nullable=True),
        sa.Column("last_name", sa.String(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _timestamp("created_at"),
        _timestamp("activated_at", nullable=True, server_default=False),
        _timestamp("deleted_at", nullable=True, server_default=False),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # sessions (token stored as sha256 digest)
    op.create_table(
        "sessions",
        sa.Column("token_hash", sa.String(length=64), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        _timestamp("expires_at", server_default=False),
        _timestamp("created_at"),
    )
    op.create_index("ix_sessions_user_id", "sessions", ["user_id"])

    # organizations
    op.create_table(
        "organizations",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("owner_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_index("ix_organizations_id", "organizations", ["id"])
    op.create_index("ix_organizations_name", "organizations", ["name"])
    op.create_index("ix_organizations_owner_id", "organizations", ["owner_id"])

    # membership and org roles
    op.create_table(
        "users_in_organizations",
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id"), primary_key=True),
        sa.Column("org_id", sa.Uuid(), sa.ForeignKey("organizations.id"), primary_key=True),
    )
    op.create_table(
        "user_company_roles",
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id"), primary_key=True),
        sa.Column("org_id", sa.Uuid(), sa.ForeignKey("organizations.id"), primary_key=True),
        sa.Column("role_id", sa.Integer(), nullable=False),
    )

    # invitations
    op.create_table(
        "invited_users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("org_id", sa.Uuid(), sa.ForeignKey("organizations.id"), nullable=False),
        sa.Column("role_id", sa.Integer(), nullable=False),
        sa.Column("invited_by", sa.Uuid(), sa.ForeignKey("users.id"), nullable=True),
        _timestamp("expires_at", server_default=False),
        _timestamp("created_at"),
    )
    op.create_index("ix_invited_users_id", "invited_users", ["id"])
    op.create_index("ix_invited_users_email", "invited_users", ["email"])
    op.create_index("ix_invited_users_org_id", "invited_users", ["org_id"])

    # projects
    op.create_table(
        "projects",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("org_id", sa.Uuid(), sa.ForeignKey("organizations.id"), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="active"),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_index("ix_projects_id", "projects", ["id"])
    op.create_index("ix_projects_org_id", "projects", ["org_id"])

    # project roles
    op.create_table(
        "user_project_roles",
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id"), primary_key=True),
        sa.Column("project_id", sa.Uuid(), sa.ForeignKey("projects.id"), primary_key=True),
        sa.Column("role_id", sa.Integer(), nullable=False),
        _timestamp("assigned_at"),
    )

    # parts
    op.create_table(
        "project_details",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("project_id", sa.Uuid(), sa.ForeignKey("projects.id"), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="ready"),
        sa.Column("location", sa.String(), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_index("ix_project_details_id", "project_details", ["id"])
    op.create_index("ix_project_details_project_id", "project_details", ["project_id"])

    # audit log (detail_id has no FK: entries outlive their part)
    op.create_table(
        "project_details_log",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("org_id", sa.Uuid(), sa.ForeignKey("organizations.id"), nullable=False),
        sa.Column("project_id", sa.Uuid(), sa.ForeignKey("projects.id"), nullable=False),
        sa.Column("detail_id", sa.Uuid(), nullable=True),
        sa.Column("old_status", sa.String(), nullable=False),
        sa.Column("new_status", sa.String(), nullable=False),
        _timestamp("created_at"),
    )
    op.create_index("ix_project_details_log_id", "project_details_log", ["id"])
    op.create_index("ix_project_details_log_org_id", "project_details_log", ["org_id"])
    op.create_index("ix_project_details_log_project_id", "project_details_log", ["project_id"])
    op.create_index("ix_project_details_log_detail_id", "project_details_log", ["detail_id"])
    op.create_index("ix_project_details_log_created_at", "project_details_log", ["created_at"])


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    for table in (
        "project_details_log",
        "project_details",
        "user_project_roles",
        "projects",
        "invited_users",
        "user_company_roles",
        "users_in_organizations",
        "organizations",
        "sessions",
        "users",
    ):
        op.drop_table(table)
