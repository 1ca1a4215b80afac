"""User-Organization membership and role (join tables)."""

import uuid

from sqlmodel import Field, SQLModel


class UserOrg(SQLModel, table=True):
    """Bare membership: the pair is either present or absent."""

    __tablename__ = "users_in_organizations"

    user_id: uuid.UUID = Field(foreign_key="users.id", primary_key=True)
    org_id: uuid.UUID = Field(foreign_key="organizations.id", primary_key=True)


class UserOrgRole(SQLModel, table=True):
    """Exactly one role per (user, org). Implies a UserOrg row for the same pair."""

    __tablename__ = "user_company_roles"

    user_id: uuid.UUID = Field(foreign_key="users.id", primary_key=True)
    org_id: uuid.UUID = Field(foreign_key="organizations.id", primary_key=True)
    role_id: int = Field(nullable=False)  # OrgRole
