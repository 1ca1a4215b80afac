"""Pending organization membership for an email that has no account yet."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import UUIDMixin, utcnow


class Invitation(UUIDMixin, SQLModel, table=True):
    __tablename__ = "invited_users"

    email: str = Field(nullable=False, index=True)
    org_id: uuid.UUID = Field(foreign_key="organizations.id", nullable=False, index=True)
    role_id: int = Field(nullable=False)  # OrgRole granted on acceptance
    invited_by: Optional[uuid.UUID] = Field(default=None, foreign_key="users.id")
    expires_at: datetime = Field(nullable=False, sa_type=sa.DateTime(timezone=True))
    created_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_type=sa.DateTime(timezone=True),
    )
