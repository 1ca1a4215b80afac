"""User model."""

from datetime import datetime
from typing import Optional

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import UUIDMixin, utcnow


class User(UUIDMixin, SQLModel, table=True):
    __tablename__ = "users"

    email: str = Field(unique=True, index=True, nullable=False)
    password_hash: str = Field(nullable=False)  # bcrypt hash
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    is_active: bool = Field(default=True, nullable=False)
    created_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_column_kwargs={"server_default": sa.func.now()},
        sa_type=sa.DateTime(timezone=True),
    )
    activated_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
    deleted_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
