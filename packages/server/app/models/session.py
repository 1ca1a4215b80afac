"""Login sessions. Only a digest of the cookie token is stored."""

from datetime import datetime
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import utcnow


class AuthSession(SQLModel, table=True):
    __tablename__ = "sessions"

    token_hash: str = Field(primary_key=True, max_length=64)  # sha256 hex of the cookie value
    user_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)
    expires_at: datetime = Field(nullable=False, sa_type=sa.DateTime(timezone=True))
    created_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_type=sa.DateTime(timezone=True),
    )
