"""Organization model."""

import uuid

from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Organization(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "organizations"

    name: str = Field(nullable=False, index=True)
    # The owner also holds the Owner role row for this org.
    owner_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)
