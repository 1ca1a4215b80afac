"""Project model."""

import uuid

from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Project(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "projects"

    org_id: uuid.UUID = Field(foreign_key="organizations.id", nullable=False, index=True)
    name: str = Field(nullable=False)
    status: str = Field(default="active", nullable=False)
