"""Tracked part within a project."""

from typing import Optional
import uuid

from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class ProjectDetail(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "project_details"

    project_id: uuid.UUID = Field(foreign_key="projects.id", nullable=False, index=True)
    name: str = Field(nullable=False)
    status: str = Field(default="ready", nullable=False)  # DetailStatus
    location: Optional[str] = None
