"""Append-only record of part status transitions."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import UUIDMixin, utcnow


class AuditLogEntry(UUIDMixin, SQLModel, table=True):
    __tablename__ = "project_details_log"

    org_id: uuid.UUID = Field(foreign_key="organizations.id", nullable=False, index=True)
    project_id: uuid.UUID = Field(foreign_key="projects.id", nullable=False, index=True)
    # No foreign key: entries outlive the part they describe.
    detail_id: Optional[uuid.UUID] = Field(default=None, index=True)
    old_status: str = Field(nullable=False)
    new_status: str = Field(nullable=False)
    created_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        index=True,
        sa_type=sa.DateTime(timezone=True),
    )
