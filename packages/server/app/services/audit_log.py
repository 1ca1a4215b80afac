"""Audit log service: append status transitions and read the activity feed."""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.audit_log import AuditLogEntry
from app.models.project_detail import ProjectDetail

log = structlog.get_logger()

UNKNOWN_PART = "Unknown Part"


async def append_status_change(
    org_id: uuid.UUID,
    detail: ProjectDetail,
    old_status: str,
    new_status: str,
    session: AsyncSession,
) -> AuditLogEntry:
    entry = AuditLogEntry(
        org_id=org_id,
        project_id=detail.project_id,
        detail_id=detail.id,
        old_status=old_status,
        new_status=new_status,
    )
    session.add(entry)
    await session.flush()
    return entry


async def list_recent(
    project_id: uuid.UUID, limit: int, session: AsyncSession
) -> list[dict]:
    """Newest entries first, labelled with the current name of their part."""
    result = await session.execute(
        select(AuditLogEntry, ProjectDetail.name)
        .outerjoin(ProjectDetail, ProjectDetail.id == AuditLogEntry.detail_id)
        .where(AuditLogEntry.project_id == project_id)
        .order_by(AuditLogEntry.created_at.desc())
        .limit(limit)
    )
    return [
        {
            "id": entry.id,
            "organization_id": entry.org_id,
            "project_id": entry.project_id,
            "detail_id": entry.detail_id,
            "old_status": entry.old_status,
            "new_status": entry.new_status,
            "created_at": entry.created_at,
            "part_name": name or UNKNOWN_PART,
        }
        for entry, name in result.all()
    ]
