"""
Project detail ("part") service.

Status changes append an audit entry. The detail update is committed
first and the audit write follows in its own commit; a failed audit
write is logged and never undoes the update.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core import permissions
from app.core.config import get_settings
from app.core.errors import Forbidden, NotFound
from app.models.base import utcnow
from app.models.project import Project
from app.models.project_detail import ProjectDetail
from app.models.project_role import ProjectUserRole
from app.services import audit_log as audit_service
from app.services.projects import get_project_or_404
from parttrack_shared.schemas.common import DetailStatus

log = structlog.get_logger()
settings = get_settings()


def _as_value(value):
    return value.value if isinstance(value, DetailStatus) else value


async def require_detail_write(
    session: AsyncSession, user_id: uuid.UUID, project: Project
) -> None:
    """Gate part mutations according to the configured write policy."""
    if settings.detail_write_policy == "organization":
        if not await permissions.is_org_member(session, user_id, project.org_id):
            raise Forbidden("Access denied")
        return
    await permissions.require_project_view(session, user_id, project)


async def get_detail_or_404(session: AsyncSession, detail_id: uuid.UUID) -> ProjectDetail:
    detail = await session.get(ProjectDetail, detail_id)
    if not detail:
        raise NotFound("Detail not found")
    return detail


async def list_for_project(
    project: Project, user_id: uuid.UUID, session: AsyncSession
) -> list[ProjectDetail]:
    await permissions.require_project_view(session, user_id, project)
    result = await session.execute(
        select(ProjectDetail)
        .where(ProjectDetail.project_id == project.id)
        .order_by(ProjectDetail.created_at)
    )
    return list(result.scalars().all())


async def list_for_org(
    org_id: uuid.UUID, user_id: uuid.UUID, session: AsyncSession
) -> list[ProjectDetail]:
    """Details of every project in the org that the caller can view."""
    org_role = await permissions.get_org_role(session, user_id, org_id)
    if org_role is None:
        raise Forbidden("Access denied")

    stmt = (
        select(ProjectDetail)
        .join(Project, Project.id == ProjectDetail.project_id)
        .where(Project.org_id == org_id)
    )
    if not permissions.is_org_admin_or_owner(org_role):
        stmt = stmt.join(
            ProjectUserRole,
            (ProjectUserRole.project_id == Project.id) & (ProjectUserRole.user_id == user_id),
        )
    result = await session.execute(stmt.order_by(ProjectDetail.created_at))
    return list(result.scalars().all())


async def create_detail(
    project_id: uuid.UUID,
    name: str,
    location: Optional[str],
    status: DetailStatus,
    user_id: uuid.UUID,
    session: AsyncSession,
) -> ProjectDetail:
    project = await get_project_or_404(session, project_id)
    await require_detail_write(session, user_id, project)

    detail = ProjectDetail(
        project_id=project.id,
        name=name,
        location=location,
        status=_as_value(status),
    )
    session.add(detail)
    await session.flush()
    log.info("detail.created", detail_id=str(detail.id), project_id=str(project.id))
    return detail


async def update_detail(
    detail_id: uuid.UUID,
    changes: dict,
    user_id: uuid.UUID,
    session: AsyncSession,
) -> tuple[ProjectDetail, bool]:
    """Apply a partial update. Returns (detail, changed)."""
    detail = await get_detail_or_404(session, detail_id)
    project = await get_project_or_404(session, detail.project_id)
    await require_detail_write(session, user_id, project)

    changes = {
        key: _as_value(value)
        for key, value in changes.items()
        if getattr(detail, key) != _as_value(value)
    }
    if not changes:
        return detail, False

    old_status = detail.status
    for key, value in changes.items():
        setattr(detail, key, _as_value(value))
    detail.updated_at = utcnow()
    session.add(detail)
    await session.commit()

    if detail.status != old_status:
        log.info(
            "detail.status_changed",
            detail_id=str(detail.id),
            old_status=old_status,
            new_status=detail.status,
        )
        try:
            await audit_service.append_status_change(
                project.org_id, detail, old_status, detail.status, session
            )
            await session.commit()
        except SQLAlchemyError:
            await session.rollback()
            log.exception("audit.write_failed", detail_id=str(detail.id))
            await session.refresh(detail)

    return detail, True


async def delete_detail(
    detail_id: uuid.UUID, user_id: uuid.UUID, session: AsyncSession
) -> None:
    detail = await get_detail_or_404(session, detail_id)
    project = await get_project_or_404(session, detail.project_id)
    await require_detail_write(session, user_id, project)

    await session.delete(detail)
    await session.flush()
    log.info("detail.deleted", detail_id=str(detail_id), project_id=str(project.id))
