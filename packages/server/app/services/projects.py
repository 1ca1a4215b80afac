"""
Project service: project CRUD, cascade deletion, and project membership.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core import permissions
from app.core.errors import Conflict, Forbidden, NotFound, ValidationError
from app.models.audit_log import AuditLogEntry
from app.models.base import utcnow
from app.models.project import Project
from app.models.project_detail import ProjectDetail
from app.models.project_role import ProjectUserRole
from app.models.user import User
from parttrack_shared.schemas.common import OrgRole, ProjectRole

log = structlog.get_logger()


async def get_project_or_404(session: AsyncSession, project_id: uuid.UUID) -> Project:
    project = await session.get(Project, project_id)
    if not project:
        raise NotFound("Project not found")
    return project


async def list_projects(
    org_id: uuid.UUID,
    user_id: uuid.UUID,
    org_role: Optional[OrgRole],
    session: AsyncSession,
) -> list[Project]:
    """Projects in the org that the user may see."""
    stmt = select(Project).where(Project.org_id == org_id)
    if not permissions.is_org_admin_or_owner(org_role):
        stmt = stmt.join(
            ProjectUserRole,
            (ProjectUserRole.project_id == Project.id) & (ProjectUserRole.user_id == user_id),
        )
    result = await session.execute(stmt.order_by(Project.created_at))
    return list(result.scalars().all())


async def create_project(
    org_id: uuid.UUID,
    name: str,
    status: str,
    creator_id: uuid.UUID,
    session: AsyncSession,
) -> Project:
    """Create a project; the creator is granted Project Owner on it."""
    project = Project(org_id=org_id, name=name, status=status)
    session.add(project)
    await session.flush()  # get project.id

    session.add(
        ProjectUserRole(
            user_id=creator_id,
            project_id=project.id,
            role_id=int(ProjectRole.PROJECT_OWNER),
        )
    )
    await session.flush()

    log.info("project.created", project_id=str(project.id), org_id=str(org_id), creator=str(creator_id))
    return project


async def update_project(
    project: Project, changes: dict, session: AsyncSession
) -> Project:
    for key, value in changes.items():
        setattr(project, key, value)
    project.updated_at = utcnow()
    session.add(project)
    await session.flush()
    log.info("project.updated", project_id=str(project.id), fields=sorted(changes))
    return project


async def delete_project_rows(project_ids: list[uuid.UUID], session: AsyncSession) -> None:
    """Delete projects with their parts, roles and audit entries."""
    if not project_ids:
        return
    await session.execute(delete(AuditLogEntry).where(AuditLogEntry.project_id.in_(project_ids)))
    await session.execute(delete(ProjectDetail).where(ProjectDetail.project_id.in_(project_ids)))
    await session.execute(delete(ProjectUserRole).where(ProjectUserRole.project_id.in_(project_ids)))
    await session.execute(delete(Project).where(Project.id.in_(project_ids)))


async def delete_project(project: Project, session: AsyncSession) -> None:
    await delete_project_rows([project.id], session)
    log.info("project.deleted", project_id=str(project.id), org_id=str(project.org_id))


# ---------------------------------------------------------------------------
# Project membership
# ---------------------------------------------------------------------------

async def list_project_users(project_id: uuid.UUID, session: AsyncSession) -> list[dict]:
    result = await session.execute(
        select(User, ProjectUserRole.role_id)
        .join(ProjectUserRole, ProjectUserRole.user_id == User.id)
        .where(ProjectUserRole.project_id == project_id)
        .order_by(ProjectUserRole.role_id, User.email)
    )
    return [
        {
            "id": user.id,
            "email": user.email,
            "first_name": user.first_name,
            "last_name": user.last_name,
            "role_id": role_id,
        }
        for user, role_id in result.all()
    ]


async def add_project_user(
    project: Project,
    user_id: uuid.UUID,
    role: Optional[ProjectRole],
    session: AsyncSession,
) -> ProjectUserRole:
    """Give an org member a role on the project (Engineer by default)."""
    target_org_role = await permissions.get_org_role(session, user_id, project.org_id)
    if target_org_role is None:
        raise ValidationError("User must be a member of the organization first")

    if await permissions.get_project_role(session, user_id, project.id) is not None:
        raise Conflict("User already in project")

    if role is None:
        role = (
            ProjectRole.PROJECT_ADMIN
            if permissions.is_org_admin_or_owner(target_org_role)
            else ProjectRole.ENGINEER
        )
    permissions.check_project_role_assignment(target_org_role, role)

    row = ProjectUserRole(user_id=user_id, project_id=project.id, role_id=int(role))
    session.add(row)
    await session.flush()
    log.info("project.member_added", project_id=str(project.id), user_id=str(user_id), role_id=int(role))
    return row


async def update_project_user_role(
    project: Project,
    user_id: uuid.UUID,
    role: ProjectRole,
    session: AsyncSession,
) -> ProjectUserRole:
    result = await session.execute(
        select(ProjectUserRole)
        .where(ProjectUserRole.project_id == project.id, ProjectUserRole.user_id == user_id)
        .with_for_update()
    )
    row = result.scalar_one_or_none()
    if not row:
        raise NotFound("User not assigned to project")

    target_org_role = await permissions.get_org_role(session, user_id, project.org_id)
    permissions.check_project_role_assignment(target_org_role, role)

    row.role_id = int(role)
    session.add(row)
    await session.flush()
    log.info("project.member_role_changed", project_id=str(project.id), user_id=str(user_id), role_id=int(role))
    return row


async def remove_project_user(
    project: Project, user_id: uuid.UUID, session: AsyncSession
) -> None:
    target_org_role = await permissions.get_org_role(session, user_id, project.org_id)
    permissions.check_project_member_removal(target_org_role)

    result = await session.execute(
        select(ProjectUserRole).where(
            ProjectUserRole.project_id == project.id, ProjectUserRole.user_id == user_id
        )
    )
    row = result.scalar_one_or_none()
    if not row:
        raise NotFound("User not assigned to project")

    await session.delete(row)
    await session.flush()
    log.info("project.member_removed", project_id=str(project.id), user_id=str(user_id))


def require_project_user_manager(access: permissions.ProjectAccess) -> None:
    if not access.can_manage_users:
        raise Forbidden("Insufficient permissions")
