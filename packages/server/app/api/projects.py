"""
Project endpoints: CRUD scoped to an organization, plus project membership.

GET    /projects?organizationId=   - Projects the caller can see in the org
POST   /projects                   - Create (org Owner/Admin); creator becomes Project Owner
GET    /projects/{id}              - Project with the caller's roles
PUT    /projects/{id}              - Update (org Owner/Admin or Project Owner/Admin)
DELETE /projects/{id}              - Delete with parts, roles and audit entries
GET    /projects/{id}/users        - Project members
POST   /projects/{id}/users        - Assign an org member to the project
PUT    /projects/{id}/users        - Change a member's project role
DELETE /projects/{id}/users        - Unassign a member
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import permissions
from app.core.auth import get_current_user
from app.core.database import get_session
from app.core.errors import Forbidden
from app.models.project import Project
from app.models.user import User
from app.services import projects as project_service
from parttrack_shared.schemas.common import MessageResponse
from parttrack_shared.schemas.projects import (
    ProjectAccessResponse,
    ProjectCreate,
    ProjectListResponse,
    ProjectRead,
    ProjectUpdate,
)
from parttrack_shared.schemas.users import (
    MemberListResponse,
    MemberRemoveRequest,
    MemberResponse,
    ProjectUserAddRequest,
    ProjectUserRoleUpdateRequest,
)

router = APIRouter()


def _project_read(project: Project) -> ProjectRead:
    return ProjectRead(
        id=project.id,
        organization_id=project.org_id,
        name=project.name,
        status=project.status,
        created_at=project.created_at,
        updated_at=project.updated_at,
    )


# ---------------------------------------------------------------------------
# Project CRUD
# ---------------------------------------------------------------------------

@router.get("", response_model=ProjectListResponse)
async def list_projects(
    organization_id: uuid.UUID = Query(..., alias="organizationId"),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    org_role = await permissions.get_org_role(session, user.id, organization_id)
    if org_role is None:
        raise Forbidden("Access denied")

    projects = await project_service.list_projects(organization_id, user.id, org_role, session)
    return ProjectListResponse(projects=[_project_read(p) for p in projects])


@router.post("", response_model=ProjectRead, status_code=201)
async def create_project(
    body: ProjectCreate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Create a project. Requires the Owner or Admin role in the org."""
    org_role = await permissions.get_org_role(session, user.id, body.organization_id)
    if not permissions.can_create_project(org_role):
        raise Forbidden("Insufficient permissions")

    project = await project_service.create_project(
        body.organization_id, body.name, body.status, user.id, session
    )
    return _project_read(project)


@router.get("/{project_id}", response_model=ProjectAccessResponse)
async def get_project(
    project_id: uuid.UUID,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    project = await project_service.get_project_or_404(session, project_id)
    access = await permissions.require_project_view(session, user.id, project)
    return ProjectAccessResponse(
        project=_project_read(project),
        user_role=access.project_role,
        org_role=access.org_role,
    )


@router.put("/{project_id}", response_model=ProjectRead)
async def update_project(
    project_id: uuid.UUID,
    body: ProjectUpdate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    project = await project_service.get_project_or_404(session, project_id)
    access = await permissions.resolve_project_access(session, user.id, project)
    if not permissions.can_update_project(access.org_role, access.project_role):
        raise Forbidden("Insufficient permissions")

    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    project = await project_service.update_project(project, changes, session)
    return _project_read(project)


@router.delete("/{project_id}", response_model=MessageResponse)
async def delete_project(
    project_id: uuid.UUID,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    project = await project_service.get_project_or_404(session, project_id)
    access = await permissions.resolve_project_access(session, user.id, project)
    if not permissions.can_delete_project(access.org_role, access.project_role):
        raise Forbidden("Insufficient permissions")

    await project_service.delete_project(project, session)
    return MessageResponse(message="Project deleted")


# ---------------------------------------------------------------------------
# Project membership
# ---------------------------------------------------------------------------

@router.get("/{project_id}/users", response_model=MemberListResponse)
async def list_project_users(
    project_id: uuid.UUID,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    project = await project_service.get_project_or_404(session, project_id)
    await permissions.require_project_view(session, user.id, project)
    items = await project_service.list_project_users(project.id, session)
    return MemberListResponse(users=[MemberResponse(**item) for item in items])


@router.post("/{project_id}/users", response_model=MemberResponse, status_code=201)
async def add_project_user(
    project_id: uuid.UUID,
    body: ProjectUserAddRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    project = await project_service.get_project_or_404(session, project_id)
    access = await permissions.resolve_project_access(session, user.id, project)
    project_service.require_project_user_manager(access)

    await project_service.add_project_user(project, body.user_id, body.role_id, session)
    return await _member(project.id, body.user_id, session)


@router.put("/{project_id}/users", response_model=MemberResponse)
async def update_project_user(
    project_id: uuid.UUID,
    body: ProjectUserRoleUpdateRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    project = await project_service.get_project_or_404(session, project_id)
    access = await permissions.resolve_project_access(session, user.id, project)
    project_service.require_project_user_manager(access)

    await project_service.update_project_user_role(project, body.user_id, body.role_id, session)
    return await _member(project.id, body.user_id, session)


@router.delete("/{project_id}/users", response_model=MessageResponse)
async def remove_project_user(
    project_id: uuid.UUID,
    body: MemberRemoveRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    project = await project_service.get_project_or_404(session, project_id)
    access = await permissions.resolve_project_access(session, user.id, project)
    project_service.require_project_user_manager(access)

    await project_service.remove_project_user(project, body.user_id, session)
    return MessageResponse(message="User removed from project")


async def _member(project_id: uuid.UUID, user_id: uuid.UUID, session: AsyncSession) -> MemberResponse:
    items = await project_service.list_project_users(project_id, session)
    info = next(item for item in items if item["id"] == user_id)
    return MemberResponse(**info)
