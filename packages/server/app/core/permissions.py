"""
Role resolution and capability rules.

Org roles (Owner/Admin/User) and project roles (Project Owner/Project
Admin/Engineer) live in two independent join tables. Everything that
decides "may this user do X in this scope" goes through this module.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import Forbidden
from app.models.project import Project
from app.models.project_role import ProjectUserRole
from app.models.user_org import UserOrg, UserOrgRole
from parttrack_shared.schemas.common import OrgRole, ProjectRole

ORG_MANAGERS = frozenset({OrgRole.OWNER, OrgRole.ADMIN})
PROJECT_MANAGERS = frozenset({ProjectRole.PROJECT_OWNER, ProjectRole.PROJECT_ADMIN})


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

async def get_org_role(
    session: AsyncSession,
    user_id: uuid.UUID,
    org_id: uuid.UUID,
    *,
    for_update: bool = False,
) -> Optional[OrgRole]:
    stmt = select(UserOrgRole.role_id).where(
        UserOrgRole.user_id == user_id, UserOrgRole.org_id == org_id
    )
    if for_update:
        stmt = stmt.with_for_update()
    role_id = (await session.execute(stmt)).scalar_one_or_none()
    return OrgRole(role_id) if role_id is not None else None


async def get_project_role(
    session: AsyncSession,
    user_id: uuid.UUID,
    project_id: uuid.UUID,
    *,
    for_update: bool = False,
) -> Optional[ProjectRole]:
    stmt = select(ProjectUserRole.role_id).where(
        ProjectUserRole.user_id == user_id, ProjectUserRole.project_id == project_id
    )
    if for_update:
        stmt = stmt.with_for_update()
    role_id = (await session.execute(stmt)).scalar_one_or_none()
    return ProjectRole(role_id) if role_id is not None else None


async def is_org_member(
    session: AsyncSession, user_id: uuid.UUID, org_id: uuid.UUID
) -> bool:
    result = await session.execute(
        select(UserOrg).where(UserOrg.user_id == user_id, UserOrg.org_id == org_id)
    )
    return result.scalar_one_or_none() is not None


# ---------------------------------------------------------------------------
# Capability predicates (pure functions of a role)
# ---------------------------------------------------------------------------

def is_org_admin_or_owner(role: Optional[int]) -> bool:
    return role in ORG_MANAGERS


def is_project_admin_or_owner(role: Optional[int]) -> bool:
    return role in PROJECT_MANAGERS


def can_manage_org_users(role: Optional[int]) -> bool:
    return is_org_admin_or_owner(role)


def can_manage_project_users(role: Optional[int]) -> bool:
    return is_project_admin_or_owner(role)


def can_view_project(org_role: Optional[int], project_role: Optional[int]) -> bool:
    """Org Owner/Admin see every project in the org; others need a project role."""
    return is_org_admin_or_owner(org_role) or project_role is not None


def can_create_project(org_role: Optional[int]) -> bool:
    return is_org_admin_or_owner(org_role)


def can_update_project(org_role: Optional[int], project_role: Optional[int]) -> bool:
    return is_org_admin_or_owner(org_role) or is_project_admin_or_owner(project_role)


def can_delete_project(org_role: Optional[int], project_role: Optional[int]) -> bool:
    return is_org_admin_or_owner(org_role) or project_role == ProjectRole.PROJECT_OWNER


# ---------------------------------------------------------------------------
# Project-scoped access
# ---------------------------------------------------------------------------

@dataclass
class ProjectAccess:
    """The caller's effective roles on one project."""

    project: Project
    org_role: Optional[OrgRole]
    project_role: Optional[ProjectRole]

    @property
    def can_view(self) -> bool:
        return can_view_project(self.org_role, self.project_role)

    @property
    def can_manage_users(self) -> bool:
        return can_manage_project_users(self.project_role) or is_org_admin_or_owner(self.org_role)


async def resolve_project_access(
    session: AsyncSession, user_id: uuid.UUID, project: Project
) -> ProjectAccess:
    return ProjectAccess(
        project=project,
        org_role=await get_org_role(session, user_id, project.org_id),
        project_role=await get_project_role(session, user_id, project.id),
    )


async def require_project_view(
    session: AsyncSession, user_id: uuid.UUID, project: Project
) -> ProjectAccess:
    access = await resolve_project_access(session, user_id, project)
    if not access.can_view:
        raise Forbidden("Access denied")
    return access


# ---------------------------------------------------------------------------
# Role-mutation guards
# ---------------------------------------------------------------------------

def check_org_role_assignable(role: int) -> None:
    """Only Admin and User can be granted; there is exactly one Owner per org."""
    if role == OrgRole.OWNER:
        raise Forbidden("Cannot grant the Organization Owner role")


def check_org_role_change(target_role: Optional[int], new_role: int) -> None:
    if target_role == OrgRole.OWNER:
        raise Forbidden("Cannot modify Organization Owner role")
    check_org_role_assignable(new_role)


def check_org_member_removal(target_role: Optional[int]) -> None:
    if target_role == OrgRole.OWNER:
        raise Forbidden("Cannot remove Organization Owner")


def check_project_role_assignment(target_org_role: Optional[int], new_role: int) -> None:
    """Org Owner/Admin must hold Project Admin on any project they are assigned to."""
    if is_org_admin_or_owner(target_org_role) and new_role != ProjectRole.PROJECT_ADMIN:
        raise Forbidden("Org Owner/Admins must retain Project Admin role")


def check_project_member_removal(target_org_role: Optional[int]) -> None:
    if is_org_admin_or_owner(target_org_role):
        raise Forbidden("Cannot remove Org Owner/Admin from project")
