"""
Org membership service: listing members, adding by email (direct or by
invitation), role changes and removal, all behind the Owner guards.
"""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core import permissions
from app.core.errors import Conflict, NotFound
from app.models.project import Project
from app.models.project_role import ProjectUserRole
from app.models.user import User
from app.models.user_org import UserOrg, UserOrgRole
from app.services import invitations as invitation_service
from app.services import organizations as org_service
from app.services.auth import get_user_by_email, normalize_email
from parttrack_shared.schemas.common import OrgRole

log = structlog.get_logger()


def _member_info(user: User, role_id: int) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "role_id": role_id,
    }


async def list_org_users(
    org_id: uuid.UUID, session: AsyncSession
) -> list[dict]:
    """List all users in an org with their role."""
    result = await session.execute(
        select(User, UserOrgRole.role_id)
        .join(UserOrgRole, UserOrgRole.user_id == User.id)
        .where(UserOrgRole.org_id == org_id)
        .order_by(UserOrgRole.role_id, User.email)
    )
    return [_member_info(user, role_id) for user, role_id in result.all()]


async def add_user_by_email(
    org_id: uuid.UUID,
    email: str,
    role: OrgRole,
    invited_by: uuid.UUID,
    session: AsyncSession,
) -> dict:
    """Grant membership to a registered user, or invite an unregistered email.

    Returns {"status": "added", "user": ...} or {"status": "invited", "invitation": ...}.
    """
    permissions.check_org_role_assignable(role)
    email = normalize_email(email)

    user = await get_user_by_email(email, session)
    if user is None:
        invitation = await invitation_service.create_or_reuse(
            org_id, email, role, invited_by, session
        )
        return {"status": "invited", "invitation": invitation}

    if await permissions.get_org_role(session, user.id, org_id) is not None or (
        await permissions.is_org_member(session, user.id, org_id)
    ):
        raise Conflict("User already in organization")

    await org_service.add_member(org_id, user.id, role, session)
    log.info("org.member_added", org_id=str(org_id), user_id=str(user.id), role_id=int(role))
    return {"status": "added", "user": _member_info(user, int(role))}


async def _get_role_row(
    org_id: uuid.UUID, user_id: uuid.UUID, session: AsyncSession
) -> UserOrgRole:
    result = await session.execute(
        select(UserOrgRole)
        .where(UserOrgRole.org_id == org_id, UserOrgRole.user_id == user_id)
        .with_for_update()
    )
    row = result.scalar_one_or_none()
    if not row:
        raise NotFound("User not found in this organization")
    return row


async def update_user_role(
    org_id: uuid.UUID,
    user_id: uuid.UUID,
    role: OrgRole,
    session: AsyncSession,
) -> dict:
    """Change a member's org role. The Owner's role can never change."""
    row = await _get_role_row(org_id, user_id, session)
    permissions.check_org_role_change(row.role_id, role)

    row.role_id = int(role)
    session.add(row)
    await session.flush()

    user = await session.get(User, user_id)
    log.info("org.member_role_changed", org_id=str(org_id), user_id=str(user_id), role_id=int(role))
    return _member_info(user, row.role_id)


async def remove_user(
    org_id: uuid.UUID, user_id: uuid.UUID, session: AsyncSession
) -> None:
    """Remove a member, their role and their project roles in this org."""
    row = await _get_role_row(org_id, user_id, session)
    permissions.check_org_member_removal(row.role_id)

    org_projects = select(Project.id).where(Project.org_id == org_id)
    await session.execute(
        delete(ProjectUserRole).where(
            ProjectUserRole.user_id == user_id,
            ProjectUserRole.project_id.in_(org_projects),
        )
    )
    await session.delete(row)
    await session.execute(
        delete(UserOrg).where(UserOrg.org_id == org_id, UserOrg.user_id == user_id)
    )
    await session.flush()
    log.info("org.member_removed", org_id=str(org_id), user_id=str(user_id))
