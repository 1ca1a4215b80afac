"""
Organization service: business logic for org CRUD and ownership.
"""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import Forbidden, NotFound
from app.models.base import utcnow
from app.models.invitation import Invitation
from app.models.organization import Organization
from app.models.project import Project
from app.models.user_org import UserOrg, UserOrgRole
from app.services import projects as project_service
from parttrack_shared.schemas.common import OrgRole

log = structlog.get_logger()


async def add_member(
    org_id: uuid.UUID,
    user_id: uuid.UUID,
    role: OrgRole,
    session: AsyncSession,
) -> UserOrgRole:
    """Insert the membership row and its role row together."""
    session.add(UserOrg(user_id=user_id, org_id=org_id))
    role_row = UserOrgRole(user_id=user_id, org_id=org_id, role_id=int(role))
    session.add(role_row)
    await session.flush()
    return role_row


async def list_user_orgs(
    user_id: uuid.UUID, session: AsyncSession
) -> list[dict]:
    """List all orgs a user belongs to, with their role."""
    result = await session.execute(
        select(Organization, UserOrgRole.role_id)
        .join(UserOrg, UserOrg.org_id == Organization.id)
        .outerjoin(
            UserOrgRole,
            (UserOrgRole.org_id == UserOrg.org_id) & (UserOrgRole.user_id == UserOrg.user_id),
        )
        .where(UserOrg.user_id == user_id)
        .order_by(Organization.created_at)
    )
    return [
        {
            "id": org.id,
            "name": org.name,
            "owner_id": org.owner_id,
            "created_at": org.created_at,
            "updated_at": org.updated_at,
            "role_id": role_id,
        }
        for org, role_id in result.all()
    ]


async def create_org(
    name: str,
    owner_id: uuid.UUID,
    session: AsyncSession,
) -> Organization:
    """Create an org and make the creator its Owner member."""
    org = Organization(name=name, owner_id=owner_id)
    session.add(org)
    await session.flush()

    await add_member(org.id, owner_id, OrgRole.OWNER, session)

    log.info("org.created", org_id=str(org.id), owner_id=str(owner_id))
    return org


async def get_org(org_id: uuid.UUID, session: AsyncSession) -> Organization:
    """Get an org by id; raises 404 if not found."""
    org = await session.get(Organization, org_id)
    if not org:
        raise NotFound("Organization not found")
    return org


def _require_owner(org: Organization, user_id: uuid.UUID) -> None:
    if org.owner_id != user_id:
        raise Forbidden("Only the organization owner can do this")


async def update_org(
    org: Organization,
    name: str,
    acting_user_id: uuid.UUID,
    session: AsyncSession,
) -> Organization:
    """Rename the org (owner only)."""
    _require_owner(org, acting_user_id)

    org.name = name
    org.updated_at = utcnow()
    session.add(org)
    await session.flush()

    log.info("org.updated", org_id=str(org.id))
    return org


async def delete_org(
    org: Organization,
    acting_user_id: uuid.UUID,
    session: AsyncSession,
) -> None:
    """Delete the org (owner only) together with everything scoped to it."""
    _require_owner(org, acting_user_id)

    project_ids = (
        await session.execute(select(Project.id).where(Project.org_id == org.id))
    ).scalars().all()
    await project_service.delete_project_rows(list(project_ids), session)

    await session.execute(delete(Invitation).where(Invitation.org_id == org.id))
    await session.execute(delete(UserOrgRole).where(UserOrgRole.org_id == org.id))
    await session.execute(delete(UserOrg).where(UserOrg.org_id == org.id))
    await session.delete(org)
    await session.flush()

    log.info("org.deleted", org_id=str(org.id), projects=len(project_ids))
