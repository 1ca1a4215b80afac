"""
Organization API endpoints.

GET    /organizations            - List orgs for the authenticated user
POST   /organizations            - Create a new org (creator becomes Owner)
GET    /organizations/{org_id}   - Get org details with the caller's role
PUT    /organizations/{org_id}   - Rename the org (Owner only)
DELETE /organizations/{org_id}   - Delete the org and everything in it (Owner only)
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedMember, get_current_user, require_org_member
from app.core.database import get_session
from app.models.organization import Organization
from app.models.user import User
from app.services import organizations as org_service
from parttrack_shared.schemas.common import MessageResponse, OrgRole
from parttrack_shared.schemas.organizations import (
    OrgCreateRequest,
    OrgListResponse,
    OrgResponse,
    OrgUpdateRequest,
)

log = structlog.get_logger()
router = APIRouter()


def _org_response(org: Organization, role: OrgRole | None) -> OrgResponse:
    return OrgResponse(
        id=org.id,
        name=org.name,
        owner_id=org.owner_id,
        created_at=org.created_at,
        updated_at=org.updated_at,
        role_id=role,
    )


@router.get("", response_model=OrgListResponse)
async def list_orgs(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """List orgs the authenticated user belongs to."""
    items = await org_service.list_user_orgs(user.id, session)
    return OrgListResponse(organizations=[OrgResponse(**item) for item in items])


@router.post("", response_model=OrgResponse, status_code=201)
async def create_org(
    body: OrgCreateRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Create a new organization. The creator becomes its Owner."""
    org = await org_service.create_org(body.name, user.id, session)
    return _org_response(org, OrgRole.OWNER)


@router.get("/{org_id}", response_model=OrgResponse)
async def get_org(member: AuthenticatedMember = Depends(require_org_member)):
    return _org_response(member.org, member.role)


@router.put("/{org_id}", response_model=OrgResponse)
async def update_org(
    body: OrgUpdateRequest,
    member: AuthenticatedMember = Depends(require_org_member),
    session: AsyncSession = Depends(get_session),
):
    """Rename the organization (Owner only)."""
    org = await org_service.update_org(member.org, body.name, member.user_id, session)
    return _org_response(org, member.role)


@router.delete("/{org_id}", response_model=MessageResponse)
async def delete_org(
    member: AuthenticatedMember = Depends(require_org_member),
    session: AsyncSession = Depends(get_session),
):
    """Delete the organization with its projects, parts and memberships (Owner only)."""
    await org_service.delete_org(member.org, member.user_id, session)
    return MessageResponse(message="Organization deleted")
