"""
Organization membership API endpoints.

GET    /organizations/{org_id}/users                         - List org members
POST   /organizations/{org_id}/users                         - Add a user by email (or invite)
PUT    /organizations/{org_id}/users                         - Change a member's role
DELETE /organizations/{org_id}/users                         - Remove a member
GET    /organizations/{org_id}/invitations                   - Pending invitations
DELETE /organizations/{org_id}/invitations/{invitation_id}   - Revoke an invitation
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedMember, require_org_manager, require_org_member
from app.core.database import get_session
from app.models.invitation import Invitation
from app.services import invitations as invitation_service
from app.services import users as user_service
from parttrack_shared.schemas.common import MessageResponse
from parttrack_shared.schemas.users import (
    InvitationListResponse,
    InvitationResponse,
    MemberListResponse,
    MemberRemoveRequest,
    MemberResponse,
    OrgUserAddRequest,
    OrgUserAddResponse,
    OrgUserRoleUpdateRequest,
)

router = APIRouter()
invitations_router = APIRouter()


def _invitation_response(invitation: Invitation) -> InvitationResponse:
    return InvitationResponse(
        id=invitation.id,
        email=invitation.email,
        organization_id=invitation.org_id,
        role_id=invitation.role_id,
        expires_at=invitation.expires_at,
        created_at=invitation.created_at,
    )


@router.get("", response_model=MemberListResponse)
async def list_users(
    member: AuthenticatedMember = Depends(require_org_member),
    session: AsyncSession = Depends(get_session),
):
    """List all members of the org."""
    items = await user_service.list_org_users(member.org_id, session)
    return MemberListResponse(users=[MemberResponse(**item) for item in items])


@router.post("", response_model=OrgUserAddResponse, status_code=201)
async def add_user(
    body: OrgUserAddRequest,
    member: AuthenticatedMember = Depends(require_org_manager),
    session: AsyncSession = Depends(get_session),
):
    """Add a registered user to the org, or invite the email (Owner/Admin only)."""
    outcome = await user_service.add_user_by_email(
        member.org_id, body.email, body.role_id, member.user_id, session
    )
    if outcome["status"] == "invited":
        return OrgUserAddResponse(
            status="invited", invitation=_invitation_response(outcome["invitation"])
        )
    return OrgUserAddResponse(status="added", user=MemberResponse(**outcome["user"]))


@router.put("", response_model=MemberResponse)
async def update_user_role(
    body: OrgUserRoleUpdateRequest,
    member: AuthenticatedMember = Depends(require_org_manager),
    session: AsyncSession = Depends(get_session),
):
    """Change a member's role (Owner/Admin only). The Owner's role is fixed."""
    info = await user_service.update_user_role(member.org_id, body.user_id, body.role_id, session)
    return MemberResponse(**info)


@router.delete("", response_model=MessageResponse)
async def remove_user(
    body: MemberRemoveRequest,
    member: AuthenticatedMember = Depends(require_org_manager),
    session: AsyncSession = Depends(get_session),
):
    """Remove a member from the org (Owner/Admin only). The Owner cannot be removed."""
    await user_service.remove_user(member.org_id, body.user_id, session)
    return MessageResponse(message="User removed from organization")


# ---------------------------------------------------------------------------
# Invitations
# ---------------------------------------------------------------------------

@invitations_router.get("", response_model=InvitationListResponse)
async def list_invitations(
    member: AuthenticatedMember = Depends(require_org_manager),
    session: AsyncSession = Depends(get_session),
):
    invitations = await invitation_service.list_live(member.org_id, session)
    return InvitationListResponse(invitations=[_invitation_response(i) for i in invitations])


@invitations_router.delete("/{invitation_id}", response_model=MessageResponse)
async def revoke_invitation(
    invitation_id: uuid.UUID,
    member: AuthenticatedMember = Depends(require_org_manager),
    session: AsyncSession = Depends(get_session),
):
    await invitation_service.revoke(member.org_id, invitation_id, session)
    return MessageResponse(message="Invitation revoked")
