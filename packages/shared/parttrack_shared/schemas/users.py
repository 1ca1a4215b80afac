"""User, membership and invitation schemas."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field

from .common import OrgRole, ProjectRole, RequestModel


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------

class UserSummary(BaseModel):
    """What the login endpoint hands back alongside the session cookie."""
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class UserProfile(BaseModel):
    id: uuid.UUID
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    is_active: bool
    created_at: datetime
    activated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class MeResponse(BaseModel):
    user: UserProfile


# ---------------------------------------------------------------------------
# Organization membership
# ---------------------------------------------------------------------------

class OrgUserAddRequest(RequestModel):
    """Add an existing user to the org, or invite an unregistered email."""
    email: EmailStr
    role_id: OrgRole = OrgRole.USER


class OrgUserRoleUpdateRequest(RequestModel):
    user_id: uuid.UUID
    role_id: OrgRole


class MemberRemoveRequest(RequestModel):
    user_id: uuid.UUID


class MemberResponse(BaseModel):
    id: uuid.UUID
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role_id: int


class MemberListResponse(BaseModel):
    users: List[MemberResponse]


class InvitationResponse(BaseModel):
    id: uuid.UUID
    email: str
    organization_id: uuid.UUID
    role_id: OrgRole
    expires_at: datetime
    created_at: datetime

    model_config = {"from_attributes": True}


class InvitationListResponse(BaseModel):
    invitations: List[InvitationResponse]


class OrgUserAddResponse(BaseModel):
    """`added` when the email belonged to a registered user, `invited` otherwise."""
    status: Literal["added", "invited"]
    user: Optional[MemberResponse] = None
    invitation: Optional[InvitationResponse] = None


# ---------------------------------------------------------------------------
# Project membership
# ---------------------------------------------------------------------------

class ProjectUserAddRequest(RequestModel):
    user_id: uuid.UUID
    role_id: Optional[ProjectRole] = None


class ProjectUserRoleUpdateRequest(RequestModel):
    user_id: uuid.UUID
    role_id: ProjectRole


# ---------------------------------------------------------------------------
# Email check (register page)
# ---------------------------------------------------------------------------

class CheckEmailRequest(RequestModel):
    email: EmailStr


class CheckEmailResponse(BaseModel):
    status: Literal["exists", "invited", "unknown"]
    organization_id: Optional[uuid.UUID] = Field(
        default=None, description="Inviting organization when status is 'invited'"
    )
