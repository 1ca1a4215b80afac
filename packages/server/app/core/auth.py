"""
Request authentication and org-scoped authorization dependencies.

- Session cookie -> User (lazy expiry check)
- Org context: caller's role in the org named by the path
- Role-based dependencies for routers
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import permissions
from app.core.config import get_settings
from app.core.database import get_session
from app.core.errors import Forbidden, NotFound
from app.models.organization import Organization
from app.models.user import User
from app.services.auth import resolve_session
from parttrack_shared.schemas.common import OrgRole

log = structlog.get_logger()
settings = get_settings()


def get_session_token(request: Request) -> Optional[str]:
    return request.cookies.get(settings.session_cookie_name)


async def get_current_user(
    request: Request,
    session: AsyncSession = Depends(get_session),
) -> User:
    """Main authentication dependency: resolve the session cookie to a user."""
    user = await resolve_session(get_session_token(request), session)
    request.state.user = user
    return user


# ---------------------------------------------------------------------------
# Org context
# ---------------------------------------------------------------------------

class AuthenticatedMember:
    """Container for an authenticated user + their role in one org."""

    def __init__(self, user: User, org: Organization, role: OrgRole):
        self.user = user
        self.org = org
        self.role = role
        self.user_id = user.id
        self.org_id = org.id


async def get_org_member(
    org_id: uuid.UUID,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> AuthenticatedMember:
    """Resolve the org from the path and the caller's role in it.

    Non-members get 404 so org ids are not disclosed.
    """
    org = await session.get(Organization, org_id)
    if not org:
        raise NotFound("Organization not found")

    role = await permissions.get_org_role(session, user.id, org.id)
    if role is None:
        raise NotFound("Organization not found")
    return AuthenticatedMember(user=user, org=org, role=role)


async def require_org_member(
    member: AuthenticatedMember = Depends(get_org_member),
) -> AuthenticatedMember:
    """Any org member can access this endpoint."""
    return member


async def require_org_manager(
    member: AuthenticatedMember = Depends(get_org_member),
) -> AuthenticatedMember:
    """Requires the Owner or Admin role."""
    if not permissions.can_manage_org_users(member.role):
        log.info("authz.denied", user_id=str(member.user_id), org_id=str(member.org_id))
        raise Forbidden("Insufficient permissions")
    return member
