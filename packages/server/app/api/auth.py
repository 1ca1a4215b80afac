"""
Authentication endpoints.

POST /auth/login            - Email/password login, sets the session cookie
POST /auth/logout           - Destroy the current session
POST /auth/signup           - Create user + organization + session
POST /auth/register-invite  - Accept an invitation: create user, join org, session
POST /auth/check-email      - Which registration flow an email should use
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_session_token
from app.core.database import get_session
from app.core.errors import ValidationError
from app.core.security import clear_session_cookie, set_session_cookie
from app.services import auth as auth_service
from app.services import invitations as invitation_service
from parttrack_shared.schemas.auth import (
    AuthResponse,
    LoginRequest,
    RegisterInviteRequest,
    SignupRequest,
)
from parttrack_shared.schemas.common import MessageResponse
from parttrack_shared.schemas.users import (
    CheckEmailRequest,
    CheckEmailResponse,
    UserSummary,
)

log = structlog.get_logger()
router = APIRouter()


def _summary(user) -> UserSummary:
    return UserSummary(email=user.email, first_name=user.first_name, last_name=user.last_name)


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    response: Response,
    session: AsyncSession = Depends(get_session),
):
    """Authenticate with email/password and receive a session cookie."""
    token, user = await auth_service.login(body.email, body.password, session)
    await session.commit()

    set_session_cookie(response, token)
    return AuthResponse(message="Login successful", user=_summary(user))


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    response: Response,
    session: AsyncSession = Depends(get_session),
):
    """Invalidate the current session. Without a cookie there is nothing to do."""
    token = get_session_token(request)
    if not token:
        raise ValidationError("No session")

    await auth_service.logout(token, session)
    await session.commit()

    clear_session_cookie(response)
    return MessageResponse(message="Logged out")


@router.post("/signup", response_model=AuthResponse, status_code=201)
async def signup(
    body: SignupRequest,
    response: Response,
    session: AsyncSession = Depends(get_session),
):
    """Register a new user who owns a brand-new organization."""
    profile = auth_service.Profile(
        email=body.email, first_name=body.first_name, last_name=body.last_name
    )
    user, org, token = await auth_service.register(
        profile, body.password, body.organization_name, session
    )
    # Everything lands in one commit, before the cookie is handed out.
    await session.commit()

    set_session_cookie(response, token)
    return AuthResponse(message="Registration successful", user=_summary(user), organization_id=org.id)


@router.post("/register-invite", response_model=AuthResponse, status_code=201)
async def register_invite(
    body: RegisterInviteRequest,
    response: Response,
    session: AsyncSession = Depends(get_session),
):
    """Register through a pending invitation and join the inviting organization."""
    profile = auth_service.Profile(
        email=body.email, first_name=body.first_name, last_name=body.last_name
    )
    user, token = await auth_service.register_from_invitation(
        profile, body.password, session, invitation_id=body.invitation_id
    )
    await session.commit()

    set_session_cookie(response, token)
    return AuthResponse(message="Registration successful", user=_summary(user))


@router.post("/check-email", response_model=CheckEmailResponse)
async def check_email(
    body: CheckEmailRequest,
    session: AsyncSession = Depends(get_session),
):
    """Tell the register page whether to offer signup or invitation registration."""
    email = auth_service.normalize_email(body.email)
    if await auth_service.get_user_by_email(email, session):
        return CheckEmailResponse(status="exists")

    invitation = await invitation_service.find_live_invitation(email, session)
    if invitation:
        return CheckEmailResponse(status="invited", organization_id=invitation.org_id)
    return CheckEmailResponse(status="unknown")
