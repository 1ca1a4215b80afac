"""
Authentication service: credentials, sessions, and the two registration flows.

Registration creates several rows (user, org, membership, role, session).
They are added to the caller's transaction and only become visible when
the request commits, so a failure at any step leaves nothing behind.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Optional

import structlog
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import get_settings
from app.core.errors import (
    Conflict,
    InvalidCredentials,
    InvalidOrExpiredInvitation,
    Unauthenticated,
    ValidationError,
)
from app.core.security import (
    generate_session_token,
    hash_password,
    hash_token,
    session_expiry,
    verify_password,
)
from app.models.base import ensure_utc, utcnow
from app.models.organization import Organization
from app.models.session import AuthSession
from app.models.user import User
from app.services import invitations as invitation_service
from app.services import organizations as org_service
from parttrack_shared.schemas.common import OrgRole

log = structlog.get_logger()
settings = get_settings()

# Unknown accounts are checked against this so every failed login costs a bcrypt check
_DUMMY_PASSWORD_HASH = hash_password("parttrack-dummy-password")


@dataclass
class Profile:
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _check_password_policy(password: str) -> None:
    if len(password) < settings.min_password_length:
        raise ValidationError(
            f"Password must be at least {settings.min_password_length} characters"
        )


async def get_user_by_email(email: str, session: AsyncSession) -> Optional[User]:
    result = await session.execute(select(User).where(User.email == normalize_email(email)))
    return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------

async def create_session(user_id: uuid.UUID, session: AsyncSession) -> str:
    """Persist a new session and return the raw token for the cookie."""
    token = generate_session_token()
    session.add(
        AuthSession(
            token_hash=hash_token(token),
            user_id=user_id,
            expires_at=session_expiry(),
        )
    )
    await session.flush()
    return token


async def login(email: str, password: str, session: AsyncSession) -> tuple[str, User]:
    """Check credentials and open a session. Returns (token, user)."""
    user = await get_user_by_email(email, session)

    if not user or not user.is_active or user.deleted_at is not None:
        verify_password(password, _DUMMY_PASSWORD_HASH)
        log.warning("auth.login_failure", email=normalize_email(email), reason="unknown_or_inactive")
        raise InvalidCredentials()

    if not verify_password(password, user.password_hash):
        log.warning("auth.login_failure", email=user.email, reason="bad_password")
        raise InvalidCredentials()

    token = await create_session(user.id, session)
    log.info("auth.login_success", user_id=str(user.id))
    return token, user


async def logout(token: str, session: AsyncSession) -> bool:
    """Delete the session if present. Returns whether a row was removed."""
    result = await session.execute(
        delete(AuthSession).where(AuthSession.token_hash == hash_token(token))
    )
    removed = bool(result.rowcount)
    log.info("auth.logout", removed=removed)
    return removed


async def resolve_session(token: Optional[str], session: AsyncSession) -> User:
    """Map a cookie token to its user. Expiry is checked lazily here."""
    if not token:
        raise Unauthenticated("Not authenticated")

    result = await session.execute(
        select(AuthSession, User)
        .join(User, User.id == AuthSession.user_id)
        .where(AuthSession.token_hash == hash_token(token))
    )
    row = result.one_or_none()
    if not row:
        raise Unauthenticated("Invalid session")

    auth_session, user = row
    if utcnow() > ensure_utc(auth_session.expires_at):
        raise Unauthenticated("Session expired")
    if not user.is_active or user.deleted_at is not None:
        raise Unauthenticated("Invalid session")
    return user


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------

async def _create_user(profile: Profile, password: str, session: AsyncSession) -> User:
    _check_password_policy(password)
    email = normalize_email(profile.email)

    if await get_user_by_email(email, session):
        raise Conflict("Email already registered")

    now = utcnow()
    user = User(
        email=email,
        password_hash=hash_password(password),
        first_name=profile.first_name,
        last_name=profile.last_name,
        is_active=True,
        created_at=now,
        activated_at=now,
    )
    session.add(user)
    await session.flush()
    return user


async def register(
    profile: Profile,
    password: str,
    org_name: str,
    session: AsyncSession,
    open_session: bool = True,
) -> tuple[User, Organization, Optional[str]]:
    """Create a user, a new org owned by them, and a session. Returns (user, org, token).

    With ``open_session=False`` no session row is written and the token is None.
    """
    user = await _create_user(profile, password, session)
    org = await org_service.create_org(org_name, user.id, session)
    token = await create_session(user.id, session) if open_session else None

    log.info("user.registered", user_id=str(user.id), org_id=str(org.id))
    return user, org, token


async def register_from_invitation(
    profile: Profile,
    password: str,
    session: AsyncSession,
    invitation_id: Optional[uuid.UUID] = None,
) -> tuple[User, str]:
    """Consume a live invitation for the email and join its org. Returns (user, token)."""
    invitation = await invitation_service.find_live_invitation(
        normalize_email(profile.email), session, invitation_id=invitation_id
    )
    if invitation is None:
        raise InvalidOrExpiredInvitation()

    user = await _create_user(profile, password, session)
    await org_service.add_member(
        invitation.org_id, user.id, OrgRole(invitation.role_id or OrgRole.USER), session
    )
    org_id = invitation.org_id
    await invitation_service.consume(invitation, session)
    token = await create_session(user.id, session)

    log.info("user.registered_from_invitation", user_id=str(user.id), org_id=str(org_id))
    return user, token
