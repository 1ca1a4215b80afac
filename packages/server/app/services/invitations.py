"""Invitation service: pending org membership for emails without an account."""

from __future__ import annotations

import uuid
from datetime import timedelta
from typing import Optional

import structlog
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import get_settings
from app.core.errors import Conflict, NotFound
from app.models.base import ensure_utc, utcnow
from app.models.invitation import Invitation
from parttrack_shared.schemas.common import OrgRole

log = structlog.get_logger()
settings = get_settings()


def is_live(invitation: Invitation) -> bool:
    return ensure_utc(invitation.expires_at) > utcnow()


async def create_or_reuse(
    org_id: uuid.UUID,
    email: str,
    role: OrgRole,
    invited_by: uuid.UUID,
    session: AsyncSession,
) -> Invitation:
    """Create an invitation, replacing an expired one for the same (email, org).

    A live invitation for the pair is a conflict: at most one may exist.
    """
    result = await session.execute(
        select(Invitation).where(Invitation.org_id == org_id, Invitation.email == email)
    )
    existing = result.scalars().all()
    if any(is_live(inv) for inv in existing):
        raise Conflict("User already invited")

    for stale in existing:
        await session.delete(stale)

    invitation = Invitation(
        email=email,
        org_id=org_id,
        role_id=int(role),
        invited_by=invited_by,
        expires_at=utcnow() + timedelta(days=settings.invitation_ttl_days),
    )
    session.add(invitation)
    await session.flush()

    log.info(
        "invitation.created",
        invitation_id=str(invitation.id),
        org_id=str(org_id),
        role_id=int(role),
        replaced=len(existing),
    )
    return invitation


async def find_live_invitation(
    email: str,
    session: AsyncSession,
    invitation_id: Optional[uuid.UUID] = None,
) -> Optional[Invitation]:
    """Newest unexpired invitation for the email (and id, when given)."""
    stmt = (
        select(Invitation)
        .where(Invitation.email == email, Invitation.expires_at > utcnow())
        .order_by(Invitation.created_at.desc())
    )
    if invitation_id is not None:
        stmt = stmt.where(Invitation.id == invitation_id)
    result = await session.execute(stmt)
    return result.scalars().first()


async def consume(invitation: Invitation, session: AsyncSession) -> None:
    await session.delete(invitation)
    await session.flush()
    log.info("invitation.accepted", invitation_id=str(invitation.id), org_id=str(invitation.org_id))


async def list_live(org_id: uuid.UUID, session: AsyncSession) -> list[Invitation]:
    result = await session.execute(
        select(Invitation)
        .where(Invitation.org_id == org_id, Invitation.expires_at > utcnow())
        .order_by(Invitation.created_at)
    )
    return list(result.scalars().all())


async def revoke(
    org_id: uuid.UUID, invitation_id: uuid.UUID, session: AsyncSession
) -> None:
    invitation = await session.get(Invitation, invitation_id)
    if not invitation or invitation.org_id != org_id:
        raise NotFound("Invitation not found")
    await session.delete(invitation)
    await session.flush()
    log.info("invitation.revoked", invitation_id=str(invitation_id), org_id=str(org_id))


async def purge_expired(session: AsyncSession) -> int:
    result = await session.execute(delete(Invitation).where(Invitation.expires_at <= utcnow()))
    return result.rowcount or 0
