"""
ARQ background task: purge expired sessions and invitations.

Expiry is enforced at read time, so this is storage hygiene only.
Scheduled to run every hour.
"""

from __future__ import annotations

import structlog
from sqlalchemy import delete

from app.core.database import get_session_context
from app.models.base import utcnow
from app.models.session import AuthSession
from app.services import invitations as invitation_service

log = structlog.get_logger()


async def purge_expired_records(ctx: dict) -> dict:
    """Delete sessions and invitations past their expiry.

    Returns the number of rows removed per kind.
    """
    now = utcnow()
    async with get_session_context() as session:
        result = await session.execute(delete(AuthSession).where(AuthSession.expires_at <= now))
        sessions = result.rowcount or 0
        invitations = await invitation_service.purge_expired(session)

    if sessions or invitations:
        log.info("cleanup.expired_purged", sessions=sessions, invitations=invitations)
    return {"sessions": sessions, "invitations": invitations}


# ARQ worker settings
class WorkerSettings:
    """ARQ worker configuration."""

    functions = [purge_expired_records]
    cron_jobs = [
        # Run every hour
        {
            "coroutine": purge_expired_records,
            "hour": None,  # every hour
            "minute": 0,
        },
    ]
