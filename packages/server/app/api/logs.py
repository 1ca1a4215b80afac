"""GET /logs?projectId= returns recent part status transitions, newest first."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import permissions
from app.core.auth import get_current_user
from app.core.config import get_settings
from app.core.database import get_session
from app.models.user import User
from app.services import audit_log as audit_service
from app.services.projects import get_project_or_404
from parttrack_shared.schemas.details import AuditLogListResponse, AuditLogRead

router = APIRouter()
settings = get_settings()


@router.get("", response_model=AuditLogListResponse)
async def list_logs(
    project_id: uuid.UUID = Query(..., alias="projectId"),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    project = await get_project_or_404(session, project_id)
    await permissions.require_project_view(session, user.id, project)

    entries = await audit_service.list_recent(project.id, settings.audit_log_page_size, session)
    return AuditLogListResponse(logs=[AuditLogRead(**entry) for entry in entries])
