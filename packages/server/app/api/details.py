"""
Project detail ("part") endpoints.

GET    /details?projectId=        - Parts of one project
GET    /details?organizationId=   - Parts of every visible project in the org
POST   /details                   - Create a part
PATCH  /details                   - Partial update; a status change is audited
DELETE /details                   - Delete a part (its audit entries remain)
"""

from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_current_user
from app.core.database import get_session
from app.core.errors import ValidationError
from app.models.user import User
from app.services import details as detail_service
from app.services.projects import get_project_or_404
from parttrack_shared.schemas.common import MessageResponse
from parttrack_shared.schemas.details import (
    DetailCreate,
    DetailDelete,
    DetailListResponse,
    DetailPatch,
    DetailRead,
    DetailResponse,
    DetailUpdateResponse,
)

router = APIRouter()


@router.get("", response_model=DetailListResponse)
async def list_details(
    project_id: Optional[uuid.UUID] = Query(None, alias="projectId"),
    organization_id: Optional[uuid.UUID] = Query(None, alias="organizationId"),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    if project_id is not None:
        project = await get_project_or_404(session, project_id)
        details = await detail_service.list_for_project(project, user.id, session)
    elif organization_id is not None:
        details = await detail_service.list_for_org(organization_id, user.id, session)
    else:
        raise ValidationError("projectId or organizationId is required")

    return DetailListResponse(project_details=[DetailRead.model_validate(d) for d in details])


@router.post("", response_model=DetailResponse, status_code=201)
async def create_detail(
    body: DetailCreate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    detail = await detail_service.create_detail(
        body.project_id, body.name, body.location, body.status, user.id, session
    )
    return DetailResponse(detail=DetailRead.model_validate(detail))


@router.patch("", response_model=DetailUpdateResponse)
async def update_detail(
    body: DetailPatch,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Update name, location and/or status. An empty patch is not an error."""
    detail, changed = await detail_service.update_detail(
        body.detail_id, body.changes(), user.id, session
    )
    return DetailUpdateResponse(
        detail=DetailRead.model_validate(detail),
        changed=changed,
        message="Detail updated" if changed else "No changes",
    )


@router.delete("", response_model=MessageResponse)
async def delete_detail(
    body: DetailDelete,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    await detail_service.delete_detail(body.detail_id, user.id, session)
    return MessageResponse(message="Detail deleted")
