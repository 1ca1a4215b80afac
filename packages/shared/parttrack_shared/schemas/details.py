"""Project detail ("part") and audit log schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import AliasChoices, BaseModel, Field

from .common import DetailStatus, RequestModel


NON_NULLABLE_FIELDS = frozenset({"name", "status"})


class DetailCreate(RequestModel):
    project_id: UUID
    name: str = Field(..., min_length=1, max_length=200)
    location: Optional[str] = Field(default=None, max_length=200)
    status: DetailStatus = DetailStatus.READY


class DetailPatch(RequestModel):
    """Partial update. Omitted fields are left unchanged."""
    detail_id: UUID
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    location: Optional[str] = Field(default=None, max_length=200)
    status: Optional[DetailStatus] = Field(
        default=None,
        validation_alias=AliasChoices("status", "newStatus", "new_status"),
    )

    def changes(self) -> dict:
        """Fields the caller actually supplied, excluding the target id.

        An explicit null clears ``location``; it is ignored for the
        non-nullable ``name`` and ``status``.
        """
        supplied = self.model_dump(exclude_unset=True, exclude={"detail_id"})
        return {
            key: value
            for key, value in supplied.items()
            if value is not None or key not in NON_NULLABLE_FIELDS
        }


class DetailDelete(RequestModel):
    detail_id: UUID


class DetailRead(BaseModel):
    id: UUID
    project_id: UUID
    name: str
    status: DetailStatus
    location: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class DetailResponse(BaseModel):
    detail: DetailRead


class DetailUpdateResponse(BaseModel):
    detail: DetailRead
    changed: bool
    message: str


class DetailListResponse(BaseModel):
    project_details: List[DetailRead]


class AuditLogRead(BaseModel):
    id: UUID
    organization_id: UUID
    project_id: UUID
    detail_id: Optional[UUID] = None
    old_status: DetailStatus
    new_status: DetailStatus
    created_at: datetime
    part_name: str


class AuditLogListResponse(BaseModel):
    logs: List[AuditLogRead]
