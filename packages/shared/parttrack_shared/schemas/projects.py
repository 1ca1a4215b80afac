from typing import Optional, List
from pydantic import BaseModel, Field
from uuid import UUID
from datetime import datetime
from .common import OrgRole, ProjectRole, RequestModel


class ProjectCreate(RequestModel):
    name: str = Field(..., min_length=1, max_length=200)
    organization_id: UUID
    status: str = Field(default="active", min_length=1, max_length=50)


class ProjectUpdate(RequestModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    status: Optional[str] = Field(default=None, min_length=1, max_length=50)


class ProjectRead(BaseModel):
    id: UUID
    organization_id: UUID
    name: str
    status: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ProjectListResponse(BaseModel):
    projects: List[ProjectRead]


class ProjectAccessResponse(BaseModel):
    """A project together with the caller's effective roles on it."""
    project: ProjectRead
    user_role: Optional[ProjectRole] = None
    org_role: Optional[OrgRole] = None
