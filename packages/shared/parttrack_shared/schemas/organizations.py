"""
Organization-related Pydantic schemas shared between server and clients.

Covers: org CRUD requests/responses and the per-caller org listing.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from .common import OrgRole, RequestModel


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class OrgCreateRequest(RequestModel):
    name: str = Field(..., min_length=1, max_length=100, description="Organization display name")


class OrgUpdateRequest(RequestModel):
    name: str = Field(..., min_length=1, max_length=100)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class OrgResponse(BaseModel):
    id: uuid.UUID
    name: str
    owner_id: uuid.UUID
    created_at: datetime
    updated_at: datetime
    role_id: Optional[OrgRole] = None  # the requesting user's role in this org

    model_config = {"from_attributes": True}


class OrgListResponse(BaseModel):
    organizations: list[OrgResponse]
