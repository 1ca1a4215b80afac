"""Login, signup and invitation-registration schemas."""

from __future__ import annotations

import uuid
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from .common import RequestModel
from .users import UserSummary


class LoginRequest(RequestModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class SignupRequest(RequestModel):
    email: EmailStr
    password: str = Field(..., min_length=1)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    organization_name: str = Field(..., min_length=1, max_length=100)


class RegisterInviteRequest(RequestModel):
    email: EmailStr
    password: str = Field(..., min_length=1)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    invitation_id: Optional[uuid.UUID] = None


class AuthResponse(BaseModel):
    message: str
    user: UserSummary
    organization_id: Optional[uuid.UUID] = None
