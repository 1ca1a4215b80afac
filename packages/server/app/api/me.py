"""GET /me: the user behind the session cookie."""

from fastapi import APIRouter, Depends

from app.core.auth import get_current_user
from app.models.user import User
from parttrack_shared.schemas.users import MeResponse, UserProfile

router = APIRouter()


@router.get("", response_model=MeResponse)
async def me(user: User = Depends(get_current_user)):
    return MeResponse(user=UserProfile.model_validate(user))
