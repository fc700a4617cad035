"""
User endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ticket_manager.api.deps import get_current_user, require_admin
from ticket_manager.db.session import get_db
from ticket_manager.models.user import User
from ticket_manager.schemas.user import UserResponse
from ticket_manager.services import user_service

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me", response_model=UserResponse)
async def get_me(user: User = Depends(get_current_user)):
    """The authenticated caller, provisioned on first call."""
    return user


@router.get("", response_model=list[UserResponse])
async def list_users_endpoint(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.list_users(db)
