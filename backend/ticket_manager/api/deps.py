"""
Shared route dependencies: the current user and the admin gate.
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ticket_manager.core.exceptions import ForbiddenError
from ticket_manager.core.security import Identity, get_identity
from ticket_manager.db.session import get_db
from ticket_manager.models.user import User
from ticket_manager.services.user_service import resolve_user


async def get_current_user(
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
) -> User:
    """The caller's users row, provisioned on first sight."""
    return await resolve_user(db, identity)


async def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise ForbiddenError("Administrator role required", user_id=user.id)
    return user
