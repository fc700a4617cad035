"""
Pydantic schemas for user-related responses.
"""

from datetime import datetime
from pydantic import BaseModel

from ticket_manager.models.user import UserRole


class UserResponse(BaseModel):
    id: int
    auth_sub: str
    email: str
    name: str
    role: UserRole
    created_at: datetime

    model_config = {"from_attributes": True}
