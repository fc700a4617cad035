"""
Pydantic schemas for ticket inventory views.
"""

from typing import Optional
from pydantic import BaseModel

from ticket_manager.models.ticket import TicketStatus


class TicketUpdate(BaseModel):
    # Plain str so unknown values reach the service and come back as a typed 400
    status: str
    notes: Optional[str] = None


class TicketResponse(BaseModel):
    id: int
    game_pk: int
    seat_id: int
    status: TicketStatus
    notes: Optional[str]
    assigned_to: Optional[int]

    model_config = {"from_attributes": True}


class TicketDetail(BaseModel):
    id: int
    game_pk: int
    seat_id: int
    section: str
    row: str
    seat: str
    status: TicketStatus
    notes: Optional[str] = None
    assigned_to: Optional[int] = None
    assigned_user_name: Optional[str] = None


class TicketSummary(BaseModel):
    game_pk: int
    total: int
    available: int
