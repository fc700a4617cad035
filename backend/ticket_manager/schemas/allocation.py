"""
Pydantic schemas for the allocation engine.
"""

from datetime import date
from typing import Optional
from pydantic import BaseModel, Field

from ticket_manager.models.request import RequestStatus
from ticket_manager.schemas.game import GameResponse
from ticket_manager.schemas.ticket import TicketDetail


class Assignment(BaseModel):
    game_ticket_id: int
    user_id: int
    request_id: Optional[int] = None


class AllocateRequest(BaseModel):
    assignments: list[Assignment] = Field(..., min_length=1, max_length=50)


class AllocationResult(BaseModel):
    assigned_count: int


class ReleaseResult(BaseModel):
    released_count: int


class AllocationSummaryRow(BaseModel):
    game_pk: int
    official_date: date
    opponent: str
    total_seats: int
    assigned: int
    available: int
    total_requested: int
    oversubscribed: bool


class RequestWithUser(BaseModel):
    id: int
    user_id: int
    user_name: str
    seats_requested: int
    seats_approved: int
    status: RequestStatus
    notes: Optional[str] = None


class GameAllocationDetail(BaseModel):
    game: GameResponse
    tickets: list[TicketDetail]
    requests: list[RequestWithUser]
