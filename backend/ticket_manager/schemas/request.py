"""
Pydantic schemas for the ticket request ledger.
"""

from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field

from ticket_manager.models.request import RequestStatus


class RequestEntry(BaseModel):
    game_pk: int
    # Bounds are enforced per entry by the ledger so one bad entry does not sink the batch
    seats_requested: int
    notes: Optional[str] = None


class RequestBatchCreate(BaseModel):
    requests: list[RequestEntry] = Field(..., min_length=1, max_length=200)


class RequestUpdate(BaseModel):
    seats_requested: int


class TicketRequestResponse(BaseModel):
    id: int
    user_id: int
    game_pk: int
    seats_requested: int
    seats_approved: int
    status: RequestStatus
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class EntryError(BaseModel):
    index: int
    game_pk: int
    error: Literal["validation", "conflict", "not_found"]
    message: str


class RequestBatchResult(BaseModel):
    created: list[TicketRequestResponse] = Field(default_factory=list)
    errors: list[EntryError] = Field(default_factory=list)
