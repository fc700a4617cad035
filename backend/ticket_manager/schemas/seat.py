"""
Pydantic schemas for seat registry request/response validation.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class SeatCreate(BaseModel):
    section: str = Field(..., min_length=1, max_length=32)
    row: str = Field(..., min_length=1, max_length=32)
    seat: str = Field(..., min_length=1, max_length=32)
    notes: Optional[str] = None


class SeatBatchCreate(BaseModel):
    section: str = Field(..., min_length=1, max_length=32)
    row: str = Field(..., min_length=1, max_length=32)
    seat_start: int = Field(..., ge=0)
    seat_end: int = Field(..., ge=0)
    notes: Optional[str] = None


class SeatGroupUpdate(BaseModel):
    section: str = Field(..., min_length=1, max_length=32)
    row: str = Field(..., min_length=1, max_length=32)
    notes: Optional[str] = None


class SeatNotesUpdate(BaseModel):
    notes: Optional[str] = None


class SeatResponse(BaseModel):
    id: int
    section: str
    row: str
    seat: str
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
