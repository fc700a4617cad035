"""
GameTicket model: one row per (home game, seat).

Key design decisions:
- Unique constraint on (game_pk, seat_id) makes backfill idempotent and
  lets concurrent generators race safely (INSERT ... ON CONFLICT DO NOTHING)
- status is TEXT guarded by a CHECK constraint and the TicketStatus enum
- assigned_to is only meaningful while status is 'assigned'
"""

import enum

from sqlalchemy import Column, Integer, String, Text, ForeignKey, UniqueConstraint, CheckConstraint, Index

from ticket_manager.core.exceptions import ValidationError
from ticket_manager.db.base import Base, TimestampMixin


class TicketStatus(str, enum.Enum):
    AVAILABLE = "available"
    ASSIGNED = "assigned"
    HELD = "held"
    UNAVAILABLE = "unavailable"

    @classmethod
    def parse(cls, value: str) -> "TicketStatus":
        try:
            return cls(value)
        except ValueError:
            allowed = ", ".join(s.value for s in cls)
            raise ValidationError(
                f"Unknown ticket status '{value}' (expected one of: {allowed})",
                field="status",
            )


_STATUS_VALUES = ", ".join(f"'{s.value}'" for s in TicketStatus)


class GameTicket(Base, TimestampMixin):
    __tablename__ = "game_tickets"

    id = Column(Integer, primary_key=True, index=True)
    game_pk = Column(Integer, ForeignKey("games.game_pk"), nullable=False, index=True)
    seat_id = Column(Integer, ForeignKey("seats.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=TicketStatus.AVAILABLE.value)
    notes = Column(Text, nullable=True)
    assigned_to = Column(Integer, ForeignKey("users.id"), nullable=True)

    __table_args__ = (
        UniqueConstraint("game_pk", "seat_id", name="uq_game_ticket_game_seat"),
        CheckConstraint(f"status IN ({_STATUS_VALUES})", name="check_game_ticket_status"),
        Index("ix_game_tickets_assigned_game", "assigned_to", "game_pk"),
    )

    def __repr__(self) -> str:
        return f"<GameTicket(id={self.id}, game={self.game_pk}, seat={self.seat_id}, status={self.status})>"
