"""
Seat model: one physical season-ticket seat.

Key design decisions:
- (section, row, seat) unique at the DB level; labels are opaque strings
- No ON DELETE CASCADE to game_tickets: the seat registry deletes
  dependent tickets itself inside the same transaction
"""

from sqlalchemy import Column, Integer, String, Text, UniqueConstraint

from ticket_manager.db.base import Base, TimestampMixin


class Seat(Base, TimestampMixin):
    __tablename__ = "seats"

    id = Column(Integer, primary_key=True, index=True)
    section = Column(String(32), nullable=False)
    row = Column(String(32), nullable=False)
    seat = Column(String(32), nullable=False)
    notes = Column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("section", "row", "seat", name="uq_seat_identity"),
    )

    @property
    def label(self) -> str:
        return f"{self.section}/{self.row}/{self.seat}"

    def __repr__(self) -> str:
        return f"<Seat(id={self.id}, section={self.section}, row={self.row}, seat={self.seat})>"
