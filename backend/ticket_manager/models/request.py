"""
TicketRequest model: a member's demand for seats at one game.

Key design decisions:
- Unique constraint on (user_id, game_pk): one request per member per game;
  a withdrawn request is reopened rather than duplicated
- Status field allows withdrawal without deleting records
- seats_approved counts seats actually assigned against this request
"""

import enum

from sqlalchemy import Column, Integer, String, Text, ForeignKey, UniqueConstraint, CheckConstraint

from ticket_manager.db.base import Base, TimestampMixin


class RequestStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DECLINED = "declined"
    WITHDRAWN = "withdrawn"

    def can_transition_to(self, target: "RequestStatus") -> bool:
        return target in _TRANSITIONS[self]

    @property
    def is_open(self) -> bool:
        """Still counts as outstanding demand."""
        return self in (RequestStatus.PENDING, RequestStatus.APPROVED)


_TRANSITIONS = {
    RequestStatus.PENDING: {RequestStatus.APPROVED, RequestStatus.DECLINED, RequestStatus.WITHDRAWN},
    RequestStatus.APPROVED: {RequestStatus.APPROVED, RequestStatus.WITHDRAWN},
    RequestStatus.DECLINED: set(),
    RequestStatus.WITHDRAWN: set(),
}


class TicketRequest(Base, TimestampMixin):
    __tablename__ = "ticket_requests"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    game_pk = Column(Integer, ForeignKey("games.game_pk"), nullable=False, index=True)
    seats_requested = Column(Integer, nullable=False)
    seats_approved = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default=RequestStatus.PENDING.value)
    notes = Column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("user_id", "game_pk", name="uq_ticket_request_user_game"),
        CheckConstraint("seats_requested > 0", name="check_request_seats_requested"),
        CheckConstraint("seats_approved >= 0", name="check_request_seats_approved"),
        CheckConstraint(
            "status IN ('pending', 'approved', 'declined', 'withdrawn')",
            name="check_request_status",
        ),
    )

    @property
    def state(self) -> RequestStatus:
        return RequestStatus(self.status)

    def __repr__(self) -> str:
        return f"<TicketRequest(id={self.id}, user={self.user_id}, game={self.game_pk}, status={self.status})>"
