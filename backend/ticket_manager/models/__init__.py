from ticket_manager.models.seat import Seat
from ticket_manager.models.game import Game, Promotion
from ticket_manager.models.ticket import GameTicket, TicketStatus
from ticket_manager.models.user import User, UserRole
from ticket_manager.models.request import TicketRequest, RequestStatus

__all__ = [
    "Seat", "Game", "Promotion", "GameTicket", "TicketStatus",
    "User", "UserRole", "TicketRequest", "RequestStatus",
]
