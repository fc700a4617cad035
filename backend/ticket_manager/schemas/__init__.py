from ticket_manager.schemas.seat import SeatCreate, SeatBatchCreate, SeatGroupUpdate, SeatNotesUpdate, SeatResponse
from ticket_manager.schemas.game import (
    GameIn, PromotionIn, ScheduleData, GameResponse, PromotionResponse, ScrapeScheduleRequest, IngestResponse,
)
from ticket_manager.schemas.ticket import TicketUpdate, TicketResponse, TicketDetail, TicketSummary
from ticket_manager.schemas.user import UserResponse
from ticket_manager.schemas.request import (
    RequestEntry, RequestBatchCreate, RequestUpdate, TicketRequestResponse, EntryError, RequestBatchResult,
)
from ticket_manager.schemas.allocation import (
    Assignment, AllocateRequest, AllocationResult, ReleaseResult, AllocationSummaryRow, RequestWithUser,
    GameAllocationDetail,
)

__all__ = [
    "SeatCreate", "SeatBatchCreate", "SeatGroupUpdate", "SeatNotesUpdate", "SeatResponse",
    "GameIn", "PromotionIn", "ScheduleData", "GameResponse", "PromotionResponse", "ScrapeScheduleRequest",
    "IngestResponse",
    "TicketUpdate", "TicketResponse", "TicketDetail", "TicketSummary",
    "UserResponse",
    "RequestEntry", "RequestBatchCreate", "RequestUpdate", "TicketRequestResponse", "EntryError",
    "RequestBatchResult",
    "Assignment", "AllocateRequest", "AllocationResult", "ReleaseResult", "AllocationSummaryRow",
    "RequestWithUser", "GameAllocationDetail",
]
