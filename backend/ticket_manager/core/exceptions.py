"""
Typed failures raised by the service layer and their HTTP mapping.

Services never raise HTTPException directly; the handlers registered by
`register_exception_handlers` translate these into JSON responses of the form
{"detail": ..., "error": ...} plus any entity details the error carries.
"""

from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from ticket_manager.core.logging import get_logger

logger = get_logger(__name__)


class TicketManagerError(Exception):
    """Base class for all domain failures."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "error"

    def __init__(self, message: str, **details: Any) -> None:
        self.message = message
        self.details = details
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"detail": self.message, "error": self.code, **self.details}


class ValidationError(TicketManagerError):
    """Malformed input: out-of-range counts, empty identifiers, unknown status."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation"


class ForbiddenError(TicketManagerError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"


class NotFoundError(TicketManagerError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class ConflictError(TicketManagerError):
    """A uniqueness or state invariant would be violated."""

    status_code = status.HTTP_409_CONFLICT
    code = "conflict"


class StoreError(TicketManagerError):
    """The backing store failed; the operation was rolled back in full."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "store"


class UpstreamError(TicketManagerError):
    """The schedule feed could not be fetched or parsed."""

    status_code = status.HTTP_502_BAD_GATEWAY
    code = "upstream"


async def ticket_manager_error_handler(request: Request, exc: TicketManagerError) -> JSONResponse:
    log = logger.error if exc.status_code >= 500 else logger.info
    log("request_rejected", error=exc.code, message=exc.message, **exc.details)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TicketManagerError, ticket_manager_error_handler)
